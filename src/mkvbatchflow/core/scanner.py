"""Media file discovery and MediaInfo scanning."""

import json
import subprocess
from dataclasses import replace
from pathlib import Path
from typing import Any, List

from mkvbatchflow.models.file import ScannedFile
from mkvbatchflow.models.track import ScannedTrack, TrackType
from mkvbatchflow.utils.logger import get_logger

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = {".mkv"}


def _yes_no(value: Any) -> bool:
    """MediaInfo reports flags as "Yes"/"No" strings."""
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in ("yes", "true", "1")


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def parse_mediainfo(data: dict, path: str) -> ScannedFile:
    """Convert MediaInfo JSON output (``--Output=JSON``) into a ScannedFile.

    Tracks without a usable ``StreamKindID`` fall back to their position
    among tracks of the same type. A sole track of its type without
    ``StreamKindPos`` gets position "1". Unknown ``@type`` values map to OTHER.

    Args:
        data: Parsed MediaInfo JSON document
        path: Path of the scanned file

    Returns:
        ScannedFile with tracks in MediaInfo order

    Raises:
        ValueError: If the document has no ``media`` object
    """
    media = data.get("media") if isinstance(data, dict) else None
    if not isinstance(media, dict):
        raise ValueError(f"MediaInfo output for '{path}' has no media information")

    tracks = []
    seen: dict[TrackType, int] = {}
    for raw in media.get("track") or []:
        track_type = TrackType.from_mediainfo(raw.get("@type", ""))
        fallback = seen.get(track_type, 0)
        seen[track_type] = fallback + 1

        try:
            stream_kind_id = int(raw.get("StreamKindID", fallback))
        except (TypeError, ValueError):
            stream_kind_id = fallback

        tracks.append(
            ScannedTrack(
                type=track_type,
                stream_kind_id=stream_kind_id,
                stream_kind_pos=_optional_str(raw.get("StreamKindPos")),
                language=_optional_str(raw.get("Language")),
                format=_optional_str(raw.get("Format")),
                title=_optional_str(raw.get("Title")),
                channel_layout=_optional_str(raw.get("ChannelLayout")),
                default=_yes_no(raw.get("Default")),
                forced=_yes_no(raw.get("Forced")),
            )
        )

    # MediaInfo omits StreamKindPos when a track is the only one of its kind
    tracks = [
        replace(t, stream_kind_pos="1") if t.stream_kind_pos is None and seen[t.type] == 1 else t
        for t in tracks
    ]

    return ScannedFile(path=path, tracks=tracks)


def load_mediainfo_file(json_path: Path, media_path: str | None = None) -> ScannedFile:
    """Load a saved MediaInfo JSON report.

    Args:
        json_path: Path to the JSON report
        media_path: Path of the media file the report describes; defaults to
            the report's ``media.@ref`` or, failing that, the report path with
            a ``.mkv`` suffix

    Raises:
        FileNotFoundError: If the report doesn't exist
        ValueError: If the report is not valid MediaInfo JSON
    """
    with open(json_path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid MediaInfo JSON in '{json_path}': {e}") from e

    if media_path is None:
        ref = (data.get("media") or {}).get("@ref") if isinstance(data, dict) else None
        media_path = ref or str(json_path.with_suffix(".mkv"))

    return parse_mediainfo(data, media_path)


class MediaInfoScanner:
    """Scan media files with the ``mediainfo`` CLI."""

    def __init__(self, executable: str = "mediainfo", timeout_seconds: int = 60):
        self.executable = executable
        self.timeout_seconds = timeout_seconds

    def scan(self, file_path: Path) -> ScannedFile:
        """Extract track information from a media file.

        Args:
            file_path: Path to media file

        Returns:
            ScannedFile for the media file

        Raises:
            FileNotFoundError: If file doesn't exist
            subprocess.CalledProcessError: If mediainfo fails
            subprocess.TimeoutExpired: If mediainfo takes too long
            ValueError: If the output cannot be parsed
        """
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        logger.debug("Scanning media file", file=str(file_path))

        cmd = [self.executable, "--Output=JSON", str(file_path)]
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, check=True, timeout=self.timeout_seconds
            )
            data = json.loads(result.stdout)
        except subprocess.TimeoutExpired:
            logger.error("mediainfo timeout", file=str(file_path), timeout=self.timeout_seconds)
            raise
        except subprocess.CalledProcessError as e:
            logger.error(
                "mediainfo failed",
                file=str(file_path),
                returncode=e.returncode,
                stderr=e.stderr,
            )
            raise
        except json.JSONDecodeError as e:
            logger.error("Failed to parse mediainfo output", file=str(file_path), error=str(e))
            raise ValueError(f"Invalid mediainfo output for '{file_path}'") from e

        scanned = parse_mediainfo(data, str(file_path))
        logger.info(
            "Media file scanned",
            file=str(file_path),
            video=scanned.count_of_type(TrackType.VIDEO),
            audio=scanned.count_of_type(TrackType.AUDIO),
            subtitle=scanned.count_of_type(TrackType.TEXT),
        )
        return scanned


def discover_files(path: Path, recursive: bool = True, extensions: set[str] | None = None) -> List[Path]:
    """Find media files under a path.

    Args:
        path: File or directory to scan
        recursive: If True, scan subdirectories recursively
        extensions: File extensions to include (default: .mkv)

    Returns:
        Matching file paths, sorted

    Raises:
        FileNotFoundError: If path doesn't exist
        ValueError: If path is not a file or directory
    """
    if not path.exists():
        raise FileNotFoundError(f"Path not found: {path}")

    if extensions is None:
        extensions = SUPPORTED_EXTENSIONS
    extensions = {ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions}

    if path.is_file():
        if path.suffix.lower() in extensions:
            return [path]
        logger.warning(
            "File extension not supported",
            file=str(path),
            extension=path.suffix,
            supported=sorted(extensions),
        )
        return []

    if path.is_dir():
        candidates = path.rglob("*") if recursive else path.glob("*")
        files = sorted(p for p in candidates if p.is_file() and p.suffix.lower() in extensions)
        logger.info(
            "Directory scan complete",
            directory=str(path),
            recursive=recursive,
            total_files=len(files),
        )
        return files

    raise ValueError(f"Path is neither a file nor a directory: {path}")
