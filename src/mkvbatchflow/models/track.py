"""Track type and scanned track data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TrackType(Enum):
    """Stream kinds reported by MediaInfo."""

    GENERAL = "General"
    VIDEO = "Video"
    AUDIO = "Audio"
    TEXT = "Text"
    OTHER = "Other"
    IMAGE = "Image"
    MENU = "Menu"

    @classmethod
    def from_mediainfo(cls, value: str) -> "TrackType":
        """Map a MediaInfo ``@type`` string to a track type (unknown kinds map to OTHER)."""
        for member in cls:
            if member.value.lower() == (value or "").lower():
                return member
        return cls.OTHER

    @property
    def is_editable(self) -> bool:
        """Whether the type maps to a Matroska track element mkvpropedit can edit."""
        return self in EDITABLE_TRACK_TYPES

    @property
    def selector_prefix(self) -> str:
        """mkvpropedit selector prefix (``v``, ``a`` or ``s``).

        Raises:
            ValueError: If the type is not an editable track type
        """
        try:
            return TRACK_SELECTOR_PREFIX[self]
        except KeyError:
            raise ValueError(f"Track type {self.value} has no mkvpropedit selector") from None


# Order matters: it is the order in which per-type work is done everywhere.
EDITABLE_TRACK_TYPES = (TrackType.AUDIO, TrackType.VIDEO, TrackType.TEXT)

TRACK_SELECTOR_PREFIX = {
    TrackType.VIDEO: "v",
    TrackType.AUDIO: "a",
    TrackType.TEXT: "s",
}

TRACK_TYPE_LABELS = {
    TrackType.AUDIO: "audio",
    TrackType.VIDEO: "video",
    TrackType.TEXT: "subtitle",
}


def parse_track_type(value: str) -> TrackType:
    """Parse a user-facing track type name (``audio``, ``video``, ``subtitle``).

    Args:
        value: Track type name, case-insensitive. ``text`` and ``sub`` are
            accepted as subtitle aliases.

    Returns:
        Editable TrackType

    Raises:
        ValueError: If the name does not denote an editable track type
    """
    aliases = {
        "audio": TrackType.AUDIO,
        "a": TrackType.AUDIO,
        "video": TrackType.VIDEO,
        "v": TrackType.VIDEO,
        "subtitle": TrackType.TEXT,
        "subtitles": TrackType.TEXT,
        "sub": TrackType.TEXT,
        "text": TrackType.TEXT,
        "s": TrackType.TEXT,
    }
    try:
        return aliases[value.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown track type: {value!r}") from None


@dataclass(frozen=True)
class ScannedTrack:
    """A single track record as reported by the scanner (read-only)."""

    type: TrackType
    stream_kind_id: int  # Stable 0-based ordinal within its type
    stream_kind_pos: Optional[str] = None  # Human-facing position string
    language: Optional[str] = None  # Raw language string (e.g. "en", "jpn")
    format: Optional[str] = None  # Codec / container format (e.g. "AAC")
    title: Optional[str] = None  # Track name, or segment title for General
    channel_layout: Optional[str] = None  # e.g. "L R C LFE Ls Rs"
    default: bool = False
    forced: bool = False

    def __str__(self) -> str:
        """Human-readable representation."""
        lang_part = f" [{self.language}]" if self.language else ""
        title_part = f" ({self.title})" if self.title else ""
        return f"{self.type.value} #{self.stream_kind_id}: {self.format or 'unknown'}{lang_part}{title_part}"
