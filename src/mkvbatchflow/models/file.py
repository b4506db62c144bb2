"""Scanned file and per-file result data models."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional

from mkvbatchflow.models.track import ScannedTrack, TrackType


def path_key(path: str | Path) -> str:
    """Normalize a file path into its identity key.

    Case is folded only on platforms with case-insensitive paths (Windows),
    so ``a.mkv`` and ``A.mkv`` are distinct files on Linux.
    """
    return os.path.normcase(os.path.normpath(str(path)))


@dataclass
class ScannedFile:
    """A scanned media file: its path and ordered track records."""

    path: str
    tracks: Optional[list[ScannedTrack]] = field(default_factory=list)

    @property
    def key(self) -> str:
        """Identity key used for cross-file correlation."""
        return path_key(self.path)

    def tracks_of_type(self, track_type: TrackType) -> list[ScannedTrack]:
        """Scanned tracks of one type, in scan order."""
        return [t for t in self.tracks or [] if t.type == track_type]

    def count_of_type(self, track_type: TrackType) -> int:
        """Number of scanned tracks of one type."""
        return len(self.tracks_of_type(track_type))

    def general_track(self) -> Optional[ScannedTrack]:
        """The first General (segment info) track, if any."""
        return next((t for t in self.tracks or [] if t.type == TrackType.GENERAL), None)

    def __str__(self) -> str:
        """Human-readable representation."""
        counts = ", ".join(
            f"{self.count_of_type(t)} {t.value.lower()}"
            for t in (TrackType.VIDEO, TrackType.AUDIO, TrackType.TEXT)
        )
        return f"{Path(self.path).name} ({counts})"


@dataclass
class ProcessResult:
    """Result of applying a batch edit to a single file."""

    status: Literal["success", "warning", "skipped", "failed", "dry_run"]
    file_path: Optional[str] = None
    arguments: list[str] = field(default_factory=list)
    reason: Optional[str] = None  # Reason for skip
    error: Optional[str] = None  # Error message if failed

    def __str__(self) -> str:
        """Human-readable representation."""
        name = Path(self.file_path).name if self.file_path else "unknown"
        if self.status == "success":
            return f"✓ {name}: updated"
        elif self.status == "warning":
            return f"! {name}: updated with warnings"
        elif self.status == "skipped":
            return f"⊘ {name}: Skipped ({self.reason})"
        elif self.status == "dry_run":
            return f"⊙ {name}: Would run mkvpropedit {' '.join(self.arguments)}"
        else:
            return f"✗ {name}: Failed ({self.error or self.reason})"
