"""Exceptions raised by the batch configuration engine."""

from typing import Optional


class MkvBatchFlowError(Exception):
    """Base class for engine errors."""


class TrackPositionError(MkvBatchFlowError):
    """A scanned track lacks a usable position, so slots cannot be joined to it."""

    def __init__(self, file_path: str, track_type: str, slot_index: int, value: Optional[str]):
        self.file_path = file_path
        self.track_type = track_type
        self.slot_index = slot_index
        self.value = value
        super().__init__(
            f"StreamKindPos is missing or invalid ({value!r}) for track {slot_index} "
            f"of type {track_type} in file '{file_path}'"
        )


class FileConfigurationNotFoundError(MkvBatchFlowError, KeyError):
    """No per-file track configuration exists for a file."""

    def __init__(self, file_key: str):
        self.file_key = file_key
        super().__init__(f"No per-file track configuration found for file '{file_key}'")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class ArgumentsBuildError(MkvBatchFlowError):
    """mkvpropedit arguments cannot be built from the collected options."""
