"""File processing rules that derive slot state from scanned metadata.

Rules run in registration order for one file at a time. The position rule
must run first because the naming and language rules locate per-file slots
by the scanned ordinal it writes. The default/forced aggregation rules read
every file's per-file state, so all files must be initialized before any of
them runs.

Derived values never overwrite a value whose should-modify flag is set; a
flagged value is a user edit.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from mkvbatchflow.core.errors import TrackPositionError
from mkvbatchflow.core.factory import TrackConfigurationFactory
from mkvbatchflow.models.configuration import MODIFY_FLAGS, BatchConfiguration, TrackConfiguration
from mkvbatchflow.models.file import ScannedFile
from mkvbatchflow.models.track import EDITABLE_TRACK_TYPES, ScannedTrack, TrackType
from mkvbatchflow.utils.logger import get_logger

logger = get_logger(__name__)

AUDIO_CHANNEL_LAYOUT_LABELS = {
    "l r": "Stereo",
    "l r c lfe ls rs": "5.1",
}

SUBTITLE_FORMAT_LABELS = {
    "ssa": "SSA / ASS",
    "ass": "SSA / ASS",
    "webvtt": "WebVTT",
    "srt": "SubRip",
    "utf-8": "SRT",
}


def _check_arguments(scanned_file: Optional[ScannedFile], batch: Optional[BatchConfiguration]) -> None:
    if scanned_file is None:
        raise ValueError("scanned_file must not be None")
    if batch is None:
        raise ValueError("batch must not be None")


def _find_slot(tracks: list[TrackConfiguration], ordinal: int) -> Optional[TrackConfiguration]:
    return next((t for t in tracks if t.index == ordinal), None)


class FileProcessingRule(ABC):
    """A rule that updates the batch configuration from one scanned file."""

    @abstractmethod
    def apply(self, scanned_file: ScannedFile, batch: BatchConfiguration) -> None:
        """Apply the rule.

        Raises:
            ValueError: If scanned_file or batch is None
        """


class TrackPositionRule(FileProcessingRule):
    """Joins per-file slots to scanned tracks by copying the scanned ordinal into Index."""

    def apply(self, scanned_file: ScannedFile, batch: BatchConfiguration) -> None:
        _check_arguments(scanned_file, batch)

        for track_type in EDITABLE_TRACK_TYPES:
            scanned = scanned_file.tracks_of_type(track_type)
            tracks = batch.get_track_list_for_file(scanned_file, track_type)

            for i in range(min(len(tracks), len(scanned))):
                position = scanned[i].stream_kind_pos
                if position is None or not position.strip().isdigit():
                    raise TrackPositionError(scanned_file.path, track_type.value, i, position)
                tracks[i].index = scanned[i].stream_kind_id


class FileTitleRule(FileProcessingRule):
    """Copies the segment title of the General track into the batch title."""

    def apply(self, scanned_file: ScannedFile, batch: BatchConfiguration) -> None:
        _check_arguments(scanned_file, batch)

        if batch.should_modify_title:
            return

        general = scanned_file.general_track()
        if general is not None:
            batch.title = general.title


class TrackNamingRule(FileProcessingRule):
    """Derives per-file slot names for one track type."""

    track_type: TrackType

    def apply(self, scanned_file: ScannedFile, batch: BatchConfiguration) -> None:
        _check_arguments(scanned_file, batch)

        tracks = batch.get_track_list_for_file(scanned_file, self.track_type)
        for scanned in scanned_file.tracks_of_type(self.track_type):
            name = self.derive_name(scanned)
            if name is None:
                continue
            slot = _find_slot(tracks, scanned.stream_kind_id)
            if slot is not None and not slot.should_modify_name:
                slot.name = name

    @abstractmethod
    def derive_name(self, scanned: ScannedTrack) -> Optional[str]:
        """Display name for a scanned track, or None to leave the slot untouched."""


class AudioTrackNamingRule(TrackNamingRule):
    """Names audio tracks like ``5.1 AC-3`` from channel layout and format."""

    track_type = TrackType.AUDIO

    def derive_name(self, scanned: ScannedTrack) -> Optional[str]:
        layout = (scanned.channel_layout or "").strip()
        track_format = scanned.format or ""
        if not layout:
            return track_format
        label = AUDIO_CHANNEL_LAYOUT_LABELS.get(layout.lower(), layout)
        return f"{label} {track_format}".strip()


class SubtitleTrackNamingRule(TrackNamingRule):
    """Names subtitle tracks after their format; unknown formats are skipped."""

    track_type = TrackType.TEXT

    def derive_name(self, scanned: ScannedTrack) -> Optional[str]:
        return SUBTITLE_FORMAT_LABELS.get((scanned.format or "").strip().lower())


class VideoTrackNamingRule(TrackNamingRule):
    """Keeps the scanned video title as the name."""

    track_type = TrackType.VIDEO

    def derive_name(self, scanned: ScannedTrack) -> Optional[str]:
        return scanned.title or ""


class TrackLanguageRule(FileProcessingRule):
    """Resolves scanned language strings onto per-file slots."""

    def __init__(self, factory: TrackConfigurationFactory):
        self.factory = factory

    def apply(self, scanned_file: ScannedFile, batch: BatchConfiguration) -> None:
        _check_arguments(scanned_file, batch)

        for track_type in EDITABLE_TRACK_TYPES:
            tracks = batch.get_track_list_for_file(scanned_file, track_type)
            for scanned in scanned_file.tracks_of_type(track_type):
                if not scanned.language:
                    continue
                slot = _find_slot(tracks, scanned.stream_kind_id)
                if slot is not None and not slot.should_modify_language:
                    slot.language = self.factory.resolve_language(scanned.language)


class TrackFlagMajorityRule(FileProcessingRule):
    """Sets a global flag when a strict majority of files has it set at that position."""

    flag: str

    def apply(self, scanned_file: ScannedFile, batch: BatchConfiguration) -> None:
        _check_arguments(scanned_file, batch)

        for track_type in EDITABLE_TRACK_TYPES:
            global_tracks = batch.get_track_list_for_type(track_type)
            for position, global_track in enumerate(global_tracks):
                if getattr(global_track, MODIFY_FLAGS[self.flag]):
                    continue
                values = [
                    getattr(file_tracks[position], self.flag)
                    for file_tracks in (
                        fc.get_track_list_for_type(track_type) for fc in batch.file_configurations.values()
                    )
                    if position < len(file_tracks)
                ]
                if not values:
                    continue
                setattr(global_track, self.flag, sum(values) > len(values) / 2)


class TrackDefaultRule(TrackFlagMajorityRule):
    flag = "default"


class TrackForcedRule(TrackFlagMajorityRule):
    flag = "forced"


def default_rules(factory: TrackConfigurationFactory) -> list[FileProcessingRule]:
    """The standard rule order."""
    return [
        TrackPositionRule(),
        FileTitleRule(),
        AudioTrackNamingRule(),
        SubtitleTrackNamingRule(),
        VideoTrackNamingRule(),
        TrackLanguageRule(factory),
        TrackDefaultRule(),
        TrackForcedRule(),
    ]


class FileProcessingEngine:
    """Runs processing rules sequentially for one file."""

    def __init__(self, rules: Iterable[FileProcessingRule]):
        self.rules = list(rules)

    def apply(self, scanned_file: ScannedFile, batch: BatchConfiguration) -> None:
        """Apply every rule in order.

        Raises:
            ValueError: If scanned_file or batch is None
            TrackPositionError: If a scanned track has no usable position
            FileConfigurationNotFoundError: If the file was never initialized
        """
        _check_arguments(scanned_file, batch)

        for rule in self.rules:
            rule.apply(scanned_file, batch)
            logger.debug("Applied processing rule", rule=type(rule).__name__, file=scanned_file.path)
