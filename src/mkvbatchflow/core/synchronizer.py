"""Track list reconciliation between scanned files and the batch configuration."""

from typing import Optional

from mkvbatchflow.core.factory import TrackConfigurationFactory
from mkvbatchflow.models.configuration import (
    BatchConfiguration,
    FileTrackConfiguration,
    TrackConfiguration,
)
from mkvbatchflow.models.file import ScannedFile
from mkvbatchflow.models.track import TrackType
from mkvbatchflow.utils.logger import get_logger

logger = get_logger(__name__)


class TrackCountSynchronizer:
    """Resizes the batch's global slot lists to match a reference file."""

    def __init__(self, batch: BatchConfiguration, factory: TrackConfigurationFactory):
        self.batch = batch
        self.factory = factory

    def ensure_track_count(self, reference_file: Optional[ScannedFile], *track_types: TrackType) -> None:
        """Make each global list's length equal the reference file's track count.

        A missing reference file, a reference without a track list, or no
        requested types makes this a no-op. Types are handled independently:
        missing slots are appended with sequential indexes and surplus slots
        are removed from the end.

        Args:
            reference_file: File whose track counts are authoritative
            *track_types: Track types to reconcile
        """
        if reference_file is None or reference_file.tracks is None or not track_types:
            return

        for track_type in track_types:
            scanned = reference_file.tracks_of_type(track_type)
            tracks = self.batch.get_track_list_for_type(track_type)
            before = len(tracks)

            while len(tracks) < len(scanned):
                position = len(tracks)
                tracks.append(self.factory.create(scanned[position], track_type, position))
            while len(tracks) > len(scanned):
                tracks.pop()

            if before != len(tracks):
                logger.debug(
                    "Synchronized track count",
                    file=reference_file.path,
                    track_type=track_type.value,
                    before=before,
                    after=len(tracks),
                )


class BatchTrackInitializer:
    """Creates a file's per-file slots and grows the global lists to fit them."""

    def __init__(self, batch: BatchConfiguration, factory: TrackConfigurationFactory):
        self.batch = batch
        self.factory = factory

    def initialize(self, scanned_file: ScannedFile, *track_types: TrackType) -> FileTrackConfiguration:
        """Build (or rebuild) the per-file configuration of a scanned file.

        Per-file lists get one slot per scanned track of the type, in scan
        order. Global lists are then grown to the largest per-file count in
        the batch; they are never shrunk here.

        Args:
            scanned_file: File to initialize
            *track_types: Track types to initialize

        Returns:
            The file's per-file configuration

        Raises:
            ValueError: If scanned_file is None
        """
        if scanned_file is None:
            raise ValueError("scanned_file must not be None")

        file_config = self.batch.file_configurations.get(scanned_file.key)
        if file_config is None:
            file_config = FileTrackConfiguration(scanned_file.path)
            self.batch.file_configurations[scanned_file.key] = file_config

        for track_type in track_types:
            scanned = scanned_file.tracks_of_type(track_type)
            tracks = file_config.get_track_list_for_type(track_type)
            while len(tracks) > len(scanned):
                tracks.pop()
            while len(tracks) < len(scanned):
                position = len(tracks)
                tracks.append(self.factory.create(scanned[position], track_type, position))

        self._grow_global_tracks(track_types)

        logger.debug("Initialized file tracks", file=scanned_file.path, configuration=repr(file_config))
        return file_config

    def _grow_global_tracks(self, track_types: tuple[TrackType, ...]) -> None:
        for track_type in track_types:
            widest: list[TrackConfiguration] = []
            for file_config in self.batch.file_configurations.values():
                file_tracks = file_config.get_track_list_for_type(track_type)
                if len(file_tracks) > len(widest):
                    widest = file_tracks

            tracks = self.batch.get_track_list_for_type(track_type)
            while len(tracks) < len(widest):
                position = len(tracks)
                source = widest[position].scanned_track
                if source is not None:
                    tracks.append(self.factory.create(source, track_type, position))
                else:
                    tracks.append(TrackConfiguration(type=track_type, index=position))
