"""mkvpropedit argument building.

Arguments are produced as an ordered list of strings in mkvpropedit's
grammar with string values wrapped in double quotes, for example::

    ['"/media/show.mkv"', '--edit', 'info', '--set', 'title="Pilot"',
     '--edit', 'track:a1', '--set', 'language="en"']

Track selectors use the 1-based Matroska track number (slot index + 1).
"""

from typing import Callable, Optional

from mkvbatchflow.core.errors import ArgumentsBuildError
from mkvbatchflow.models.configuration import BatchConfiguration, TrackConfiguration
from mkvbatchflow.models.file import ScannedFile
from mkvbatchflow.models.track import EDITABLE_TRACK_TYPES, TrackType
from mkvbatchflow.utils.logger import get_logger

logger = get_logger(__name__)


def quote(value: str) -> str:
    """Wrap a value in double quotes, escaping embedded quotes and backslashes."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _flag(value: bool) -> str:
    return "1" if value else "0"


class TrackOptionsBuilder:
    """Collects the edits of a single track."""

    def __init__(self):
        self.track_id: Optional[int] = None
        self.track_type: Optional[TrackType] = None
        self.language: Optional[str] = None
        self.name: Optional[str] = None
        self.is_default: Optional[bool] = None
        self.is_forced: Optional[bool] = None
        self.is_enabled: Optional[bool] = None

    def set_track_id(self, track_id: int) -> "TrackOptionsBuilder":
        self.track_id = track_id
        return self

    def set_track_type(self, track_type: TrackType) -> "TrackOptionsBuilder":
        self.track_type = track_type
        return self

    def with_language(self, language: Optional[str]) -> "TrackOptionsBuilder":
        self.language = language
        return self

    def with_name(self, name: Optional[str]) -> "TrackOptionsBuilder":
        self.name = name
        return self

    def with_default(self, is_default: Optional[bool]) -> "TrackOptionsBuilder":
        self.is_default = is_default
        return self

    def with_forced(self, is_forced: Optional[bool]) -> "TrackOptionsBuilder":
        self.is_forced = is_forced
        return self

    def with_enabled(self, is_enabled: Optional[bool]) -> "TrackOptionsBuilder":
        self.is_enabled = is_enabled
        return self

    def build(self) -> list[str]:
        """Build the ``--edit track:...`` block.

        Raises:
            ArgumentsBuildError: If the track id or type is missing
        """
        if self.track_id is None:
            raise ArgumentsBuildError("Track ID must be specified")
        if self.track_type is None:
            raise ArgumentsBuildError("Track type must be specified")

        try:
            selector = f"track:{self.track_type.selector_prefix}{self.track_id}"
        except ValueError as e:
            raise ArgumentsBuildError(str(e)) from e

        args = ["--edit", selector]
        if self.language is not None:
            args += ["--set", f"language={quote(self.language)}"]
        if self.name is not None:
            args += ["--set", f"name={quote(self.name)}"]
        if self.is_default is not None:
            args += ["--set", f"flag-default={_flag(self.is_default)}"]
        if self.is_forced is not None:
            args += ["--set", f"flag-forced={_flag(self.is_forced)}"]
        if self.is_enabled is not None:
            args += ["--set", f"flag-enabled={_flag(self.is_enabled)}"]
        return args


class MkvPropeditArgumentsBuilder:
    """Fluent builder of one file's mkvpropedit argument list."""

    def __init__(self):
        self._input_file: Optional[str] = None
        self._title: Optional[str] = None
        self._add_track_statistics_tags = False
        self._delete_track_statistics_tags = False
        self._tracks: list[TrackOptionsBuilder] = []

    def set_input_file(self, file_path: str) -> "MkvPropeditArgumentsBuilder":
        self._input_file = file_path
        return self

    def with_title(self, title: Optional[str]) -> "MkvPropeditArgumentsBuilder":
        self._title = title
        return self

    def with_add_track_statistics_tags(self, enabled: bool = True) -> "MkvPropeditArgumentsBuilder":
        self._add_track_statistics_tags = enabled
        return self

    def with_delete_track_statistics_tags(self, enabled: bool = True) -> "MkvPropeditArgumentsBuilder":
        self._delete_track_statistics_tags = enabled
        return self

    def add_track(
        self, configure: Callable[[TrackOptionsBuilder], TrackOptionsBuilder]
    ) -> "MkvPropeditArgumentsBuilder":
        track_builder = TrackOptionsBuilder()
        configure(track_builder)
        self._tracks.append(track_builder)
        return self

    def is_empty(self) -> bool:
        """True when no title, statistics-tag or track edit has been added."""
        return (
            self._title is None
            and not self._add_track_statistics_tags
            and not self._delete_track_statistics_tags
            and not self._tracks
        )

    def build(self) -> list[str]:
        """Build the argument list.

        Raises:
            ArgumentsBuildError: If no input file was set or a track block is incomplete
        """
        if not self._input_file:
            raise ArgumentsBuildError("Target file (input) must be specified")

        args = [quote(self._input_file)]

        if self._title is not None:
            args += ["--edit", "info", "--set", f"title={quote(self._title)}"]

        if self._add_track_statistics_tags:
            args.append("--add-track-statistics-tags")
        if self._delete_track_statistics_tags:
            args.append("--delete-track-statistics-tags")

        for track_builder in self._tracks:
            args += track_builder.build()

        return args


def _configure_track(track: TrackConfiguration) -> Callable[[TrackOptionsBuilder], TrackOptionsBuilder]:
    def configure(builder: TrackOptionsBuilder) -> TrackOptionsBuilder:
        return (
            builder.set_track_id(track.index + 1)
            .set_track_type(track.type)
            .with_language(track.language.code if track.should_modify_language else None)
            .with_name(track.name if track.should_modify_name else None)
            .with_default(track.default if track.should_modify_default else None)
            .with_forced(track.forced if track.should_modify_forced else None)
            .with_enabled(track.enabled if track.should_modify_enabled else None)
        )

    return configure


def build_file_arguments(scanned_file: ScannedFile, batch: BatchConfiguration) -> list[str]:
    """Compile one file's pending edits into mkvpropedit arguments.

    Args:
        scanned_file: File to build arguments for
        batch: Batch configuration holding the file's per-file slots

    Returns:
        Argument list, or an empty list when the file has nothing to change

    Raises:
        FileConfigurationNotFoundError: If the file has no per-file configuration
    """
    builder = MkvPropeditArgumentsBuilder()

    if batch.should_modify_title:
        builder.with_title(batch.title)

    if batch.should_modify_track_statistics_tags:
        builder.with_add_track_statistics_tags(batch.add_track_statistics_tags)
        builder.with_delete_track_statistics_tags(batch.delete_track_statistics_tags)

    for track_type in EDITABLE_TRACK_TYPES:
        for track in batch.get_track_list_for_file(scanned_file, track_type):
            if not track.has_pending_changes:
                continue
            builder.add_track(_configure_track(track))

    if builder.is_empty():
        logger.debug("No changes for file, skipping", file=scanned_file.path)
        return []

    return builder.set_input_file(scanned_file.path).build()


def build_batch_arguments(batch: BatchConfiguration) -> list[str]:
    """Build one space-joined mkvpropedit command line per file with changes.

    Returns:
        Command strings in file order; files without changes are omitted
    """
    commands = []
    for scanned_file in batch.files:
        arguments = build_file_arguments(scanned_file, batch)
        if arguments:
            commands.append(" ".join(arguments))
    return commands
