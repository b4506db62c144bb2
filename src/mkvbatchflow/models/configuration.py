"""Editable track configuration and batch aggregate models.

The batch aggregate keeps one *global* slot list per editable track type (the
common editing surface) next to one *per-file* configuration for every file in
the batch. Edits made on a global slot are pushed down to the per-file slot at
the same position of every file that has one, as long as the matching
should-modify flag is asserted.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from mkvbatchflow.core.errors import FileConfigurationNotFoundError
from mkvbatchflow.models.file import ScannedFile, path_key
from mkvbatchflow.models.language import UNDETERMINED, MatroskaLanguageOption
from mkvbatchflow.models.track import EDITABLE_TRACK_TYPES, ScannedTrack, TrackType
from mkvbatchflow.utils.logger import get_logger

logger = get_logger(__name__)

# (entity, property_name)
ChangeListener = Callable[[Any, str], None]

# Editable property -> flag gating whether it is written. Order is the
# order in which mkvpropedit --set pairs are emitted.
MODIFY_FLAGS = {
    "language": "should_modify_language",
    "name": "should_modify_name",
    "default": "should_modify_default",
    "forced": "should_modify_forced",
    "enabled": "should_modify_enabled",
}
FLAG_PROPERTIES = {flag: prop for prop, flag in MODIFY_FLAGS.items()}

_MISSING = object()


@dataclass(eq=False)
class TrackConfiguration:
    """Edit intent for one track slot.

    ``index`` is the 0-based position of the track within its type and is the
    join key with the scanned ordinal. Setting any public attribute notifies
    subscribers with ``(track, attribute_name)`` when the value changes.
    """

    type: TrackType
    index: int
    scanned_track: Optional[ScannedTrack] = None
    name: str = ""
    language: MatroskaLanguageOption = UNDETERMINED
    default: bool = False
    forced: bool = False
    enabled: bool = True
    should_modify_language: bool = False
    should_modify_name: bool = False
    should_modify_default: bool = False
    should_modify_forced: bool = False
    should_modify_enabled: bool = False
    _listeners: list = field(default_factory=list, init=False, repr=False)

    def __setattr__(self, name: str, value: Any) -> None:
        old = self.__dict__.get(name, _MISSING)
        object.__setattr__(self, name, value)
        if name.startswith("_") or old is _MISSING or old == value:
            return
        for listener in list(self.__dict__.get("_listeners", ())):
            listener(self, name)

    def subscribe(self, listener: ChangeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def has_pending_changes(self) -> bool:
        """True if any should-modify flag is set."""
        return any(getattr(self, flag) for flag in MODIFY_FLAGS.values())

    def snapshot(self) -> dict[str, Any]:
        """Plain copy of the editable state."""
        state = {"type": self.type, "index": self.index}
        for prop, flag in MODIFY_FLAGS.items():
            state[prop] = getattr(self, prop)
            state[flag] = getattr(self, flag)
        return state


class TrackList(list):
    """A list of track slots that keeps a listener subscribed to every slot it holds.

    Structural changes are reported to the listener as ``(track_list, "items")``.
    """

    def __init__(self, track_type: TrackType, listener: Optional[ChangeListener] = None):
        super().__init__()
        self.track_type = track_type
        self._listener = listener

    def _attach(self, tracks: Iterable[TrackConfiguration]) -> None:
        if self._listener is None:
            return
        for track in tracks:
            track.subscribe(self._listener)
        self._listener(self, "items")

    def _detach(self, tracks: Iterable[TrackConfiguration]) -> None:
        if self._listener is None:
            return
        for track in tracks:
            track.unsubscribe(self._listener)
        self._listener(self, "items")

    def append(self, track: TrackConfiguration) -> None:
        super().append(track)
        self._attach([track])

    def extend(self, tracks: Iterable[TrackConfiguration]) -> None:
        tracks = list(tracks)
        super().extend(tracks)
        self._attach(tracks)

    def __iadd__(self, tracks):
        self.extend(tracks)
        return self

    def insert(self, position: int, track: TrackConfiguration) -> None:
        super().insert(position, track)
        self._attach([track])

    def pop(self, position: int = -1) -> TrackConfiguration:
        track = super().pop(position)
        self._detach([track])
        return track

    def remove(self, track: TrackConfiguration) -> None:
        super().remove(track)
        self._detach([track])

    def clear(self) -> None:
        removed = list(self)
        super().clear()
        if removed:
            self._detach(removed)

    def __setitem__(self, position, value) -> None:
        old = self[position]
        super().__setitem__(position, value)
        self._detach(old if isinstance(position, slice) else [old])
        self._attach(value if isinstance(position, slice) else [value])

    def __delitem__(self, position) -> None:
        old = self[position]
        super().__delitem__(position)
        self._detach(old if isinstance(position, slice) else [old])


class FileTrackConfiguration:
    """Per-file track slots; list lengths equal the file's scanned track counts."""

    def __init__(self, file_path: str):
        self.file_path = file_path
        self.audio_tracks = TrackList(TrackType.AUDIO)
        self.video_tracks = TrackList(TrackType.VIDEO)
        self.subtitle_tracks = TrackList(TrackType.TEXT)

    def get_track_list_for_type(self, track_type: TrackType) -> list[TrackConfiguration]:
        """Slot list for an editable type; an empty throwaway list otherwise."""
        if track_type == TrackType.AUDIO:
            return self.audio_tracks
        if track_type == TrackType.VIDEO:
            return self.video_tracks
        if track_type == TrackType.TEXT:
            return self.subtitle_tracks
        return []

    def __repr__(self) -> str:
        return (
            f"FileTrackConfiguration({self.file_path!r}, audio={len(self.audio_tracks)}, "
            f"video={len(self.video_tracks)}, subtitle={len(self.subtitle_tracks)})"
        )


class BatchConfiguration:
    """The editable state of one batch session.

    Observers registered with :meth:`subscribe` are called with
    ``(entity, property_name)`` for every change to the batch-level fields,
    the file set, the global slot lists and the global slots themselves.
    """

    def __init__(self):
        self._listeners: list[ChangeListener] = []
        self._files: dict[str, ScannedFile] = {}
        self._stale_file_keys: set[str] = set()
        self.file_configurations: dict[str, FileTrackConfiguration] = {}
        self.audio_tracks = TrackList(TrackType.AUDIO, self._on_global_change)
        self.video_tracks = TrackList(TrackType.VIDEO, self._on_global_change)
        self.subtitle_tracks = TrackList(TrackType.TEXT, self._on_global_change)
        self._title = ""
        self._should_modify_title = False
        self._add_track_statistics_tags = True
        self._delete_track_statistics_tags = False
        self._should_modify_track_statistics_tags = False

    # -- observers -----------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> None:
        """Register a ``listener(entity, property_name)`` change observer."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, entity: Any, property_name: str) -> None:
        for listener in list(self._listeners):
            listener(entity, property_name)

    def _set(self, attribute: str, value: Any) -> None:
        if getattr(self, f"_{attribute}") == value:
            return
        setattr(self, f"_{attribute}", value)
        self._notify(self, attribute)

    # -- batch-level fields -------------------------------------------

    @property
    def title(self) -> str:
        return self._title

    @title.setter
    def title(self, value: Optional[str]) -> None:
        self._set("title", value or "")

    @property
    def should_modify_title(self) -> bool:
        return self._should_modify_title

    @should_modify_title.setter
    def should_modify_title(self, value: bool) -> None:
        self._set("should_modify_title", value)

    @property
    def add_track_statistics_tags(self) -> bool:
        return self._add_track_statistics_tags

    @add_track_statistics_tags.setter
    def add_track_statistics_tags(self, value: bool) -> None:
        self._set("add_track_statistics_tags", value)

    @property
    def delete_track_statistics_tags(self) -> bool:
        return self._delete_track_statistics_tags

    @delete_track_statistics_tags.setter
    def delete_track_statistics_tags(self, value: bool) -> None:
        self._set("delete_track_statistics_tags", value)

    @property
    def should_modify_track_statistics_tags(self) -> bool:
        return self._should_modify_track_statistics_tags

    @should_modify_track_statistics_tags.setter
    def should_modify_track_statistics_tags(self, value: bool) -> None:
        self._set("should_modify_track_statistics_tags", value)

    # -- file set --------------------------------------------------------

    @property
    def files(self) -> list[ScannedFile]:
        """Files in the batch, in insertion order."""
        return list(self._files.values())

    def add_file(self, scanned_file: ScannedFile) -> bool:
        """Add a file unless a file with the same path identity is present.

        Returns:
            True if the file was added
        """
        key = scanned_file.key
        if key in self._files:
            logger.debug("Duplicate file ignored", file=scanned_file.path)
            return False
        self._files[key] = scanned_file
        self._notify(self, "files")
        return True

    def replace_file(self, scanned_file: ScannedFile, previous_path: Optional[str] = None) -> None:
        """Swap in a re-scanned file, keeping its per-file configuration.

        Args:
            scanned_file: Re-scanned file
            previous_path: Former path of a renamed file; its position in the
                file set and its per-file configuration move to the new path
        """
        old_key = path_key(previous_path) if previous_path is not None else scanned_file.key
        if old_key != scanned_file.key and old_key in self._files:
            self._files = {
                (scanned_file.key if key == old_key else key): (scanned_file if key == old_key else f)
                for key, f in self._files.items()
            }
            self._stale_file_keys.discard(old_key)
            self.migrate_file_configuration(previous_path, scanned_file.path)
        else:
            self._files[scanned_file.key] = scanned_file
        self.clear_stale_flag(scanned_file.path)
        self._notify(self, "files")

    def remove_file(self, file: ScannedFile | str) -> bool:
        """Remove a file and its per-file configuration.

        Removing the last file resets the whole batch state.

        Returns:
            True if the file was present
        """
        key = file.key if isinstance(file, ScannedFile) else path_key(file)
        if self._files.pop(key, None) is None:
            return False

        self._stale_file_keys.discard(key)
        self.file_configurations.pop(key, None)
        if not self._files:
            self._reset_state()
        self._notify(self, "files")
        return True

    def get_file(self, file_path: str) -> Optional[ScannedFile]:
        return self._files.get(path_key(file_path))

    def __contains__(self, file: ScannedFile | str) -> bool:
        key = file.key if isinstance(file, ScannedFile) else path_key(file)
        return key in self._files

    def clear(self) -> None:
        """Drop every file and reset the batch to its initial state."""
        self._files.clear()
        self._stale_file_keys.clear()
        self._reset_state()
        self._notify(self, "files")

    def _reset_state(self) -> None:
        self.title = ""
        self.should_modify_title = False
        self.add_track_statistics_tags = True
        self.delete_track_statistics_tags = False
        self.should_modify_track_statistics_tags = False
        self.file_configurations.clear()
        for track_type in EDITABLE_TRACK_TYPES:
            self.get_track_list_for_type(track_type).clear()

    # -- stale tracking --------------------------------------------------

    def mark_file_stale(self, file_path: str) -> None:
        """Flag a file whose metadata needs re-scanning."""
        key = path_key(file_path)
        if key in self._stale_file_keys or key not in self._files:
            return
        self._stale_file_keys.add(key)
        logger.info("File marked as stale", file=file_path)

    def is_file_stale(self, file_path: str) -> bool:
        return path_key(file_path) in self._stale_file_keys

    def clear_stale_flag(self, file_path: str) -> None:
        key = path_key(file_path)
        if key in self._stale_file_keys:
            self._stale_file_keys.remove(key)
            logger.debug("Stale flag cleared", file=file_path)

    def stale_files(self) -> list[ScannedFile]:
        return [f for k, f in self._files.items() if k in self._stale_file_keys]

    def migrate_file_configuration(self, old_path: str, new_path: str) -> None:
        """Move a per-file configuration to a new path identity."""
        old_key, new_key = path_key(old_path), path_key(new_path)
        config = self.file_configurations.pop(old_key, None)
        if config is None:
            logger.debug("Migration skipped, no configuration", old=old_path)
            return
        config.file_path = new_path
        self.file_configurations[new_key] = config
        logger.info("File configuration migrated", old=old_path, new=new_path)

    # -- track lists -----------------------------------------------------

    def get_track_list_for_type(self, track_type: TrackType) -> list[TrackConfiguration]:
        """Global slot list for an editable type; an empty throwaway list otherwise."""
        if track_type == TrackType.AUDIO:
            return self.audio_tracks
        if track_type == TrackType.VIDEO:
            return self.video_tracks
        if track_type == TrackType.TEXT:
            return self.subtitle_tracks
        return []

    def get_file_configuration(self, file: ScannedFile | str) -> FileTrackConfiguration:
        """Per-file configuration of a file.

        Raises:
            FileConfigurationNotFoundError: If the file has no per-file configuration
        """
        key = file.key if isinstance(file, ScannedFile) else path_key(file)
        try:
            return self.file_configurations[key]
        except KeyError:
            raise FileConfigurationNotFoundError(key) from None

    def get_track_list_for_file(
        self, file: ScannedFile | str, track_type: TrackType
    ) -> list[TrackConfiguration]:
        """Per-file slot list of one type.

        Raises:
            FileConfigurationNotFoundError: If the file has no per-file configuration
        """
        return self.get_file_configuration(file).get_track_list_for_type(track_type)

    def set_track_property(
        self,
        track_type: TrackType,
        index: int,
        property_name: str,
        value: Any,
        modify: bool = True,
    ) -> TrackConfiguration:
        """Edit one property of a global slot and assert (or clear) its flag.

        Raises:
            ValueError: If the property is not editable
            IndexError: If the slot does not exist
        """
        if property_name not in MODIFY_FLAGS:
            raise ValueError(f"Property {property_name!r} is not editable")
        track = self.get_track_list_for_type(track_type)[index]
        setattr(track, property_name, value)
        setattr(track, MODIFY_FLAGS[property_name], modify)
        return track

    # -- propagation -----------------------------------------------------

    def _on_global_change(self, entity: Any, property_name: str) -> None:
        if isinstance(entity, TrackConfiguration):
            self._propagate(entity, property_name)
        self._notify(entity, property_name)

    def apply_global_edits(self, file: ScannedFile | str) -> int:
        """Copy every flagged global edit into one file's per-file slots.

        Used for files initialized after the edits were made; slots are
        matched by list position like regular propagation.

        Returns:
            Number of per-file slots that received an edit

        Raises:
            FileConfigurationNotFoundError: If the file has no per-file configuration
        """
        file_config = self.get_file_configuration(file)
        updated = 0
        for track_type in EDITABLE_TRACK_TYPES:
            global_tracks = self.get_track_list_for_type(track_type)
            file_tracks = file_config.get_track_list_for_type(track_type)
            for global_track, file_track in zip(global_tracks, file_tracks):
                flagged = [prop for prop, flag in MODIFY_FLAGS.items() if getattr(global_track, flag)]
                for prop in flagged:
                    setattr(file_track, prop, getattr(global_track, prop))
                    setattr(file_track, MODIFY_FLAGS[prop], True)
                if flagged:
                    updated += 1

        if updated:
            logger.debug("Applied global edits to file", file=file_config.file_path, tracks=updated)
        return updated

    def _propagate(self, track: TrackConfiguration, property_name: str) -> None:
        if property_name in FLAG_PROPERTIES:
            value_property = FLAG_PROPERTIES[property_name]
            properties = [value_property, property_name] if getattr(track, property_name) else [property_name]
        elif property_name in MODIFY_FLAGS and getattr(track, MODIFY_FLAGS[property_name]):
            properties = [property_name]
        else:
            return

        global_tracks = self.get_track_list_for_type(track.type)
        position = next((i for i, t in enumerate(global_tracks) if t is track), None)
        if position is None:
            return

        updated = 0
        for file_config in self.file_configurations.values():
            file_tracks = file_config.get_track_list_for_type(track.type)
            if position >= len(file_tracks):
                continue
            for prop in properties:
                setattr(file_tracks[position], prop, getattr(track, prop))
            updated += 1

        logger.debug(
            "Propagated global track edit",
            track_type=track.type.value,
            position=position,
            properties=properties,
            files=updated,
        )
