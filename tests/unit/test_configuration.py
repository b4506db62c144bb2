"""Unit tests for the batch configuration aggregate."""

import pytest

from mkvbatchflow.core.errors import FileConfigurationNotFoundError
from mkvbatchflow.models.configuration import (
    BatchConfiguration,
    FileTrackConfiguration,
    TrackConfiguration,
)
from mkvbatchflow.models.language import MatroskaLanguageOption
from mkvbatchflow.models.track import TrackType

JAPANESE = MatroskaLanguageOption("Japanese", "ja", "jpn", "jpn", "jpn")


def _attach_file(batch: BatchConfiguration, scanned_file, audio: int = 0, subtitle: int = 0):
    batch.add_file(scanned_file)
    config = FileTrackConfiguration(scanned_file.path)
    config.audio_tracks.extend(TrackConfiguration(TrackType.AUDIO, i) for i in range(audio))
    config.subtitle_tracks.extend(TrackConfiguration(TrackType.TEXT, i) for i in range(subtitle))
    batch.file_configurations[scanned_file.key] = config
    return config


class TestTrackConfiguration:
    """Test TrackConfiguration change notification."""

    def test_notifies_on_change(self):
        """Subscribers receive (track, property) for changed values."""
        track = TrackConfiguration(TrackType.AUDIO, 0)
        events = []
        track.subscribe(lambda entity, prop: events.append((entity, prop)))

        track.name = "Commentary"
        track.name = "Commentary"
        track.should_modify_name = True

        assert events == [(track, "name"), (track, "should_modify_name")]

    def test_unsubscribe(self):
        """Unsubscribed listeners are not called."""
        track = TrackConfiguration(TrackType.AUDIO, 0)
        events = []
        listener = lambda entity, prop: events.append(prop)  # noqa: E731
        track.subscribe(listener)
        track.unsubscribe(listener)

        track.forced = True

        assert events == []

    def test_has_pending_changes(self):
        """Any should-modify flag makes a slot pending."""
        track = TrackConfiguration(TrackType.VIDEO, 0)
        assert not track.has_pending_changes

        track.should_modify_enabled = True
        assert track.has_pending_changes


class TestBatchFileSet:
    """Test file set management."""

    def test_add_file_deduplicates_by_path(self, batch, make_file):
        """A file with the same normalized path is only added once."""
        assert batch.add_file(make_file("/media/a.mkv"))
        assert not batch.add_file(make_file("/media/./a.mkv"))
        assert len(batch.files) == 1

    def test_remove_file_drops_configuration(self, batch, make_file):
        """Removing a file drops its per-file configuration."""
        first, second = make_file("/media/a.mkv"), make_file("/media/b.mkv")
        _attach_file(batch, first, audio=1)
        _attach_file(batch, second, audio=1)

        assert batch.remove_file("/media/a.mkv")

        assert first.key not in batch.file_configurations
        assert second.key in batch.file_configurations
        assert not batch.remove_file("/media/a.mkv")

    def test_removing_last_file_resets_state(self, batch, make_file):
        """The batch resets once it holds no files."""
        scanned = make_file("/media/a.mkv")
        _attach_file(batch, scanned, audio=2)
        batch.audio_tracks.append(TrackConfiguration(TrackType.AUDIO, 0))
        batch.title = "Pilot"
        batch.should_modify_title = True

        batch.remove_file(scanned)

        assert batch.files == []
        assert batch.audio_tracks == []
        assert batch.file_configurations == {}
        assert batch.title == ""
        assert not batch.should_modify_title

    def test_clear(self, batch, make_file):
        """clear() drops every file and slot."""
        _attach_file(batch, make_file("/media/a.mkv"), subtitle=3)
        batch.subtitle_tracks.append(TrackConfiguration(TrackType.TEXT, 0))

        batch.clear()

        assert batch.files == []
        assert batch.subtitle_tracks == []
        assert batch.file_configurations == {}

    def test_get_track_list_for_file_missing(self, batch):
        """Looking up an unknown file raises."""
        with pytest.raises(FileConfigurationNotFoundError, match="/media/missing.mkv"):
            batch.get_track_list_for_file("/media/missing.mkv", TrackType.AUDIO)

    def test_non_editable_track_list_is_empty(self, batch):
        """Non-editable types have no slot list."""
        assert batch.get_track_list_for_type(TrackType.GENERAL) == []


class TestStaleTracking:
    """Test stale file tracking and migration."""

    def test_mark_and_clear(self, batch, make_file):
        """Files can be flagged for re-scan and cleared again."""
        scanned = make_file("/media/a.mkv")
        batch.add_file(scanned)

        batch.mark_file_stale("/media/a.mkv")
        assert batch.is_file_stale("/media/a.mkv")
        assert batch.stale_files() == [scanned]

        batch.clear_stale_flag("/media/a.mkv")
        assert not batch.is_file_stale("/media/a.mkv")

    def test_unknown_file_is_never_stale(self, batch):
        """Only files in the batch can be marked stale."""
        batch.mark_file_stale("/media/nope.mkv")
        assert not batch.is_file_stale("/media/nope.mkv")

    def test_migrate_file_configuration(self, batch, make_file):
        """A per-file configuration moves to a new path identity."""
        scanned = make_file("/media/a.mkv")
        config = _attach_file(batch, scanned, audio=1)

        batch.migrate_file_configuration("/media/a.mkv", "/media/renamed.mkv")

        assert batch.get_file_configuration("/media/renamed.mkv") is config
        assert config.file_path == "/media/renamed.mkv"
        assert scanned.key not in batch.file_configurations

    def test_replace_file_with_rename(self, batch, make_file):
        """A renamed file keeps its position, configuration and loses its stale flag."""
        _attach_file(batch, make_file("/media/a.mkv"))
        config = _attach_file(batch, make_file("/media/b.mkv"), audio=1)
        _attach_file(batch, make_file("/media/c.mkv"))
        batch.mark_file_stale("/media/b.mkv")

        batch.replace_file(make_file("/media/b2.mkv"), previous_path="/media/b.mkv")

        assert [f.path for f in batch.files] == ["/media/a.mkv", "/media/b2.mkv", "/media/c.mkv"]
        assert batch.get_file_configuration("/media/b2.mkv") is config
        assert "/media/b.mkv" not in batch
        assert batch.stale_files() == []

    def test_replace_file_in_place(self, batch, make_file):
        """Re-scanning under the same path swaps the scan data only."""
        config = _attach_file(batch, make_file("/media/a.mkv"), audio=1)
        rescanned = make_file("/media/a.mkv", audio=2)

        batch.replace_file(rescanned)

        assert batch.get_file("/media/a.mkv") is rescanned
        assert batch.get_file_configuration(rescanned) is config


class TestApplyGlobalEdits:
    """Test pushing earlier global edits into a late file."""

    def test_copies_flagged_properties(self, batch, make_file):
        """Only flagged properties reach the slots the file has."""
        _attach_file(batch, make_file("/media/a.mkv"), audio=1, subtitle=2)
        batch.audio_tracks.append(TrackConfiguration(TrackType.AUDIO, 0))
        batch.subtitle_tracks.extend(TrackConfiguration(TrackType.TEXT, i) for i in range(2))
        batch.set_track_property(TrackType.AUDIO, 0, "language", JAPANESE)
        batch.set_track_property(TrackType.TEXT, 1, "name", "Signs")
        batch.audio_tracks[0].name = "Unflagged"

        late = _attach_file(batch, make_file("/media/late.mkv"), audio=1, subtitle=1)
        updated = batch.apply_global_edits("/media/late.mkv")

        assert updated == 1
        assert late.audio_tracks[0].language == JAPANESE
        assert late.audio_tracks[0].should_modify_language
        assert late.audio_tracks[0].name == ""
        assert not late.subtitle_tracks[0].should_modify_name

    def test_unknown_file(self, batch):
        """A file without a per-file configuration is rejected."""
        with pytest.raises(FileConfigurationNotFoundError):
            batch.apply_global_edits("/media/nope.mkv")


class TestPropagation:
    """Test propagation of global slot edits to per-file slots."""

    @pytest.fixture
    def populated(self, batch, make_file):
        """Batch with a 1-subtitle file and a 3-subtitle file and 3 global slots."""
        small = _attach_file(batch, make_file("/media/small.mkv"), audio=1, subtitle=1)
        large = _attach_file(batch, make_file("/media/large.mkv"), audio=1, subtitle=3)
        batch.audio_tracks.append(TrackConfiguration(TrackType.AUDIO, 0))
        batch.subtitle_tracks.extend(TrackConfiguration(TrackType.TEXT, i) for i in range(3))
        return batch, small, large

    def test_edit_with_flag_propagates(self, populated):
        """A flagged edit reaches every file that has the slot."""
        batch, small, large = populated

        batch.set_track_property(TrackType.AUDIO, 0, "language", JAPANESE)

        for config in (small, large):
            track = config.audio_tracks[0]
            assert track.language == JAPANESE
            assert track.should_modify_language

    def test_edit_skips_files_without_the_slot(self, populated):
        """Files with fewer tracks are left alone."""
        batch, small, large = populated

        batch.set_track_property(TrackType.TEXT, 2, "name", "Signs")

        assert large.subtitle_tracks[2].name == "Signs"
        assert large.subtitle_tracks[2].should_modify_name
        assert not small.subtitle_tracks[0].should_modify_name
        assert small.subtitle_tracks[0].name == ""

    def test_value_without_flag_does_not_propagate(self, populated):
        """Values are only pushed down while their flag is asserted."""
        batch, small, _ = populated

        batch.audio_tracks[0].name = "Main"

        assert small.audio_tracks[0].name == ""

    def test_clearing_flag_propagates(self, populated):
        """De-asserting a flag removes the pending change from files."""
        batch, small, _ = populated
        batch.set_track_property(TrackType.AUDIO, 0, "forced", True)

        batch.audio_tracks[0].should_modify_forced = False

        assert not small.audio_tracks[0].should_modify_forced

    def test_detached_slot_does_not_propagate(self, populated):
        """Slots removed from a global list stop propagating."""
        batch, _, large = populated
        removed = batch.subtitle_tracks.pop()

        removed.name = "Gone"
        removed.should_modify_name = True

        assert not large.subtitle_tracks[2].should_modify_name

    def test_subscribers_receive_events(self, populated):
        """Batch observers see slot, field and file-set changes."""
        batch, _, _ = populated
        events = []
        batch.subscribe(lambda entity, prop: events.append(prop))

        batch.subtitle_tracks[1].should_modify_default = True
        batch.title = "Episode 1"
        batch.remove_file("/media/small.mkv")

        assert events == ["should_modify_default", "title", "files"]
