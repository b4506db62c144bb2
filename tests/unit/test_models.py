"""Unit tests for track, file, language and validation models."""

import pytest

from mkvbatchflow.models.file import ProcessResult, ScannedFile, path_key
from mkvbatchflow.models.language import UNDETERMINED, MatroskaLanguageOption
from mkvbatchflow.models.track import ScannedTrack, TrackType, parse_track_type
from mkvbatchflow.models.validation import ValidationResult, ValidationSeverity


class TestTrackType:
    """Test TrackType maps."""

    def test_from_mediainfo_is_case_insensitive(self):
        """MediaInfo type strings map regardless of case."""
        assert TrackType.from_mediainfo("Audio") == TrackType.AUDIO
        assert TrackType.from_mediainfo("text") == TrackType.TEXT
        assert TrackType.from_mediainfo("GENERAL") == TrackType.GENERAL

    def test_from_mediainfo_unknown(self):
        """Unknown types map to OTHER."""
        assert TrackType.from_mediainfo("Chapters") == TrackType.OTHER
        assert TrackType.from_mediainfo(None) == TrackType.OTHER

    def test_editable_types(self):
        """Only audio, video and text are editable."""
        editable = {t for t in TrackType if t.is_editable}
        assert editable == {TrackType.AUDIO, TrackType.VIDEO, TrackType.TEXT}

    @pytest.mark.parametrize(
        "track_type,prefix",
        [(TrackType.VIDEO, "v"), (TrackType.AUDIO, "a"), (TrackType.TEXT, "s")],
    )
    def test_selector_prefix(self, track_type, prefix):
        """Selector prefixes follow mkvpropedit's track: syntax."""
        assert track_type.selector_prefix == prefix

    def test_selector_prefix_for_non_editable(self):
        """Non-editable types have no selector."""
        with pytest.raises(ValueError, match="no mkvpropedit selector"):
            TrackType.MENU.selector_prefix

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("audio", TrackType.AUDIO),
            ("Video", TrackType.VIDEO),
            ("subtitle", TrackType.TEXT),
            ("sub", TrackType.TEXT),
            (" s ", TrackType.TEXT),
        ],
    )
    def test_parse_track_type(self, value, expected):
        """User-facing names and aliases are accepted."""
        assert parse_track_type(value) == expected

    def test_parse_track_type_rejects_general(self):
        """General is not a user-editable track type."""
        with pytest.raises(ValueError, match="Unknown track type"):
            parse_track_type("general")


class TestScannedFile:
    """Test ScannedFile."""

    def test_path_key_normalizes(self):
        """Redundant separators and dot segments do not change identity."""
        assert path_key("/media/show/./ep1.mkv") == path_key("/media//show/ep1.mkv")

    def test_counts_and_general_track(self, make_file):
        """Tracks are counted per type and the General track is exposed."""
        scanned = make_file("/media/a.mkv", video=1, audio=2, subtitle=3, title="Pilot")

        assert scanned.count_of_type(TrackType.VIDEO) == 1
        assert scanned.count_of_type(TrackType.AUDIO) == 2
        assert scanned.count_of_type(TrackType.TEXT) == 3
        assert scanned.general_track().title == "Pilot"
        assert str(scanned) == "a.mkv (1 video, 2 audio, 3 text)"

    def test_missing_track_list(self):
        """A file without tracks reports nothing."""
        scanned = ScannedFile(path="/media/a.mkv", tracks=None)

        assert scanned.tracks_of_type(TrackType.AUDIO) == []
        assert scanned.general_track() is None

    def test_scanned_track_str(self):
        """Scanned tracks print type, ordinal, format and language."""
        track = ScannedTrack(TrackType.AUDIO, 1, language="jpn", format="FLAC", title="Main")
        assert str(track) == "Audio #1: FLAC [jpn] (Main)"


class TestMatroskaLanguageOption:
    """Test MatroskaLanguageOption."""

    def test_code_prefers_iso639_1(self):
        """The short code is ISO 639-1 when available."""
        option = MatroskaLanguageOption("English", "en", "eng", "eng", "eng")
        assert option.code == "en"

    def test_code_falls_back_to_iso639_2_b(self):
        """Languages without a 639-1 code use 639-2/B."""
        option = MatroskaLanguageOption("Filipino", "", "fil", "fil", "fil")
        assert option.code == "fil"

    def test_undetermined(self):
        """The sentinel writes 'und'."""
        assert UNDETERMINED.code == "und"
        assert str(UNDETERMINED) == "Undetermined"


class TestResults:
    """Test result models."""

    def test_validation_result_str(self):
        """Results print their severity."""
        result = ValidationResult(ValidationSeverity.ERROR, "boom")
        assert str(result) == "[ERROR] boom"
        assert result.is_blocking

    def test_warning_is_not_blocking(self):
        """Warnings never block."""
        assert not ValidationResult(ValidationSeverity.WARNING, "hmm").is_blocking

    def test_process_result_str(self):
        """Process results print a status line."""
        assert str(ProcessResult(status="success", file_path="/m/a.mkv")) == "✓ a.mkv: updated"
        skipped = ProcessResult(status="skipped", file_path="/m/a.mkv", reason="no_changes")
        assert str(skipped) == "⊘ a.mkv: Skipped (no_changes)"
