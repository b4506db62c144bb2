"""Unit tests for batch validation rules."""

import pytest

from mkvbatchflow.config import ValidationConfig, ValidationSeveritySettings
from mkvbatchflow.core.validation import (
    DefaultFlagConsistencyRule,
    FileFormatValidationRule,
    ForcedFlagConsistencyRule,
    LanguageConsistencyRule,
    TrackCountConsistencyRule,
    ValidationEngine,
    has_blocking_errors,
)
from mkvbatchflow.models.track import TrackType
from mkvbatchflow.models.validation import StrictnessMode, ValidationResult, ValidationSeverity


@pytest.fixture
def strict_severities():
    """Severities of the strict preset."""
    return ValidationConfig(mode=StrictnessMode.STRICT).effective_severities()


class TestTrackCountConsistencyRule:
    """Test TrackCountConsistencyRule."""

    def test_reports_mismatching_type_only(self, make_file, default_severities):
        """One error names the mismatching type and lists every file."""
        files = [make_file("A", video=1, audio=2), make_file("B", video=1, audio=1)]

        results = list(TrackCountConsistencyRule().validate(files, default_severities))

        assert len(results) == 1
        assert results[0].is_error
        assert "Audio" in results[0].message
        assert "'A': 2, 'B': 1" in results[0].message
        assert "Video" not in results[0].message

    def test_lists_all_files(self, make_file, default_severities):
        """Matching files are listed too once a mismatch exists."""
        files = [make_file("A", subtitle=1), make_file("B", subtitle=1), make_file("C", subtitle=17)]

        (result,) = TrackCountConsistencyRule().validate(files, default_severities)

        assert result.message == "Track count mismatch for Text tracks: 'A': 1, 'B': 1, 'C': 17"

    def test_single_file_is_consistent(self, make_file, default_severities):
        """Fewer than two files never mismatch."""
        assert list(TrackCountConsistencyRule().validate([make_file("A", audio=3)], default_severities)) == []

    def test_off_suppresses(self, make_file):
        """An Off severity disables the rule."""
        settings = ValidationSeveritySettings(track_count_parity=ValidationSeverity.OFF)
        files = [make_file("A", audio=2), make_file("B", audio=1)]

        assert list(TrackCountConsistencyRule().validate(files, settings)) == []


class TestTrackPropertyConsistencyRules:
    """Test language and flag consistency rules."""

    def test_language_mismatch(self, make_file, make_track, strict_severities):
        """Differing languages at a position are reported against the first file."""
        files = [
            make_file("/a.mkv", tracks=[make_track(TrackType.AUDIO, 0, language="ja")]),
            make_file("/b.mkv", tracks=[make_track(TrackType.AUDIO, 0, language="en")]),
        ]

        (result,) = LanguageConsistencyRule().validate(files, strict_severities)

        assert result.is_error
        assert result.file_path == "/b.mkv"
        assert result.message == (
            "Language mismatch in Audio tracks at position 1: 'ja' (in '/a.mkv') vs 'en' (in '/b.mkv')"
        )

    def test_skips_files_with_different_counts(self, make_file, make_track, strict_severities):
        """Count differences are left to the count rule."""
        files = [
            make_file("/a.mkv", tracks=[make_track(TrackType.TEXT, 0, language="en")]),
            make_file(
                "/b.mkv",
                tracks=[make_track(TrackType.TEXT, 0, language="fr"), make_track(TrackType.TEXT, 1)],
            ),
        ]

        assert list(LanguageConsistencyRule().validate(files, strict_severities)) == []

    def test_default_flag_severity_per_type(self, make_file, make_track, strict_severities):
        """Strict mode warns on audio default flags and ignores subtitle defaults."""
        files = [
            make_file(
                "/a.mkv",
                tracks=[make_track(TrackType.AUDIO, 0, default=True), make_track(TrackType.TEXT, 0, default=True)],
            ),
            make_file(
                "/b.mkv",
                tracks=[make_track(TrackType.AUDIO, 0, default=False), make_track(TrackType.TEXT, 0, default=False)],
            ),
        ]

        results = list(DefaultFlagConsistencyRule().validate(files, strict_severities))

        assert len(results) == 1
        assert results[0].is_warning
        assert "Audio tracks" in results[0].message

    def test_forced_flag_ignores_video(self, make_file, make_track):
        """Forced flags are only compared for audio and subtitle tracks."""
        settings = ValidationSeveritySettings()
        settings.video.forced_flag = ValidationSeverity.ERROR
        settings.subtitle.forced_flag = ValidationSeverity.INFO
        files = [
            make_file(
                "/a.mkv",
                tracks=[make_track(TrackType.VIDEO, 0, forced=True), make_track(TrackType.TEXT, 0, forced=True)],
            ),
            make_file("/b.mkv", tracks=[make_track(TrackType.VIDEO, 0), make_track(TrackType.TEXT, 0)]),
        ]

        (result,) = ForcedFlagConsistencyRule().validate(files, settings)

        assert result.is_info
        assert "Text tracks" in result.message

    def test_off_suppresses(self, make_file, make_track):
        """Off severities skip the comparison."""
        settings = ValidationSeveritySettings()
        settings.audio.language = ValidationSeverity.OFF
        files = [
            make_file("/a.mkv", tracks=[make_track(TrackType.AUDIO, 0, language="ja")]),
            make_file("/b.mkv", tracks=[make_track(TrackType.AUDIO, 0, language="en")]),
        ]

        assert list(LanguageConsistencyRule().validate(files, settings)) == []


class TestFileFormatValidationRule:
    """Test FileFormatValidationRule."""

    def test_accepts_matroska(self, make_file, default_severities):
        """Matroska files with a .mkv extension pass."""
        assert list(FileFormatValidationRule().validate([make_file("/a.MKV")], default_severities)) == []

    @pytest.mark.parametrize(
        "path,general_format",
        [("/a.mp4", "Matroska"), ("/a.mkv", "MPEG-4"), ("/a.mkv", None)],
    )
    def test_rejects_other_files(self, make_file, default_severities, path, general_format):
        """Wrong extensions or container formats are errors."""
        files = [make_file(path, general_format=general_format)]

        (result,) = FileFormatValidationRule().validate(files, default_severities)

        assert result.is_error
        assert result.message == f"File is not a supported or valid Matroska file: '{path}'"


class TestValidationEngine:
    """Test ValidationEngine."""

    def test_collects_results_in_rule_order(self, make_file, make_track, strict_severities):
        """Format findings come before count findings."""
        files = [make_file("/a.mp4", audio=2), make_file("/b.mkv", audio=1)]

        results = ValidationEngine(strict_severities).validate(files)

        assert [r.message.split(" ")[0] for r in results] == ["File", "Track"]
        assert has_blocking_errors(results)

    def test_lenient_preset_never_blocks(self, make_file, make_track):
        """Lenient mode turns every finding into info."""
        settings = ValidationConfig(mode="LENIENT").effective_severities()
        files = [
            make_file("/a.mkv", tracks=[make_track(TrackType.AUDIO, 0, language="ja")]),
            make_file(
                "/b.mkv",
                tracks=[make_track(TrackType.AUDIO, 0, language="en"), make_track(TrackType.AUDIO, 1)],
            ),
        ]

        results = ValidationEngine(settings).validate(files)

        assert results
        assert all(r.is_info for r in results)
        assert not has_blocking_errors(results)

    def test_consistent_batch(self, make_file):
        """Identical files produce no findings."""
        files = [make_file("/a.mkv", video=1, audio=2), make_file("/b.mkv", video=1, audio=2)]

        assert ValidationEngine().validate(files) == []

    def test_drops_off_results(self, make_file):
        """Results with an Off severity are never returned."""

        class NoisyRule:
            def validate(self, files, settings):
                yield ValidationResult(ValidationSeverity.OFF, "hidden")
                yield ValidationResult(ValidationSeverity.WARNING, "shown")

        results = ValidationEngine(rules=[NoisyRule()]).validate([make_file("/a.mkv")])

        assert [str(r) for r in results] == ["[WARNING] shown"]
