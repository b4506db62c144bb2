"""Shared pytest fixtures for MkvBatchFlow tests."""

import pytest

from mkvbatchflow.config import ValidationSeveritySettings
from mkvbatchflow.core.factory import TrackConfigurationFactory
from mkvbatchflow.models.configuration import BatchConfiguration
from mkvbatchflow.models.file import ScannedFile
from mkvbatchflow.models.track import ScannedTrack, TrackType
from mkvbatchflow.utils.language import LanguageProvider


def _make_track(track_type: TrackType, stream_kind_id: int, **kwargs) -> ScannedTrack:
    kwargs.setdefault("stream_kind_pos", str(stream_kind_id + 1))
    return ScannedTrack(type=track_type, stream_kind_id=stream_kind_id, **kwargs)


def _make_file(
    path: str,
    tracks: list[ScannedTrack] | None = None,
    video: int = 0,
    audio: int = 0,
    subtitle: int = 0,
    title: str | None = None,
    general_format: str | None = "Matroska",
) -> ScannedFile:
    if tracks is None:
        tracks = (
            [_make_track(TrackType.VIDEO, i, format="AVC") for i in range(video)]
            + [_make_track(TrackType.AUDIO, i, format="AAC") for i in range(audio)]
            + [_make_track(TrackType.TEXT, i, format="UTF-8") for i in range(subtitle)]
        )
    general = ScannedTrack(
        type=TrackType.GENERAL,
        stream_kind_id=0,
        stream_kind_pos="1",
        format=general_format,
        title=title,
    )
    return ScannedFile(path=path, tracks=[general] + list(tracks))


@pytest.fixture
def make_track():
    """Build a scanned track; StreamKindPos defaults to the 1-based ordinal."""
    return _make_track


@pytest.fixture
def make_file():
    """Build a scanned Matroska file from explicit tracks or per-type counts."""
    return _make_file


@pytest.fixture
def languages():
    """Built-in language table."""
    return LanguageProvider()


@pytest.fixture
def factory(languages):
    """Track configuration factory over the built-in language table."""
    return TrackConfigurationFactory(languages)


@pytest.fixture
def batch():
    """Empty batch configuration."""
    return BatchConfiguration()


@pytest.fixture
def default_severities():
    """Severities used when no preset is applied."""
    return ValidationSeveritySettings()
