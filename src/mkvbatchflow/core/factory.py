"""Track configuration factory and language resolution."""

from operator import attrgetter
from typing import Iterable, Optional

from mkvbatchflow.models.configuration import TrackConfiguration
from mkvbatchflow.models.language import UNDETERMINED, MatroskaLanguageOption
from mkvbatchflow.models.track import ScannedTrack, TrackType

# Highest priority first
LANGUAGE_MATCH_FIELDS = (
    attrgetter("iso639_2_b"),
    attrgetter("iso639_2_t"),
    attrgetter("iso639_1"),
    attrgetter("iso639_3"),
    attrgetter("name"),
    attrgetter("code"),
)


def resolve_language(
    value: Optional[str], languages: Iterable[MatroskaLanguageOption]
) -> MatroskaLanguageOption:
    """Resolve a raw scanned language string into a language option.

    Fields are tried in priority order (ISO 639-2/B, 639-2/T, 639-1, 639-3,
    name, short code), case-insensitively. Every option is checked against
    one field before the next field is tried, so a 639-1 match on one option
    beats a name match on an earlier option. Within a field the first option
    in table order wins.

    Args:
        value: Raw language string from the scan (e.g. "en", "jpn")
        languages: Available language options, in table order

    Returns:
        The matched option, or UNDETERMINED when nothing matches
    """
    if not value or not value.strip():
        return UNDETERMINED

    needle = value.strip().casefold()
    options = list(languages)
    for field_of in LANGUAGE_MATCH_FIELDS:
        for option in options:
            candidate = field_of(option)
            if candidate and candidate.casefold() == needle:
                return option

    return UNDETERMINED


class TrackConfigurationFactory:
    """Builds editable track slots from scanned track records."""

    def __init__(self, languages: Iterable[MatroskaLanguageOption]):
        self.languages = languages

    def create(self, scanned_track: ScannedTrack, track_type: TrackType, index: int) -> TrackConfiguration:
        """Create a slot seeded from a scanned track.

        Args:
            scanned_track: Scanned track record
            track_type: Type of the slot
            index: 0-based position of the slot within its type

        Returns:
            New TrackConfiguration with no pending changes

        Raises:
            ValueError: If scanned_track is None
        """
        if scanned_track is None:
            raise ValueError("scanned_track must not be None")

        return TrackConfiguration(
            type=track_type,
            index=index,
            scanned_track=scanned_track,
            name=scanned_track.title or "",
            language=self.resolve_language(scanned_track.language),
            default=scanned_track.default,
            forced=scanned_track.forced,
        )

    def resolve_language(self, value: Optional[str]) -> MatroskaLanguageOption:
        return resolve_language(value, self.languages)
