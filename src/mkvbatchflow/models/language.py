"""Matroska language option model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MatroskaLanguageOption:
    """A language that can be assigned to a Matroska track."""

    name: str
    iso639_1: str = ""
    iso639_2_b: str = ""
    iso639_2_t: str = ""
    iso639_3: str = ""

    @property
    def code(self) -> str:
        """Short code written to the file: ISO 639-1 when available, else 639-2/B."""
        return self.iso639_1 or self.iso639_2_b

    def __str__(self) -> str:
        return self.name


UNDETERMINED = MatroskaLanguageOption(
    name="Undetermined",
    iso639_1="",
    iso639_2_b="und",
    iso639_2_t="und",
    iso639_3="und",
)
