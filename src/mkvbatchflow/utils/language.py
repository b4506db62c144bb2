"""Matroska language table and provider."""

from pathlib import Path
from typing import Iterable, Optional

import yaml

from mkvbatchflow.models.language import MatroskaLanguageOption
from mkvbatchflow.utils.logger import get_logger

logger = get_logger(__name__)

# (name, ISO 639-1, ISO 639-2/B, ISO 639-2/T, ISO 639-3)
_BUILTIN_LANGUAGES = [
    ("English", "en", "eng", "eng", "eng"),
    ("Spanish", "es", "spa", "spa", "spa"),
    ("French", "fr", "fre", "fra", "fra"),
    ("German", "de", "ger", "deu", "deu"),
    ("Italian", "it", "ita", "ita", "ita"),
    ("Portuguese", "pt", "por", "por", "por"),
    ("Russian", "ru", "rus", "rus", "rus"),
    ("Japanese", "ja", "jpn", "jpn", "jpn"),
    ("Korean", "ko", "kor", "kor", "kor"),
    ("Chinese", "zh", "chi", "zho", "zho"),
    ("Arabic", "ar", "ara", "ara", "ara"),
    ("Hindi", "hi", "hin", "hin", "hin"),
    ("Dutch", "nl", "dut", "nld", "nld"),
    ("Polish", "pl", "pol", "pol", "pol"),
    ("Turkish", "tr", "tur", "tur", "tur"),
    ("Swedish", "sv", "swe", "swe", "swe"),
    ("Danish", "da", "dan", "dan", "dan"),
    ("Norwegian", "no", "nor", "nor", "nor"),
    ("Finnish", "fi", "fin", "fin", "fin"),
    ("Czech", "cs", "cze", "ces", "ces"),
    ("Hungarian", "hu", "hun", "hun", "hun"),
    ("Romanian", "ro", "rum", "ron", "ron"),
    ("Thai", "th", "tha", "tha", "tha"),
    ("Vietnamese", "vi", "vie", "vie", "vie"),
    ("Indonesian", "id", "ind", "ind", "ind"),
    ("Hebrew", "he", "heb", "heb", "heb"),
    ("Greek", "el", "gre", "ell", "ell"),
    ("Ukrainian", "uk", "ukr", "ukr", "ukr"),
    ("Catalan", "ca", "cat", "cat", "cat"),
    ("Slovak", "sk", "slo", "slk", "slk"),
    ("Croatian", "hr", "hrv", "hrv", "hrv"),
    ("Serbian", "sr", "srp", "srp", "srp"),
    ("Bulgarian", "bg", "bul", "bul", "bul"),
    ("Lithuanian", "lt", "lit", "lit", "lit"),
    ("Latvian", "lv", "lav", "lav", "lav"),
    ("Estonian", "et", "est", "est", "est"),
    ("Slovenian", "sl", "slv", "slv", "slv"),
    ("Persian", "fa", "per", "fas", "fas"),
    ("Malay", "ms", "may", "msa", "msa"),
    ("Tamil", "ta", "tam", "tam", "tam"),
    ("Telugu", "te", "tel", "tel", "tel"),
    ("Bengali", "bn", "ben", "ben", "ben"),
    ("Marathi", "mr", "mar", "mar", "mar"),
    ("Filipino", "", "fil", "fil", "fil"),
    ("Cantonese", "", "", "", "yue"),
]

BUILTIN_LANGUAGES = [MatroskaLanguageOption(*row) for row in _BUILTIN_LANGUAGES]


def _option_from_mapping(entry: dict) -> MatroskaLanguageOption:
    return MatroskaLanguageOption(
        name=str(entry["name"]),
        iso639_1=entry.get("iso639_1") or "",
        iso639_2_b=entry.get("iso639_2_b") or "",
        iso639_2_t=entry.get("iso639_2_t") or "",
        iso639_3=entry.get("iso639_3") or "",
    )


def load_languages_file(path: str | Path) -> list[MatroskaLanguageOption]:
    """Load a language table from a YAML or JSON file.

    The file holds a top-level ``languages`` list of mappings with ``name``,
    ``iso639_1``, ``iso639_2_b``, ``iso639_2_t`` and ``iso639_3`` keys.

    Args:
        path: Path to the language file

    Returns:
        Language options in file order

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file has no ``languages`` list or an entry lacks a name
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        # JSON is a subset of YAML
        data = yaml.safe_load(f)

    entries = data.get("languages") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ValueError(f"Language file {path} has no 'languages' list")

    try:
        return [_option_from_mapping(entry) for entry in entries]
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Invalid language entry in {path}: {e}") from e


class LanguageProvider:
    """Holds the language options available for track language resolution."""

    def __init__(
        self,
        languages: Optional[Iterable[MatroskaLanguageOption]] = None,
        file_path: Optional[str | Path] = None,
    ):
        """Initialize the provider.

        Args:
            languages: Explicit language options; takes precedence over the file
            file_path: Optional YAML/JSON language table; the built-in table is
                used when it is missing or unreadable
        """
        self.file_path = file_path
        if languages is not None:
            self.languages = tuple(languages)
        else:
            self.languages = tuple(BUILTIN_LANGUAGES)
            if file_path:
                self.load_languages()

    def load_languages(self) -> None:
        """(Re)load languages from the configured file."""
        if not self.file_path:
            return

        try:
            self.languages = tuple(load_languages_file(self.file_path))
            logger.debug("Loaded languages", count=len(self.languages), file=str(self.file_path))
        except FileNotFoundError:
            logger.warning("Language file not found, using built-in table", file=str(self.file_path))
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error("Failed to load language data", file=str(self.file_path), error=str(e))

    def __len__(self) -> int:
        return len(self.languages)

    def __iter__(self):
        return iter(self.languages)
