"""Cross-file batch validation rules.

Validation never mutates the batch and never raises for inconsistent input;
every finding is returned as a ValidationResult whose severity comes from the
resolved severity settings. Whether an Error blocks a batch is up to the
caller (see :func:`has_blocking_errors`).
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Iterator, Optional

from mkvbatchflow.config import TrackPropertySeverities, ValidationSeveritySettings
from mkvbatchflow.models.file import ScannedFile
from mkvbatchflow.models.track import EDITABLE_TRACK_TYPES, ScannedTrack, TrackType
from mkvbatchflow.models.validation import ValidationResult, ValidationSeverity
from mkvbatchflow.utils.logger import get_logger

logger = get_logger(__name__)


def _track_settings(
    settings: ValidationSeveritySettings, track_type: TrackType
) -> Optional[TrackPropertySeverities]:
    return {
        TrackType.AUDIO: settings.audio,
        TrackType.VIDEO: settings.video,
        TrackType.TEXT: settings.subtitle,
    }.get(track_type)


class FileValidationRule(ABC):
    """A check over all files of a batch."""

    @abstractmethod
    def validate(
        self, files: list[ScannedFile], settings: ValidationSeveritySettings
    ) -> Iterable[ValidationResult]:
        """Yield the findings of this rule."""


class TrackCountConsistencyRule(FileValidationRule):
    """Reports track types whose count differs between files.

    Once any difference exists for a type, the message lists the count of
    every file, not only the outliers.
    """

    def validate(
        self, files: list[ScannedFile], settings: ValidationSeveritySettings
    ) -> Iterator[ValidationResult]:
        severity = settings.track_count_parity
        if len(files) < 2 or severity == ValidationSeverity.OFF:
            return

        for track_type in EDITABLE_TRACK_TYPES:
            counts = [(f.path, f.count_of_type(track_type)) for f in files]
            if len({count for _, count in counts}) <= 1:
                continue

            details = ", ".join(f"'{path}': {count}" for path, count in counts)
            yield ValidationResult(
                severity=severity,
                message=f"Track count mismatch for {track_type.value} tracks: {details}",
            )


class TrackPropertyConsistencyRule(FileValidationRule):
    """Compares one track property of every file against the first file.

    Files whose track count for the type differs from the first file are
    skipped; track count differences are reported by TrackCountConsistencyRule.
    """

    label: str
    severity_field: str
    track_types: tuple[TrackType, ...] = EDITABLE_TRACK_TYPES

    @abstractmethod
    def value_of(self, track: ScannedTrack):
        """Compared value of a scanned track."""

    def validate(
        self, files: list[ScannedFile], settings: ValidationSeveritySettings
    ) -> Iterator[ValidationResult]:
        if len(files) < 2:
            return

        for track_type in self.track_types:
            track_settings = _track_settings(settings, track_type)
            if track_settings is None:
                continue
            severity = getattr(track_settings, self.severity_field)
            if severity == ValidationSeverity.OFF:
                continue

            matrix = [
                [self.value_of(t) for t in sorted(f.tracks_of_type(track_type), key=lambda t: t.stream_kind_id)]
                for f in files
            ]
            reference = matrix[0]
            for file, values in zip(files[1:], matrix[1:]):
                if values == reference or len(values) != len(reference):
                    continue
                for position, (expected, actual) in enumerate(zip(reference, values)):
                    if expected == actual:
                        continue
                    yield ValidationResult(
                        severity=severity,
                        file_path=file.path,
                        message=(
                            f"{self.label} mismatch in {track_type.value} tracks at position {position + 1}: "
                            f"'{expected}' (in '{files[0].path}') vs '{actual}' (in '{file.path}')"
                        ),
                    )


class LanguageConsistencyRule(TrackPropertyConsistencyRule):
    label = "Language"
    severity_field = "language"

    def value_of(self, track: ScannedTrack) -> str:
        return track.language or ""


class DefaultFlagConsistencyRule(TrackPropertyConsistencyRule):
    label = "Default flag"
    severity_field = "default_flag"

    def value_of(self, track: ScannedTrack) -> bool:
        return track.default


class ForcedFlagConsistencyRule(TrackPropertyConsistencyRule):
    label = "Forced flag"
    severity_field = "forced_flag"
    track_types = (TrackType.AUDIO, TrackType.TEXT)

    def value_of(self, track: ScannedTrack) -> bool:
        return track.forced


class FileFormatValidationRule(FileValidationRule):
    """Rejects files that are not Matroska by extension or by container format."""

    ALLOWED_EXTENSIONS = (".mkv",)
    ALLOWED_FORMAT = "matroska"

    def validate(
        self, files: list[ScannedFile], settings: ValidationSeveritySettings
    ) -> Iterator[ValidationResult]:
        for file in files:
            extension_ok = Path(file.path).suffix.lower() in self.ALLOWED_EXTENSIONS
            if not extension_ok or not self._is_matroska(file):
                yield ValidationResult(
                    severity=ValidationSeverity.ERROR,
                    file_path=file.path,
                    message=f"File is not a supported or valid Matroska file: '{file.path}'",
                )

    def _is_matroska(self, file: ScannedFile) -> bool:
        formats = [
            t.format for t in file.tracks or [] if t.type == TrackType.GENERAL and t.format and t.format.strip()
        ]
        return bool(formats) and all(f.strip().lower() == self.ALLOWED_FORMAT for f in formats)


def default_validation_rules() -> list[FileValidationRule]:
    """The standard validation rules, in reporting order."""
    return [
        FileFormatValidationRule(),
        TrackCountConsistencyRule(),
        LanguageConsistencyRule(),
        DefaultFlagConsistencyRule(),
        ForcedFlagConsistencyRule(),
    ]


def has_blocking_errors(results: Iterable[ValidationResult]) -> bool:
    """Whether any result blocks batch submission."""
    return any(r.is_blocking for r in results)


class ValidationEngine:
    """Runs validation rules over a batch of files."""

    def __init__(
        self,
        settings: Optional[ValidationSeveritySettings] = None,
        rules: Optional[Iterable[FileValidationRule]] = None,
    ):
        self.settings = settings or ValidationSeveritySettings()
        self.rules = list(rules) if rules is not None else default_validation_rules()

    def validate(self, files: Iterable[ScannedFile]) -> list[ValidationResult]:
        """Validate files and collect every finding in rule order.

        Args:
            files: Scanned files of the batch

        Returns:
            Validation results (Off-severity findings are never produced)
        """
        files = list(files)
        results: list[ValidationResult] = []
        for rule in self.rules:
            results.extend(r for r in rule.validate(files, self.settings) if r.severity != ValidationSeverity.OFF)

        for result in results:
            if result.is_error:
                logger.error("Validation error", message=result.message, file=result.file_path)
            elif result.is_warning:
                logger.warning("Validation warning", message=result.message, file=result.file_path)
            else:
                logger.info("Validation info", message=result.message, file=result.file_path)

        logger.info(
            "Validation completed",
            files=len(files),
            errors=sum(r.is_error for r in results),
            warnings=sum(r.is_warning for r in results),
            infos=sum(r.is_info for r in results),
        )
        return results
