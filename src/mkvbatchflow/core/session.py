"""Batch session orchestrator."""

from pathlib import Path
from typing import Callable, Iterable, Optional

from mkvbatchflow.config import Config
from mkvbatchflow.core.arguments import build_batch_arguments, build_file_arguments
from mkvbatchflow.core.executor import MkvPropeditExecutor, MkvPropeditStatus
from mkvbatchflow.core.factory import TrackConfigurationFactory
from mkvbatchflow.core.processing import FileProcessingEngine, default_rules
from mkvbatchflow.core.synchronizer import BatchTrackInitializer, TrackCountSynchronizer
from mkvbatchflow.core.validation import ValidationEngine, has_blocking_errors
from mkvbatchflow.models.configuration import BatchConfiguration
from mkvbatchflow.models.file import ProcessResult, ScannedFile
from mkvbatchflow.models.track import EDITABLE_TRACK_TYPES
from mkvbatchflow.models.validation import ValidationResult
from mkvbatchflow.utils.language import LanguageProvider
from mkvbatchflow.utils.logger import get_logger

logger = get_logger(__name__)


class BatchSession:
    """One scan-to-configure-to-apply transaction over a set of files.

    Files are added in two phases: every new file is initialized first, then
    the processing rules run for the new files, so cross-file aggregation
    always sees the complete per-file state. User edits (flagged values)
    survive later additions and re-scans. Mutating calls are not thread-safe
    and must be serialized by the caller.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        languages: Optional[LanguageProvider] = None,
        executor: Optional[MkvPropeditExecutor] = None,
    ):
        """Initialize the session.

        Args:
            config: Application configuration (defaults when None)
            languages: Language provider; built from ``config.languages`` when None
            executor: mkvpropedit executor; built from ``config.mkvpropedit`` when None
        """
        self.config = config or Config()
        self.languages = languages or LanguageProvider(file_path=self.config.languages.file)
        self.factory = TrackConfigurationFactory(self.languages)
        self.executor = executor or MkvPropeditExecutor(
            executable=self.config.mkvpropedit.path,
            timeout_seconds=self.config.mkvpropedit.timeout_seconds,
        )
        self.validation_engine = ValidationEngine(self.config.validation.effective_severities())
        self.processing_engine = FileProcessingEngine(default_rules(self.factory))
        self._bind(BatchConfiguration())

    def _bind(self, batch: BatchConfiguration) -> None:
        self.batch = batch
        self.initializer = BatchTrackInitializer(batch, self.factory)
        self.synchronizer = TrackCountSynchronizer(batch, self.factory)

    @property
    def files(self) -> list[ScannedFile]:
        return self.batch.files

    def add_files(self, scanned_files: Iterable[ScannedFile]) -> list[ScannedFile]:
        """Add files to the batch and derive their slot state.

        Every new file is initialized before any rule runs. New per-file slots
        receive the flagged global edits made so far, then the processing
        rules run for the new files only; the default/forced aggregation
        still reads every file in the batch.

        Files whose path is already in the batch are ignored.

        Returns:
            The files actually added

        Raises:
            TrackPositionError: If a scanned track has no usable position
        """
        added = [f for f in scanned_files if self.batch.add_file(f)]

        for scanned_file in added:
            self.initializer.initialize(scanned_file, *EDITABLE_TRACK_TYPES)
            self.batch.apply_global_edits(scanned_file)

        self._process(added)

        logger.info("Files added to batch", added=len(added), total=len(self.batch.files))
        return added

    def add_file(self, scanned_file: ScannedFile) -> bool:
        return bool(self.add_files([scanned_file]))

    def refresh_file(self, scanned_file: ScannedFile, previous_path: Optional[str] = None) -> None:
        """Replace a file's scan data after a re-scan and rebuild its slots.

        Args:
            scanned_file: Re-scanned file
            previous_path: Former path when the file was renamed; its per-file
                configuration moves to the new path
        """
        known = scanned_file in self.batch or (previous_path is not None and previous_path in self.batch)
        if not known:
            self.add_file(scanned_file)
            return

        self.batch.replace_file(scanned_file, previous_path)
        self.initializer.initialize(scanned_file, *EDITABLE_TRACK_TYPES)
        self.batch.apply_global_edits(scanned_file)
        self._process([scanned_file])
        logger.info("File refreshed", file=scanned_file.path, previous=previous_path)

    def mark_stale(self, file_path: str) -> None:
        """Flag a file whose contents changed on disk and needs a re-scan."""
        self.batch.mark_file_stale(file_path)

    def refresh_stale_files(self, scan: Callable[[Path], ScannedFile]) -> list[ScannedFile]:
        """Re-scan every stale file and refresh it in the batch.

        Args:
            scan: Scanner callable, e.g. ``MediaInfoScanner.scan``

        Returns:
            The refreshed files
        """
        refreshed = []
        for stale in self.batch.stale_files():
            scanned_file = scan(Path(stale.path))
            self.refresh_file(scanned_file)
            refreshed.append(scanned_file)
        return refreshed

    def remove_file(self, file_path: str) -> bool:
        removed = self.batch.remove_file(file_path)
        if removed:
            logger.info("File removed from batch", file=file_path, remaining=len(self.batch.files))
        return removed

    def use_reference_file(self, file_path: str) -> None:
        """Size the global slot lists to match one file's track counts.

        Raises:
            KeyError: If the file is not in the batch
        """
        reference = self.batch.get_file(file_path)
        if reference is None:
            raise KeyError(f"File not in batch: {file_path}")
        self.synchronizer.ensure_track_count(reference, *EDITABLE_TRACK_TYPES)

    def _process(self, scanned_files: list[ScannedFile]) -> None:
        for scanned_file in scanned_files:
            self.processing_engine.apply(scanned_file, self.batch)

    def clear(self) -> None:
        """Discard the batch and start over with a fresh configuration."""
        self._bind(BatchConfiguration())
        logger.info("Batch session cleared")

    def validate(self) -> list[ValidationResult]:
        return self.validation_engine.validate(self.batch.files)

    def file_arguments(self) -> list[tuple[ScannedFile, list[str]]]:
        """Argument lists of the files that have pending changes, in file order."""
        pending = []
        for scanned_file in self.batch.files:
            arguments = build_file_arguments(scanned_file, self.batch)
            if arguments:
                pending.append((scanned_file, arguments))
        return pending

    def preview(self) -> list[str]:
        """mkvpropedit command lines for every file with pending changes."""
        return build_batch_arguments(self.batch)

    def apply(self, dry_run: Optional[bool] = None) -> list[ProcessResult]:
        """Run mkvpropedit on every file with pending changes.

        Nothing is executed while validation reports an Error.

        Args:
            dry_run: Override ``config.execution.dry_run``

        Returns:
            One ProcessResult per file in the batch
        """
        if dry_run is None:
            dry_run = self.config.execution.dry_run

        results = self.validate()
        if has_blocking_errors(results):
            reason = "; ".join(r.message for r in results if r.is_blocking)
            logger.error("Batch blocked by validation errors", errors=sum(r.is_error for r in results))
            return [ProcessResult(status="skipped", file_path=f.path, reason=reason) for f in self.batch.files]

        pending = {f.key: args for f, args in self.file_arguments()}
        outcomes = []
        for scanned_file in self.batch.files:
            arguments = pending.get(scanned_file.key)
            if not arguments:
                outcomes.append(ProcessResult(status="skipped", file_path=scanned_file.path, reason="no_changes"))
                continue

            if dry_run:
                logger.info("DRY RUN: Would run mkvpropedit", file=scanned_file.path, arguments=arguments)
                outcomes.append(ProcessResult(status="dry_run", file_path=scanned_file.path, arguments=arguments))
                continue

            result = self.executor.execute(arguments)
            if result.status == MkvPropeditStatus.SUCCESS:
                status = "success"
            elif result.status == MkvPropeditStatus.WARNING:
                status = "warning"
            else:
                status = "failed"
            outcomes.append(
                ProcessResult(
                    status=status,
                    file_path=scanned_file.path,
                    arguments=arguments,
                    error=result.error,
                )
            )

        logger.info(
            "Batch applied",
            files=len(outcomes),
            failed=sum(o.status == "failed" for o in outcomes),
            dry_run=dry_run,
        )
        return outcomes
