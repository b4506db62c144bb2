"""mkvpropedit execution."""

import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from mkvbatchflow.utils.logger import get_logger

logger = get_logger(__name__)


class MkvPropeditStatus(Enum):
    """Outcome of an mkvpropedit run."""

    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    UNKNOWN = "unknown"

    @classmethod
    def from_exit_code(cls, exit_code: Optional[int]) -> "MkvPropeditStatus":
        """Map an mkvpropedit exit code (0 ok, 1 warnings, 2 error)."""
        return {0: cls.SUCCESS, 1: cls.WARNING, 2: cls.ERROR}.get(exit_code, cls.UNKNOWN)


@dataclass
class MkvPropeditResult:
    """Result of one mkvpropedit invocation."""

    status: MkvPropeditStatus
    exit_code: Optional[int] = None
    command: list[str] = field(default_factory=list)
    stdout: str = ""
    stderr: str = ""
    warnings: list[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status in (MkvPropeditStatus.SUCCESS, MkvPropeditStatus.WARNING)


class MkvPropeditExecutor:
    """Runs mkvpropedit with argument lists produced by the argument builder."""

    def __init__(self, executable: str = "mkvpropedit", timeout_seconds: int = 300):
        self.executable = executable
        self.timeout_seconds = timeout_seconds

    def resolve_executable(self) -> Optional[str]:
        """Full path of the executable, or None if it cannot be found."""
        return shutil.which(self.executable)

    def execute(self, arguments: list[str]) -> MkvPropeditResult:
        """Run mkvpropedit.

        Process failures never raise; they are reported as a result with
        status UNKNOWN and the error text.

        Args:
            arguments: Quoted argument list, input file first

        Returns:
            MkvPropeditResult
        """
        executable = self.resolve_executable()
        if executable is None:
            logger.error("mkvpropedit not found", executable=self.executable)
            return MkvPropeditResult(
                status=MkvPropeditStatus.UNKNOWN,
                error=f"Executable not found: {self.executable}",
            )

        try:
            cmd = [executable] + shlex.split(" ".join(arguments))
        except ValueError as e:
            logger.error("Invalid mkvpropedit arguments", error=str(e))
            return MkvPropeditResult(status=MkvPropeditStatus.UNKNOWN, error=f"Invalid arguments: {e}")

        logger.info("Executing mkvpropedit", file=cmd[1] if len(cmd) > 1 else None)
        logger.debug("mkvpropedit command", command=cmd)

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired:
            logger.error("mkvpropedit timeout", command=cmd, timeout=self.timeout_seconds)
            return MkvPropeditResult(
                status=MkvPropeditStatus.UNKNOWN,
                command=cmd,
                error=f"Timed out after {self.timeout_seconds} seconds",
            )
        except OSError as e:
            logger.error("Failed to start mkvpropedit", command=cmd, error=str(e))
            return MkvPropeditResult(status=MkvPropeditStatus.UNKNOWN, command=cmd, error=str(e))

        status = MkvPropeditStatus.from_exit_code(result.returncode)
        warnings = [
            line.strip()
            for line in (result.stdout + "\n" + result.stderr).splitlines()
            if "warning" in line.lower()
        ]

        log = logger.info if status == MkvPropeditStatus.SUCCESS else logger.warning
        log(
            "mkvpropedit finished",
            returncode=result.returncode,
            status=status.value,
            warnings=len(warnings),
        )
        error = None
        if status in (MkvPropeditStatus.ERROR, MkvPropeditStatus.UNKNOWN):
            logger.error("mkvpropedit failed", returncode=result.returncode, stderr=result.stderr)
            error = (result.stderr or result.stdout).strip() or f"Exit code {result.returncode}"

        return MkvPropeditResult(
            status=status,
            exit_code=result.returncode,
            command=cmd,
            stdout=result.stdout,
            stderr=result.stderr,
            warnings=warnings,
            error=error,
        )
