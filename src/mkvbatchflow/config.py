"""Configuration management for MkvBatchFlow."""

import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from mkvbatchflow.models.validation import StrictnessMode, ValidationSeverity


class LoggingConfig(BaseModel):
    """Logging configuration."""

    format: str = Field(default="text", description="Log format (json or text)")
    level: str = Field(default="warning", description="Log level")
    output: Optional[str] = Field(default=None, description="Optional log file path")

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        if v.lower() not in ("debug", "info", "warning", "error", "critical"):
            raise ValueError("Invalid log level")
        return v.lower()


class TrackPropertySeverities(BaseModel):
    """Severities of the per-property consistency checks for one track type."""

    language: ValidationSeverity = Field(default=ValidationSeverity.WARNING)
    default_flag: ValidationSeverity = Field(default=ValidationSeverity.OFF)
    forced_flag: ValidationSeverity = Field(default=ValidationSeverity.OFF)


class ValidationSeveritySettings(BaseModel):
    """Resolved severity of every batch consistency check."""

    track_count_parity: ValidationSeverity = Field(default=ValidationSeverity.ERROR)
    audio: TrackPropertySeverities = Field(default_factory=TrackPropertySeverities)
    video: TrackPropertySeverities = Field(default_factory=TrackPropertySeverities)
    subtitle: TrackPropertySeverities = Field(default_factory=TrackPropertySeverities)


class ValidationConfig(BaseModel):
    """Batch validation configuration."""

    mode: StrictnessMode = Field(default=StrictnessMode.STRICT, description="Strictness preset")
    custom: ValidationSeveritySettings = Field(
        default_factory=ValidationSeveritySettings,
        description="Severities used in custom mode",
    )

    @field_validator("mode", mode="before")
    @classmethod
    def validate_mode(cls, v: Any) -> Any:
        """Accept preset names in any case."""
        return v.lower() if isinstance(v, str) else v

    def effective_severities(self) -> ValidationSeveritySettings:
        """Resolve the strictness preset into concrete severities.

        Returns:
            The custom severities in custom mode, otherwise the preset applied
            on top of a copy of them
        """
        if self.mode == StrictnessMode.CUSTOM:
            return self.custom.model_copy(deep=True)

        settings = self.custom.model_copy(deep=True)
        if self.mode == StrictnessMode.STRICT:
            settings.track_count_parity = ValidationSeverity.ERROR
            for track_settings in (settings.audio, settings.video, settings.subtitle):
                track_settings.language = ValidationSeverity.ERROR
            settings.audio.default_flag = ValidationSeverity.WARNING
            settings.audio.forced_flag = ValidationSeverity.WARNING
            settings.video.default_flag = ValidationSeverity.WARNING
            settings.subtitle.forced_flag = ValidationSeverity.WARNING
        else:
            settings.track_count_parity = ValidationSeverity.INFO
            for track_settings in (settings.audio, settings.video, settings.subtitle):
                track_settings.language = ValidationSeverity.INFO
            settings.audio.default_flag = ValidationSeverity.INFO
            settings.audio.forced_flag = ValidationSeverity.INFO
            settings.video.default_flag = ValidationSeverity.INFO
            settings.subtitle.forced_flag = ValidationSeverity.INFO
        return settings


class LanguagesConfig(BaseModel):
    """Language table configuration."""

    file: Optional[str] = Field(default=None, description="YAML/JSON language table path")


class MkvPropeditConfig(BaseModel):
    """mkvpropedit executable configuration."""

    path: str = Field(default="mkvpropedit", description="Executable name or path")
    timeout_seconds: int = Field(default=300, description="Per-file timeout")


class MediaInfoConfig(BaseModel):
    """MediaInfo executable configuration."""

    path: str = Field(default="mediainfo", description="Executable name or path")
    timeout_seconds: int = Field(default=60, description="Per-file scan timeout")


class ExecutionConfig(BaseModel):
    """Execution configuration."""

    dry_run: bool = Field(default=False, description="Dry run mode")


class Config(BaseModel):
    """Main configuration model."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")
    validation: ValidationConfig = Field(
        default_factory=ValidationConfig, description="Batch validation configuration"
    )
    languages: LanguagesConfig = Field(
        default_factory=LanguagesConfig, description="Language table configuration"
    )
    mkvpropedit: MkvPropeditConfig = Field(
        default_factory=MkvPropeditConfig, description="mkvpropedit configuration"
    )
    mediainfo: MediaInfoConfig = Field(
        default_factory=MediaInfoConfig, description="MediaInfo configuration"
    )
    execution: ExecutionConfig = Field(
        default_factory=ExecutionConfig, description="Execution configuration"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path) as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            raw_config = {}

        raw_config = cls._substitute_env_vars(raw_config)

        return cls(**raw_config)

    @staticmethod
    def _substitute_env_vars(obj: Any) -> Any:
        """Recursively replace ``${VAR_NAME}`` with ``os.environ['VAR_NAME']``.

        Raises:
            ValueError: If a referenced variable is not set
        """
        if isinstance(obj, dict):
            return {key: Config._substitute_env_vars(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [Config._substitute_env_vars(item) for item in obj]
        elif isinstance(obj, str):

            def replace_var(match):
                var_name = match.group(1)
                value = os.environ.get(var_name)
                if value is None:
                    raise ValueError(
                        f"Environment variable '{var_name}' not found "
                        f"(referenced in configuration)"
                    )
                return value

            return re.sub(r"\$\{([^}]+)\}", replace_var, obj)
        else:
            return obj


def load_config(path: Optional[str | Path] = None) -> Config:
    """Load configuration from file or use defaults.

    Args:
        path: Optional path to configuration file. If None, uses defaults.

    Returns:
        Config instance
    """
    if path is None:
        return Config()

    return Config.from_yaml(path)
