"""Configuration management for clint using Pydantic models."""

import json
import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from clint.errors import ConfigError

CONFIG_FILE_NAME = ".clint.json"


class LogLevel(str, Enum):
    """Logging levels."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"

    def to_logging(self) -> int:
        """Map to the numeric level understood by the logging module."""
        return {
            LogLevel.ERROR: logging.ERROR,
            LogLevel.WARN: logging.WARNING,
            LogLevel.INFO: logging.INFO,
            LogLevel.DEBUG: logging.DEBUG,
        }[self]


class TraversalConfig(BaseModel):
    """Traversal configuration section."""
    max_depth: int = Field(alias="maxDepth", default=5)
    max_invocations: int = Field(alias="maxInvocations", default=500)
    workers: int = 4
    help_flag: str = Field(alias="helpFlag", default="--help")
    help_command: str = Field(alias="helpCommand", default="help")
    fallback_to_help_command: bool = Field(alias="fallbackToHelpCommand", default=True)

    @field_validator("max_depth")
    @classmethod
    def validate_max_depth(cls, v):
        if v < 0:
            raise ValueError("max_depth must be >= 0")
        return v

    @field_validator("max_invocations")
    @classmethod
    def validate_max_invocations(cls, v):
        if v < 1:
            raise ValueError("max_invocations must be >= 1")
        return v

    @field_validator("workers")
    @classmethod
    def validate_workers(cls, v):
        if not (1 <= v <= 64):
            raise ValueError(f"workers must be between 1-64, got: {v}")
        return v

    model_config = ConfigDict(populate_by_name=True)


class InvokerConfig(BaseModel):
    """Subprocess invocation configuration section."""
    timeout_seconds: float = Field(alias="timeoutSeconds", default=10.0)
    env: dict[str, str] = Field(default_factory=dict)

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("timeout_seconds must be > 0")
        return v

    model_config = ConfigDict(populate_by_name=True)


class ReplicaConfig(BaseModel):
    """Replica generation configuration section."""
    keep_help_flags: bool = Field(alias="keepHelpFlags", default=False)
    keep_verbose_flags: bool = Field(alias="keepVerboseFlags", default=False)

    model_config = ConfigDict(populate_by_name=True)


class OutputConfig(BaseModel):
    """Output configuration section."""
    dir: str = "out"


class LoggingConfig(BaseModel):
    """Logging configuration section."""
    level: LogLevel = LogLevel.INFO


class ClintConfig(BaseModel):
    """Complete clint configuration model."""
    traversal: TraversalConfig = Field(default_factory=TraversalConfig)
    invoker: InvokerConfig = Field(default_factory=InvokerConfig)
    replica: ReplicaConfig = Field(default_factory=ReplicaConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")


def load_config(config_path: str | Path | None = None) -> ClintConfig:
    """Load configuration from file with fallback to defaults.

    Args:
        config_path: Optional path to configuration file. If None, searches
                    current directory and parents for .clint.json

    Returns:
        ClintConfig: Loaded and validated configuration

    Raises:
        ConfigError: If the file is not valid JSON or fails validation
    """
    if config_path is None:
        config_path = find_config_file()
    else:
        config_path = Path(config_path)

    if config_path and config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = json.load(f)
            return ClintConfig(**config_data)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file {config_path}: {e}") from e
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read config file {config_path}: {e}") from e

    return create_default_config()


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find .clint.json configuration file by searching up directory tree.

    Args:
        start_dir: Directory to start search from (default: current directory)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = Path(start_dir).resolve()

    while True:
        config_file = current / CONFIG_FILE_NAME
        if config_file.exists():
            return config_file

        parent = current.parent
        if parent == current:  # Reached root directory
            break
        current = parent

    return None


def create_default_config() -> ClintConfig:
    """Create default configuration with sensible defaults."""
    return ClintConfig()
