"""Configuration management for netree using Pydantic models."""

import json
import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError

CONFIG_FILE_NAME = ".netree.json"


class LinkStyle(str, Enum):
    """How parent links are drawn by a full render."""
    CURVE = "curve"
    CAPACITY = "capacity"


class LogLevel(str, Enum):
    """Logging levels."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"


class TreeConfig(BaseModel):
    """Diagram configuration section."""
    base_radius: float = Field(alias="baseRadius", default=20)
    cluster: bool = False
    size: tuple[float, float] = (300, 800)
    link_style: LinkStyle = Field(alias="linkStyle", default=LinkStyle.CURVE)

    @field_validator("base_radius")
    @classmethod
    def validate_base_radius(cls, v):
        if v <= 0:
            raise ValueError(f"base_radius must be > 0, got: {v}")
        return v

    @field_validator("size")
    @classmethod
    def validate_size(cls, v):
        width, height = v
        if width <= 0 or height <= 0:
            raise ValueError(f"size dimensions must be > 0, got: {width}x{height}")
        return v

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    def __init__(self, **options):
        try:
            super().__init__(**options)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid tree configuration: {e}") from e

    @classmethod
    def create(cls, **options) -> "TreeConfig":
        """Build a config, reporting invalid options as ``ConfigurationError``."""
        return cls(**options)

    @property
    def width(self) -> float:
        return self.size[0]

    @property
    def height(self) -> float:
        return self.size[1]


class LoggingConfig(BaseModel):
    """Logging configuration section."""
    level: LogLevel = LogLevel.WARN

    model_config = ConfigDict(use_enum_values=True)


class NetreeConfig(BaseModel):
    """Complete netree configuration model."""
    tree: TreeConfig = Field(default_factory=TreeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")


def load_config(config_path: str | Path | None = None) -> NetreeConfig:
    """Load configuration from file with fallback to defaults.

    Args:
        config_path: Optional path to configuration file. If None, searches
                    current directory and parents for .netree.json

    Returns:
        NetreeConfig: Loaded and validated configuration

    Raises:
        ConfigurationError: If the file holds invalid JSON or settings
    """
    if config_path is None:
        config_path = find_config_file()
    else:
        config_path = Path(config_path)

    if not config_path or not config_path.exists():
        return NetreeConfig()

    try:
        with open(config_path, encoding="utf-8") as f:
            config_data = json.load(f)
        return NetreeConfig(**config_data)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file {config_path}: {e}") from e
    except (ValidationError, ConfigurationError) as e:
        raise ConfigurationError(f"Failed to load config from {config_path}: {e}") from e


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find .netree.json by searching up the directory tree.

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


def configure_logging(level: LogLevel | str = LogLevel.WARN) -> None:
    """Route netree log records to stderr at the given level."""
    name = LogLevel(level).value
    numeric = logging.WARNING if name == "warn" else getattr(logging, name.upper())
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("netree").setLevel(numeric)
