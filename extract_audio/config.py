"""
extract_audio.config - Run configuration, YAML loading, validation.

A run is configured from command-line options, optionally layered over a
YAML file. Values given on the command line take precedence.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from extract_audio.exceptions import ConfigError


class ContainerFormat(str, Enum):
    """Supported columnar container formats."""

    ARROW = "arrow"
    PARQUET = "parquet"


FORMAT_ALIASES: dict[str, ContainerFormat] = {
    "arrow": ContainerFormat.ARROW,
    "ipc": ContainerFormat.ARROW,
    "feather": ContainerFormat.ARROW,
    "parquet": ContainerFormat.PARQUET,
    "pq": ContainerFormat.PARQUET,
}

DEFAULT_PAYLOAD_NAMES: tuple[str, ...] = (
    "audio",
    "bytes",
    "payload",
    "data",
    "content",
    "wav",
)

DEFAULT_IDENTIFIER_NAMES: tuple[str, ...] = (
    "path",
    "filename",
    "file_name",
    "name",
    "key",
    "id",
    "file_id",
    "audio_id",
    "utterance_id",
)

DEFAULT_BATCH_SIZE = 1024


def parse_format(value: str | ContainerFormat) -> ContainerFormat:
    """Resolve a format name (or alias) to a ContainerFormat."""
    if isinstance(value, ContainerFormat):
        return value
    key = str(value).strip().lower()
    if key not in FORMAT_ALIASES:
        raise ValueError(f"format must be one of: {sorted(set(FORMAT_ALIASES))}")
    return FORMAT_ALIASES[key]


class ExtractConfig(BaseModel):
    """Resolved configuration for one extraction run."""

    input_path: Path
    output_dir: Path
    container_format: ContainerFormat = ContainerFormat.PARQUET

    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, gt=0)
    limit: int | None = Field(default=None, ge=1)

    payload_column: str | None = None
    identifier_column: str | None = None
    payload_names: list[str] = Field(default_factory=lambda: list(DEFAULT_PAYLOAD_NAMES))
    identifier_names: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IDENTIFIER_NAMES)
    )

    infer_extension: bool = True
    debug: bool = False

    @field_validator("container_format", mode="before")
    @classmethod
    def validate_format(cls, v: Any) -> ContainerFormat:
        return parse_format(v)

    @field_validator("payload_names", "identifier_names")
    @classmethod
    def validate_names(cls, v: list[str]) -> list[str]:
        names = [n.strip() for n in v if n and n.strip()]
        if not names:
            raise ValueError("column name list must not be empty")
        return names

    @field_validator("payload_column", "identifier_column")
    @classmethod
    def validate_column(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("column name must not be blank")
        return v


def load_config_file(path: Path) -> dict[str, Any]:
    """Load raw settings from a YAML config file."""
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return raw


def merge_config(file_config: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge command-line overrides onto file settings. Set overrides take precedence."""
    merged = file_config.copy()
    for key, value in overrides.items():
        if value is not None:
            merged[key] = value
    return merged


def build_config(config_file: Path | None = None, **overrides: Any) -> ExtractConfig:
    """Build and validate an ExtractConfig.

    Args:
        config_file: Optional YAML file providing defaults
        **overrides: Explicit settings (None values are ignored)

    Returns:
        Validated ExtractConfig

    Raises:
        ConfigError: If the file is unreadable or any value is invalid
    """
    raw = load_config_file(config_file) if config_file else {}
    merged = merge_config(raw, overrides)
    try:
        return ExtractConfig(**merged)
    except ValidationError as e:
        raise ConfigError(str(e)) from e


def create_default_config() -> dict[str, Any]:
    """Default settings in config-file form, for ``extract-audio init-config``."""
    return {
        "container_format": ContainerFormat.PARQUET.value,
        "batch_size": DEFAULT_BATCH_SIZE,
        "payload_column": None,
        "identifier_column": None,
        "payload_names": list(DEFAULT_PAYLOAD_NAMES),
        "identifier_names": list(DEFAULT_IDENTIFIER_NAMES),
        "infer_extension": True,
    }


def write_config(config: dict[str, Any], path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)
