"""Configuration management module for partstore."""

from __future__ import annotations

import logging
import os
import warnings
from dataclasses import dataclass, field
from pathlib import Path

from partstore.schemas.types import TableSpec, dtype_from_name
from partstore.transforms import IdentityTransform, identity

logger = logging.getLogger(__name__)

try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib

DEFAULT_NAMESPACE = "default"
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_PROVIDER_COLUMNS: dict[str, str] = {"a": "Int64", "b": "Utf8"}
DEFAULT_PROVIDER_PARTITION_BY: tuple[str, ...] = ("a",)


def default_config_path() -> Path:
    return Path(
        os.getenv("PARTSTORE_CONFIG", str(Path.home() / ".config" / "partstore" / "config.toml"))
    ).expanduser()


def _read_config_file(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:
        warnings.warn(f"Failed to parse partstore config at {path}: {exc}", stacklevel=2)
        return {}


@dataclass(frozen=True)
class ProviderDefaults:
    """Schema and partitioning for tables created on demand by the provider."""

    columns: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PROVIDER_COLUMNS))
    partition_by: tuple[str, ...] = DEFAULT_PROVIDER_PARTITION_BY

    def table_spec(self, name: str) -> TableSpec:
        return TableSpec.from_mapping(name, self.columns)

    def partitioning(self) -> tuple[IdentityTransform, ...]:
        return tuple(identity(col) for col in self.partition_by)


@dataclass(frozen=True)
class Settings:
    default_namespace: str = DEFAULT_NAMESPACE
    log_level: str = DEFAULT_LOG_LEVEL
    provider: ProviderDefaults = field(default_factory=ProviderDefaults)


def _provider_defaults(raw: object) -> ProviderDefaults:
    if not isinstance(raw, dict):
        return ProviderDefaults()

    columns = raw.get("columns", DEFAULT_PROVIDER_COLUMNS)
    if not isinstance(columns, dict) or not columns:
        raise ValueError("provider.columns must be a non-empty table of column = dtype")
    for col, dtype in columns.items():
        if not isinstance(dtype, str):
            raise ValueError(f"provider.columns.{col} must be a dtype name string")
        dtype_from_name(dtype)

    partition_by = raw.get("partition_by", list(DEFAULT_PROVIDER_PARTITION_BY))
    if not isinstance(partition_by, list) or not all(isinstance(p, str) for p in partition_by):
        raise ValueError("provider.partition_by must be a list of column names")

    return ProviderDefaults(columns=dict(columns), partition_by=tuple(partition_by))


def load_settings(path: Path | None = None) -> Settings:
    """Return settings from the config file, with environment overrides applied."""
    config_path = path if path is not None else default_config_path()
    config = _read_config_file(config_path)

    namespace = os.getenv("PARTSTORE_NAMESPACE") or config.get("default_namespace")
    if not isinstance(namespace, str) or not namespace.strip():
        namespace = DEFAULT_NAMESPACE

    log_level = os.getenv("PARTSTORE_LOG_LEVEL") or config.get("log_level")
    if not isinstance(log_level, str) or not log_level.strip():
        log_level = DEFAULT_LOG_LEVEL
    log_level = log_level.strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        warnings.warn(f"Unknown log_level {log_level!r}; using {DEFAULT_LOG_LEVEL}", stacklevel=2)
        log_level = DEFAULT_LOG_LEVEL

    settings = Settings(
        default_namespace=namespace.strip(),
        log_level=log_level,
        provider=_provider_defaults(config.get("provider")),
    )
    logger.debug("Loaded settings from %s: %s", config_path, settings)
    return settings


__all__ = [
    "DEFAULT_NAMESPACE",
    "ProviderDefaults",
    "Settings",
    "default_config_path",
    "load_settings",
]
