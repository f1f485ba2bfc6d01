"""Configuration loader with ENV:VAR_NAME resolution."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""


def _resolve(value: Any) -> Any:
    """Recursively resolve ENV:VAR_NAME references."""
    if isinstance(value, str) and value.startswith("ENV:"):
        var = value[4:]
        resolved = os.environ.get(var)
        if resolved is None:
            logger.debug("Environment variable %s not set (value stays None)", var)
        return resolved
    if isinstance(value, dict):
        return {k: _resolve(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve(v) for v in value]
    return value


@dataclass
class EngineConfig:
    marketplaces: list[str] = field(default_factory=lambda: ["US"])
    period_set: str = "default"
    region_range: str = "30d"
    catalog_path: str | None = None
    regions: list[str] = field(default_factory=list)


@dataclass
class StorageConfig:
    exports_dir: str = "exports"
    reports_dir: str = "reports"


@dataclass
class RuntimeConfig:
    timezone: str = "America/Los_Angeles"
    log_level: str = "INFO"


@dataclass
class AppConfig:
    engine: EngineConfig = field(default_factory=EngineConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)


def _str_list(raw: Any, key: str) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    if not isinstance(raw, list):
        raise ConfigError(f"'{key}' must be a list, got {type(raw).__name__}")
    return [str(v) for v in raw if v is not None]


def load_config(path: str | Path) -> AppConfig:
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as fh:
            raw: dict = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")

    raw = _resolve(raw)

    cfg = AppConfig()

    eng = raw.get("engine") or {}
    catalog_path = eng.get("catalog_path")
    if catalog_path and not Path(catalog_path).is_absolute():
        catalog_path = str(path.parent / catalog_path)
    cfg.engine = EngineConfig(
        marketplaces=_str_list(eng.get("marketplaces", ["US"]), "engine.marketplaces") or ["US"],
        period_set=str(eng.get("period_set", "default")),
        region_range=str(eng.get("region_range", "30d")),
        catalog_path=catalog_path,
        regions=[r.upper() for r in _str_list(eng.get("regions"), "engine.regions")],
    )

    sto = raw.get("storage") or {}
    cfg.storage = StorageConfig(
        exports_dir=sto.get("exports_dir", "exports"),
        reports_dir=sto.get("reports_dir", "reports"),
    )

    rt = raw.get("runtime") or {}
    cfg.runtime = RuntimeConfig(
        timezone=rt.get("timezone") or "America/Los_Angeles",
        log_level=rt.get("log_level") or "INFO",
    )

    logging.basicConfig(level=getattr(logging, str(cfg.runtime.log_level).upper(), logging.INFO))
    return cfg
