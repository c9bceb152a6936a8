"""Configuration management with YAML and JSON support."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from mbtkit.core.models import LoggingConfig, PoolConfig


@dataclass
class AccessConfig:
    """Top-level configuration for opening an MBTiles store."""

    database_path: Optional[Path] = None
    pool: PoolConfig = field(default_factory=PoolConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def resolve_relative_paths(self, base_dir: Path) -> None:
        """Resolve a relative ``database_path`` against ``base_dir``."""

        if self.database_path is not None and not self.database_path.is_absolute():
            self.database_path = base_dir / self.database_path


class ConfigLoader:
    """Load access configuration files in YAML or JSON format."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = base_dir or Path.cwd()

    def load(self, path: Path | str) -> AccessConfig:
        """Parse a configuration file and return a populated dataclass."""

        config_path = self._resolve_path(Path(path))
        payload = self._load_payload(config_path)
        config = self._build_config(payload)
        config.resolve_relative_paths(config_path.parent)
        return config

    def _resolve_path(self, path: Path) -> Path:
        if path.is_absolute():
            return path
        return (self._base_dir / path).resolve()

    def _load_payload(self, path: Path) -> Dict[str, Any]:
        suffix = path.suffix.lower()
        if suffix in {".yaml", ".yml"}:
            with path.open("r", encoding="utf-8") as handle:
                payload = yaml.safe_load(handle) or {}
        elif suffix == ".json":
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle) or {}
        else:
            raise ValueError(f"Unsupported configuration format: {suffix}")
        if not isinstance(payload, dict):
            raise ValueError("configuration root must be a mapping")
        return payload

    def _build_config(self, payload: Dict[str, Any]) -> AccessConfig:
        raw_path = payload.get("database_path")
        database_path = Path(raw_path) if raw_path else None

        pool_payload = payload.get("pool") or {}
        if not isinstance(pool_payload, dict):
            raise ValueError("pool section must be a mapping")
        pool_data = dict(pool_payload)
        for key in ("min_idle", "max_size"):
            if key in pool_data and pool_data[key] is not None:
                pool_data[key] = int(pool_data[key])
        if pool_data.get("max_idle_time") is not None:
            pool_data["max_idle_time"] = float(pool_data["max_idle_time"])
        pool = PoolConfig(**pool_data)

        logging_payload = payload.get("logging") or {}
        if not isinstance(logging_payload, dict):
            raise ValueError("logging section must be a mapping")
        logging_data = dict(logging_payload)
        if "json_logs" in logging_data:
            logging_data["json_logs"] = bool(logging_data["json_logs"])
        logging_config = LoggingConfig(**logging_data)

        return AccessConfig(database_path=database_path, pool=pool, logging=logging_config)


def load_config(path: Path | str, *, base_dir: Optional[Path] = None) -> AccessConfig:
    """Convenience wrapper around :class:`ConfigLoader`."""

    loader = ConfigLoader(base_dir=base_dir)
    return loader.load(path)
