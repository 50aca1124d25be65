"""
Runtime configuration.

Values come from (lowest to highest precedence):
  1. built-in defaults
  2. an optional YAML/JSON config file
  3. DOCINDEX_* environment variables

Config file format (YAML or JSON):
    fragments_dir: /srv/docs/fragments
    channels: [implementors, sidebar]
    log_level: INFO

Environment variables:
    DOCINDEX_CONFIG        — path to the config file (optional).
    DOCINDEX_ENV           — dev | prod
    DOCINDEX_FRAGMENTS_DIR — fragment root directory
    DOCINDEX_CHANNELS      — comma-separated channels that always get a registry
    DOCINDEX_LOG_LEVEL     — logging level name
    DOCINDEX_HOST / DOCINDEX_PORT — bind address for docindex.main
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

_log = logging.getLogger("docindex.config")

DEFAULT_CHANNELS = ["implementors", "sidebar"]


def _default_fragments_dir() -> Path:
    # docindex/core/config.py -> parents[1] = docindex/
    return Path(__file__).resolve().parents[1] / "fragments"


@dataclass
class IndexConfig:
    env: str = "dev"
    fragments_dir: Path = field(default_factory=_default_fragments_dir)
    channels: List[str] = field(default_factory=lambda: list(DEFAULT_CHANNELS))
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8001

    @classmethod
    def from_env(cls, path: Optional[Path] = None) -> "IndexConfig":
        cfg = cls()
        cfg.apply(load_config_file(path))

        env_values: Dict[str, Any] = {}
        for key in ("env", "fragments_dir", "channels", "log_level", "host", "port"):
            v = (os.getenv(f"DOCINDEX_{key.upper()}") or "").strip()
            if v:
                env_values[key] = v
        cfg.apply(env_values)
        return cfg

    def apply(self, values: Dict[str, Any]) -> None:
        for key, value in (values or {}).items():
            if key == "fragments_dir":
                self.fragments_dir = Path(str(value))
            elif key == "channels":
                if isinstance(value, str):
                    value = value.split(",")
                if isinstance(value, list):
                    self.channels = [str(c).strip() for c in value if str(c).strip()]
                else:
                    _log.warning("Ignoring channels=%r (expected list or comma-separated string)", value)
            elif key == "port":
                try:
                    self.port = int(value)
                except (TypeError, ValueError):
                    _log.warning("Ignoring invalid port %r", value)
            elif key == "env":
                self.env = str(value).strip().lower()
            elif key in ("log_level", "host"):
                setattr(self, key, str(value).strip())
            else:
                _log.warning("Ignoring unknown config key %r", key)


def load_config_file(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load settings from a YAML or JSON file.

    Returns an empty dict if no file is configured, or the file is absent,
    unreadable or malformed; the caller keeps its defaults in that case.
    """
    resolved = _resolve_path(path)
    if resolved is None or not resolved.exists():
        return {}

    try:
        raw_text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        _log.warning("Cannot read config file %s: %s", resolved, exc)
        return {}

    # JSON first, YAML as the fallback
    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            _log.warning("Failed to parse config file %s as JSON or YAML: %s", resolved, exc)
            return {}

    if not isinstance(data, dict):
        _log.warning("Config file %s must be a mapping, got %s", resolved, type(data).__name__)
        return {}

    _log.info("Loaded %d config keys from %s", len(data), resolved)
    return data


def _resolve_path(path: Optional[Path]) -> Optional[Path]:
    if path is not None:
        return Path(path)
    env_path = os.getenv("DOCINDEX_CONFIG", "").strip()
    if env_path:
        return Path(env_path)
    return None


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or "INFO").upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
