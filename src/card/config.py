"""Service settings: YAML file first, then environment overrides."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

log = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "configs" / "card.yaml"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# env var -> (field, cast)
ENV_OVERRIDES = {
    "CARD_MODEL": ("model_name", str),
    "CARD_DEVICE": ("device", int),
    "LOG_LEVEL": ("log_level", str),
}


@dataclass
class Settings:
    model_name: str = "dslim/bert-base-NER"
    device: int = -1
    max_chars: int = 2048
    warmup: bool = True
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"


def _resolve_path(cfg_path: Optional[str | Path]) -> Path:
    if cfg_path:
        return Path(cfg_path)
    env_path = os.getenv("CARD_CONFIG")
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_settings(cfg_path: Optional[str | Path] = None) -> Settings:
    """Build settings from ``cfg_path`` (or ``$CARD_CONFIG``) plus env vars.

    A missing file means defaults; a malformed one raises.
    """
    path = _resolve_path(cfg_path)
    values: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Config file {path} must contain a mapping, got {type(raw).__name__}")
        known = {f.name for f in fields(Settings)}
        for key, value in raw.items():
            if key in known:
                values[key] = value
            else:
                log.warning("Ignoring unknown config key %r in %s", key, path)
    else:
        log.debug("No config file at %s, using defaults", path)

    for env_name, (field_name, cast) in ENV_OVERRIDES.items():
        env_value = os.getenv(env_name)
        if env_value:
            values[field_name] = cast(env_value)

    settings = Settings(**values)
    settings.log_level = settings.log_level.upper()
    return settings


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
