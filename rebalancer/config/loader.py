"""Locate, read and validate rebalancer.yaml.

String values may reference the environment as ``${NAME}`` or
``${NAME:-fallback}``. An unset variable without a fallback expands to
the empty string.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from rebalancer.config.schema import RebalancerConfig

logger = logging.getLogger(__name__)

CONFIG_SEARCH_PATHS = (
    Path("rebalancer.yaml"),
    Path("~/.rebalancer/config.yaml"),
)

_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def _substitute(match: re.Match) -> str:
    name, fallback = match.group(1), match.group(2)
    value = os.environ.get(name)
    if value:
        return value
    return fallback if fallback is not None else ""


def _expand_env_vars(value: Any) -> Any:
    """Expand environment references in every string of a parsed YAML tree."""
    if isinstance(value, str):
        return _ENV_REF.sub(_substitute, value)
    if isinstance(value, dict):
        return {key: _expand_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    return value


def _find_config_file(explicit_path: str | Path | None = None) -> Path | None:
    if explicit_path is not None:
        candidates: tuple[Path, ...] = (Path(explicit_path),)
    else:
        candidates = CONFIG_SEARCH_PATHS

    for candidate in candidates:
        resolved = candidate.expanduser()
        if resolved.is_file():
            return resolved

    if explicit_path is not None:
        logger.warning("Config file not found: %s (falling back to defaults)", explicit_path)
    return None


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse one YAML file into a raw, env-expanded mapping.

    An empty file yields ``{}``.

    Raises:
        ValueError: if the document is not a mapping at the top level.
    """
    with open(path) as f:
        raw = yaml.safe_load(f)
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a mapping at the top level, got {type(raw).__name__}")
    return _expand_env_vars(raw)


def load_config(path: str | Path | None = None) -> RebalancerConfig:
    """Build the validated configuration.

    The first existing file wins: *path* if given, then ./rebalancer.yaml,
    then ~/.rebalancer/config.yaml. With none of them present every
    setting takes its default.
    """
    config_path = _find_config_file(path)
    if config_path is None:
        logger.info("No config file found, using defaults")
        raw: dict[str, Any] = {}
    else:
        logger.info("Loading config from %s", config_path)
        raw = read_config_file(config_path)

    config = RebalancerConfig.model_validate(raw)
    logger.debug(
        "Config: %d slot(s), backend=%s, admins=%s",
        config.portfolio.max_asset_slots, config.storage.backend, config.auth.admins,
    )
    return config


def resolve_path(path_str: str) -> Path:
    """Absolute path for a config value, with ``~`` expanded."""
    return Path(path_str).expanduser().resolve()
