"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import PlaybookConfig

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "GITHUB_PERSONAL_ACCESS_TOKEN"

# Global cache to avoid reloading config multiple times per process
_config_cache: PlaybookConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """Path to ~/.config/playbook/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "playbook" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """Path to .playbook.json in the project root."""
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".playbook.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`. Nested
    dicts are merged, not replaced.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 10}}, {"b": {"y": 2}})
        {'a': 1, 'b': {'x': 10, 'y': 2}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        # Config loading stays resilient: a broken file is skipped, not fatal
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def _set_nested(config: dict[str, Any], section: str, key: str, value: Any) -> None:
    if not isinstance(config.get(section), dict):
        config[section] = {}
    config[section][key] = value


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        GITHUB_PERSONAL_ACCESS_TOKEN - github.token
        PLAYBOOK_GITHUB_API_URL - github.api_url
        PLAYBOOK_SEARCH_TTL - search.ttl_seconds
        PLAYBOOK_PROMPTS_PRUNE_STALE - prompts.prune_stale
    """
    result = config_dict.copy()

    if token := os.environ.get(TOKEN_ENV_VAR):
        _set_nested(result, "github", "token", token)

    if api_url := os.environ.get("PLAYBOOK_GITHUB_API_URL"):
        _set_nested(result, "github", "api_url", api_url)

    if ttl_str := os.environ.get("PLAYBOOK_SEARCH_TTL"):
        try:
            _set_nested(result, "search", "ttl_seconds", float(ttl_str))
        except ValueError:
            logger.warning("Invalid PLAYBOOK_SEARCH_TTL value '%s', ignoring", ttl_str)

    if prune_str := os.environ.get("PLAYBOOK_PROMPTS_PRUNE_STALE"):
        _set_nested(
            result, "prompts", "prune_stale", prune_str.lower() not in ("false", "0", "")
        )

    return result


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> PlaybookConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables
        2. Project config (.playbook.json)
        3. User config (~/.config/playbook/config.json)
        4. Model defaults

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged: dict[str, Any] = {}

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = PlaybookConfig(**merged)
    _config_cache = config
    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
