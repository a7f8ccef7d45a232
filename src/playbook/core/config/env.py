"""Layered .env loading for the GitHub credential and PLAYBOOK_* overrides.

Sources, strongest first:
  variables already exported in the process > project .env files > user .env

A project file may replace a value that came from the user file, but no
file ever replaces a variable that was exported before playbook started.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

logger = logging.getLogger(__name__)


def default_user_env_paths() -> list[Path]:
    config_home = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    return [config_home / "playbook" / ".env"]


def default_project_env_paths(project_dir: Path) -> list[Path]:
    return [project_dir / ".env", project_dir / ".env.local"]


def _values(paths: Iterable[Path]) -> dict[str, str]:
    merged: dict[str, str] = {}
    for path in paths:
        path = Path(path)
        if not path.is_file():
            continue
        for key, value in dotenv_values(path).items():
            if key and value is not None:
                merged[key] = value
    return merged


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> set[str]:
    """Populate ``os.environ`` from user and project .env files.

    Args:
        project_dir: base directory for the default project files (defaults to cwd)
        user_env_paths: explicit user env file paths
        project_env_paths: explicit project env file paths

    Returns:
        Names of the variables this call set.
    """
    project_dir = project_dir or Path.cwd()
    if user_env_paths is None:
        user_env_paths = default_user_env_paths()
    if project_env_paths is None:
        project_env_paths = default_project_env_paths(project_dir)

    exported = set(os.environ)
    layered = _values(user_env_paths)
    layered.update(_values(project_env_paths))

    loaded: set[str] = set()
    for key, value in layered.items():
        if key in exported:
            continue
        os.environ[key] = value
        loaded.add(key)

    if loaded:
        logger.debug("Loaded %d variables from .env files", len(loaded))
    return loaded
