"""
Configuration models and loading.

This module provides Pydantic models for playbook configuration
with multi-layer merging: defaults < user < project < env vars.
"""

from .env import load_layered_env
from .loader import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import (
    ChatLogsConfig,
    DocsConfig,
    GitHubConfig,
    PlaybookConfig,
    PromptsConfig,
    RunbookConfig,
    SearchConfig,
    TargetConfig,
)

__all__ = [
    # Models
    "ChatLogsConfig",
    "DocsConfig",
    "GitHubConfig",
    "PlaybookConfig",
    "PromptsConfig",
    "RunbookConfig",
    "SearchConfig",
    "TargetConfig",
    # Loader functions
    "clear_cache",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
    "load_layered_env",
]
