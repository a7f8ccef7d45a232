"""
Unit tests for configuration loader.

Tests multi-layer config merging, environment variable overrides,
caching and layered .env loading.
"""

import json
import os

import pytest
from pydantic import ValidationError

from playbook.core.config import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    load_config,
    load_layered_env,
)
from playbook.core.config.loader import apply_env_overrides, deep_merge, load_json_file
from playbook.core.config.models import PlaybookConfig

# ==============================================================================
# Helper Functions Tests
# ==============================================================================


class TestDeepMerge:
    """Test the deep_merge helper function."""

    def test_nested_merge(self):
        base = {"a": 1, "b": {"x": 10, "y": 20}}
        override = {"b": {"y": 30, "z": 40}, "c": 3}

        assert deep_merge(base, override) == {"a": 1, "b": {"x": 10, "y": 30, "z": 40}, "c": 3}

    def test_override_replaces_non_dict(self):
        assert deep_merge({"a": [1, 2, 3]}, {"a": [4]}) == {"a": [4]}

    def test_base_not_mutated(self):
        base = {"b": {"x": 1}}
        deep_merge(base, {"b": {"y": 2}})

        assert base == {"b": {"x": 1}}


class TestLoadJsonFile:
    def test_missing(self, tmp_path):
        assert load_json_file(tmp_path / "nope.json") is None

    def test_invalid_json_skipped(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")

        assert load_json_file(path) is None

    def test_non_object_skipped(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")

        assert load_json_file(path) is None


class TestEnvOverrides:
    """Environment variables win over every file layer."""

    def test_token(self, monkeypatch):
        monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "ghp_x")

        assert apply_env_overrides({})["github"]["token"] == "ghp_x"

    def test_ttl(self, monkeypatch):
        monkeypatch.setenv("PLAYBOOK_SEARCH_TTL", "30")

        result = apply_env_overrides({"search": {"capacity": 4}})

        assert result["search"] == {"capacity": 4, "ttl_seconds": 30.0}

    def test_invalid_ttl_ignored(self, monkeypatch):
        monkeypatch.setenv("PLAYBOOK_SEARCH_TTL", "soon")

        assert "search" not in apply_env_overrides({})

    @pytest.mark.parametrize(("raw", "expected"), [("true", True), ("1", True), ("false", False), ("0", False)])
    def test_prune_stale(self, monkeypatch, raw, expected):
        monkeypatch.setenv("PLAYBOOK_PROMPTS_PRUNE_STALE", raw)

        assert apply_env_overrides({})["prompts"]["prune_stale"] is expected


# ==============================================================================
# load_config Tests
# ==============================================================================


class TestLoadConfig:
    """Precedence: defaults < user < project < env."""

    def test_defaults(self, tmp_path):
        config = load_config(project_dir=tmp_path, use_cache=False)

        assert config == PlaybookConfig()
        assert config.github.token is None
        assert config.search.ttl_seconds == 300.0
        assert config.runbook.repo_info.full_name == "dwarvesf/runbook"

    def test_user_then_project(self, tmp_path):
        user_path = get_user_config_path()
        user_path.parent.mkdir(parents=True)
        user_path.write_text(
            json.dumps({"docs": {"owner": "me", "repo": "notes"}, "search": {"result_limit": 3}})
        )
        get_project_config_path(tmp_path).write_text(json.dumps({"docs": {"repo": "team-docs"}}))

        config = load_config(project_dir=tmp_path, use_cache=False)

        assert config.docs.repo_info.full_name == "me/team-docs"
        assert config.search.result_limit == 3

    def test_env_beats_files(self, tmp_path, monkeypatch):
        get_project_config_path(tmp_path).write_text(
            json.dumps({"github": {"api_url": "https://from-file"}})
        )
        monkeypatch.setenv("PLAYBOOK_GITHUB_API_URL", "https://ghe.example.com/api/v3")

        config = load_config(project_dir=tmp_path, use_cache=False)

        assert config.github.api_url == "https://ghe.example.com/api/v3"

    def test_invalid_value_raises(self, tmp_path):
        get_project_config_path(tmp_path).write_text(json.dumps({"search": {"capacity": 0}}))

        with pytest.raises(ValidationError):
            load_config(project_dir=tmp_path, use_cache=False)

    def test_cached_until_cleared(self, tmp_path, monkeypatch):
        first = load_config(project_dir=tmp_path)
        monkeypatch.setenv("PLAYBOOK_SEARCH_TTL", "5")

        assert load_config(project_dir=tmp_path) is first

        clear_cache()
        assert load_config(project_dir=tmp_path).search.ttl_seconds == 5.0

    def test_token_not_in_repr(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "ghp_secret")

        config = load_config(project_dir=tmp_path, use_cache=False)

        assert "ghp_secret" not in repr(config)


# ==============================================================================
# Layered .env Tests
# ==============================================================================


class TestLoadLayeredEnv:
    """Project files beat user files; exported variables beat both."""

    @pytest.fixture
    def env_files(self, tmp_path):
        user = tmp_path / "user.env"
        user.write_text("PLAYBOOK_TEST_A=user\nPLAYBOOK_TEST_B=user\n")
        project = tmp_path / "project.env"
        project.write_text("PLAYBOOK_TEST_B=project\n")
        return [user], [project]

    @pytest.fixture(autouse=True)
    def clean_vars(self, monkeypatch):
        for var in ("PLAYBOOK_TEST_A", "PLAYBOOK_TEST_B"):
            monkeypatch.delenv(var, raising=False)
        yield
        for var in ("PLAYBOOK_TEST_A", "PLAYBOOK_TEST_B"):
            os.environ.pop(var, None)

    def test_project_overrides_user(self, env_files):
        user, project = env_files

        loaded = load_layered_env(user_env_paths=user, project_env_paths=project)

        assert loaded == {"PLAYBOOK_TEST_A", "PLAYBOOK_TEST_B"}
        assert os.environ["PLAYBOOK_TEST_A"] == "user"
        assert os.environ["PLAYBOOK_TEST_B"] == "project"

    def test_exported_variables_win(self, env_files, monkeypatch):
        user, project = env_files
        monkeypatch.setenv("PLAYBOOK_TEST_B", "exported")

        loaded = load_layered_env(user_env_paths=user, project_env_paths=project)

        assert "PLAYBOOK_TEST_B" not in loaded
        assert os.environ["PLAYBOOK_TEST_B"] == "exported"

    def test_missing_files(self, tmp_path):
        loaded = load_layered_env(
            user_env_paths=[tmp_path / "a.env"], project_env_paths=[tmp_path / "b.env"]
        )

        assert loaded == set()
