"""Tests for configuration loading."""

import pytest

from reviewkit_core.config import load_config
from reviewkit_core.errors import ConfigError
from reviewkit_core.models import Severity


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["session_root"] == ".claude"
    assert config["default_scope"] == "pr"
    assert config["exclude"] == []
    assert config["disabled_rules"] == []
    assert config["severity_overrides"] == {}
    assert config["judge"] is None


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".reviewkit.yml"
    cfg.write_text("session_root: reviews\ndefault_scope: worktree\njudge: openai\n")
    config = load_config(config_path=str(cfg))
    assert config["session_root"] == "reviews"
    assert config["default_scope"] == "worktree"
    assert config["judge"] == "openai"


def test_exclude_and_disabled_rules_loaded(tmp_path):
    cfg = tmp_path / ".reviewkit.yml"
    cfg.write_text("exclude:\n  - vendor/\n  - '*.min.js'\ndisabled_rules:\n  - FE-007\n")
    config = load_config(config_path=str(cfg))
    assert config["exclude"] == ["vendor/", "*.min.js"]
    assert config["disabled_rules"] == ["FE-007"]


def test_severity_overrides_parsed(tmp_path):
    cfg = tmp_path / ".reviewkit.yml"
    cfg.write_text("severity_overrides:\n  FE-007: low\n  MIG-002: BLOCKER\n")
    config = load_config(config_path=str(cfg))
    assert config["severity_overrides"] == {"FE-007": Severity.LOW, "MIG-002": Severity.BLOCKER}


def test_unknown_severity_rejected(tmp_path):
    cfg = tmp_path / ".reviewkit.yml"
    cfg.write_text("severity_overrides:\n  FE-007: urgent\n")
    with pytest.raises(ConfigError, match="unknown severity"):
        load_config(config_path=str(cfg))


def test_invalid_scope_and_judge_rejected(tmp_path):
    cfg = tmp_path / ".reviewkit.yml"
    cfg.write_text("default_scope: branch\n")
    with pytest.raises(ConfigError, match="default_scope"):
        load_config(config_path=str(cfg))

    cfg.write_text("judge: llama\n")
    with pytest.raises(ConfigError, match="judge"):
        load_config(config_path=str(cfg))


def test_malformed_file_rejected(tmp_path):
    cfg = tmp_path / ".reviewkit.yml"
    cfg.write_text("exclude: [unclosed\n")
    with pytest.raises(ConfigError, match="Could not parse"):
        load_config(config_path=str(cfg))

    cfg.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(config_path=str(cfg))


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".reviewkit.yml"
    cfg.write_text("judge: openai\n")
    assert load_config(config_path=str(cfg), cli_overrides={"judge": "anthropic"})["judge"] == "anthropic"
    assert load_config(config_path=str(cfg), cli_overrides={"judge": None})["judge"] == "openai"


def test_env_vars_loaded(monkeypatch, tmp_path):
    monkeypatch.setenv("GITHUB_TOKEN", "gh-token")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ant-key")
    monkeypatch.setenv("OPENAI_API_KEY", "oai-key")
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["github_token"] == "gh-token"
    assert config["anthropic_api_key"] == "ant-key"
    assert config["openai_api_key"] == "oai-key"
