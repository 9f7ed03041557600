import os
from pathlib import Path
from typing import Optional

import yaml

from reviewkit_core.errors import ConfigError
from reviewkit_core.models import Scope, Severity

DEFAULT_CONFIG: dict = {
    "session_root": ".claude",
    "default_scope": "pr",
    "exclude": [],  # fnmatch patterns or directory names never reviewed (e.g. "vendor/", "*.min.js")
    "disabled_rules": [],
    "severity_overrides": {},  # rule id -> severity, e.g. {"FE-007": "LOW"}
    "context": "",  # prepended to --context on every review
    "judge": None,  # None = judgment rules are listed as not evaluated
    "judge_model": None,  # provider default model when unset
    "github_repo": None,  # owner/name; detected from the git remote when unset
}

JUDGES = ("anthropic", "openai")


def load_config(config_path: str = ".reviewkit.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .reviewkit.yml in the current directory
      3. CLI argument overrides
    """
    config = {
        **DEFAULT_CONFIG,
        "exclude": list(DEFAULT_CONFIG["exclude"]),
        "disabled_rules": list(DEFAULT_CONFIG["disabled_rules"]),
        "severity_overrides": dict(DEFAULT_CONFIG["severity_overrides"]),
    }

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            try:
                file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Could not parse {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"{config_path} must contain a mapping at the top level.")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    _validate(config, config_path)

    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

    return config


def _validate(config: dict, config_path: str) -> None:
    try:
        Scope(config["default_scope"])
    except ValueError:
        raise ConfigError(f"{config_path}: default_scope {config['default_scope']!r} is not a valid scope.") from None

    if config["judge"] is not None and config["judge"] not in JUDGES:
        raise ConfigError(f"{config_path}: judge must be one of {', '.join(JUDGES)}, got {config['judge']!r}.")

    overrides = config.get("severity_overrides") or {}
    if not isinstance(overrides, dict):
        raise ConfigError(f"{config_path}: severity_overrides must be a mapping of rule id to severity.")
    parsed = {}
    for rule_id, value in overrides.items():
        try:
            parsed[str(rule_id)] = Severity(str(value).upper())
        except ValueError:
            raise ConfigError(f"{config_path}: unknown severity {value!r} for rule {rule_id}.") from None
    config["severity_overrides"] = parsed
    config["exclude"] = list(config.get("exclude") or [])
    config["disabled_rules"] = [str(r) for r in (config.get("disabled_rules") or [])]
