"""Tests for GitHub token resolution."""

import subprocess

from reviewkit_cli.auth import resolve_github_token


def test_env_var_wins(monkeypatch, mocker):
    monkeypatch.setenv("GITHUB_TOKEN", "env-token")
    run = mocker.patch("reviewkit_cli.auth.subprocess.run")
    assert resolve_github_token() == "env-token"
    run.assert_not_called()


def test_falls_back_to_gh_cli(monkeypatch, mocker):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    mocker.patch(
        "reviewkit_cli.auth.subprocess.run",
        return_value=subprocess.CompletedProcess(args=[], returncode=0, stdout="gh-token\n", stderr=""),
    )
    assert resolve_github_token() == "gh-token"


def test_gh_not_logged_in(monkeypatch, mocker):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    mocker.patch(
        "reviewkit_cli.auth.subprocess.run",
        return_value=subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="not logged in"),
    )
    assert resolve_github_token() is None


def test_gh_missing_or_hanging(monkeypatch, mocker):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    run = mocker.patch("reviewkit_cli.auth.subprocess.run", side_effect=FileNotFoundError)
    assert resolve_github_token() is None
    run.side_effect = subprocess.TimeoutExpired(cmd="gh", timeout=5)
    assert resolve_github_token() is None
