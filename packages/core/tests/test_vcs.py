"""Tests for the git wrappers."""

import subprocess

import pytest

from reviewkit_core import vcs
from reviewkit_core.errors import VersionControlError


def _completed(stdout="", returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestRunGit:
    def test_returns_stdout(self, mocker):
        run = mocker.patch("reviewkit_core.vcs.subprocess.run", return_value=_completed("ok\n"))
        assert vcs.run_git(["status"], cwd="/repo") == "ok\n"
        assert run.call_args.args[0] == ["git", "status"]

    def test_failure_raises_with_stderr(self, mocker):
        mocker.patch(
            "reviewkit_core.vcs.subprocess.run",
            return_value=_completed(returncode=128, stderr="fatal: bad revision 'nope'"),
        )
        with pytest.raises(VersionControlError, match="bad revision"):
            vcs.run_git(["diff", "nope..HEAD"])

    def test_missing_git_binary(self, mocker):
        mocker.patch("reviewkit_core.vcs.subprocess.run", side_effect=FileNotFoundError)
        with pytest.raises(VersionControlError, match="not installed"):
            vcs.run_git(["status"])

    def test_is_work_tree_false_on_error(self, mocker):
        mocker.patch("reviewkit_core.vcs.subprocess.run", return_value=_completed(returncode=128))
        assert vcs.is_work_tree("/tmp") is False


class TestRangeDiff:
    def test_two_dot_and_three_dot(self, mocker):
        run = mocker.patch("reviewkit_core.vcs.run_git", return_value="")
        vcs.range_diff("main", "feature")
        assert run.call_args.args[0][-1] == "main..feature"
        vcs.range_diff("main", "feature", merge_base=True)
        assert run.call_args.args[0][-1] == "main...feature"


class TestDetectGithubRepo:
    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://github.com/acme/shop.git\n", "acme/shop"),
            ("git@github.com:acme/shop.git", "acme/shop"),
            ("https://github.com/acme/shop", "acme/shop"),
            ("https://gitlab.com/acme/shop.git", None),
        ],
    )
    def test_parses_remote_url(self, mocker, url, expected):
        mocker.patch("reviewkit_core.vcs.run_git", return_value=url)
        assert vcs.detect_github_repo() == expected

    def test_no_remote(self, mocker):
        mocker.patch("reviewkit_core.vcs.run_git", side_effect=VersionControlError("no remote"))
        assert vcs.detect_github_repo() is None
