"""Tests for GitHub pull request helper functions."""

from unittest.mock import MagicMock

import pytest
from github import GithubException

from reviewkit_core.errors import VersionControlError
from reviewkit_core.gh.pull_request import get_file_content, get_files, get_pull

SHA = "a" * 40


def _file(name):
    f = MagicMock()
    f.filename = name
    return f


class TestGetPull:
    def test_returns_pull(self):
        repo = MagicMock()
        assert get_pull(repo, 7) is repo.get_pull.return_value
        repo.get_pull.assert_called_once_with(7)

    def test_missing_pull_raises(self):
        repo = MagicMock()
        repo.full_name = "acme/shop"
        repo.get_pull.side_effect = GithubException(404, {"message": "Not Found"}, None)
        with pytest.raises(VersionControlError, match="PR #7 not found in acme/shop"):
            get_pull(repo, 7)


class TestGetFiles:
    def test_sorted_by_filename(self):
        pr = MagicMock()
        pr.get_files.return_value = [_file("b.py"), _file("a.py")]
        assert [f.filename for f in get_files(pr)] == ["a.py", "b.py"]

    def test_api_error_raises(self):
        pr = MagicMock()
        pr.get_files.side_effect = GithubException(500, {"message": "boom"}, None)
        with pytest.raises(VersionControlError):
            get_files(pr)


class TestGetFileContent:
    def test_decodes_blob(self):
        repo = MagicMock()
        repo.get_contents.return_value.decoded_content = b"print('hi')\n"
        assert get_file_content(repo, "app.py", SHA) == "print('hi')\n"
        repo.get_contents.assert_called_once_with("app.py", ref=SHA)

    def test_api_error_names_short_sha(self):
        repo = MagicMock()
        repo.get_contents.side_effect = GithubException(404, {"message": "Not Found"}, None)
        with pytest.raises(VersionControlError, match="aaaaaaa"):
            get_file_content(repo, "app.py", SHA)
