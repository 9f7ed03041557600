from __future__ import annotations

from github import Github, GithubException

from reviewkit_core.errors import VersionControlError


def get_repo(repo_name: str, token: str):
    try:
        return Github(token).get_repo(repo_name)
    except GithubException as e:
        raise VersionControlError(f"Could not open GitHub repository {repo_name}: {e}") from e


def get_pull(repo, pr_number: int):
    try:
        return repo.get_pull(pr_number)
    except GithubException as e:
        raise VersionControlError(f"PR #{pr_number} not found in {repo.full_name}: {e}") from e


def get_files(pr) -> list:
    """Return the PR's changed files sorted by filename."""
    try:
        return sorted(pr.get_files(), key=lambda f: f.filename)
    except GithubException as e:
        raise VersionControlError(f"Could not list files of PR #{pr.number}: {e}") from e


def get_file_content(repo, path: str, ref: str) -> str:
    try:
        blob = repo.get_contents(path, ref=ref)
    except GithubException as e:
        raise VersionControlError(f"Could not fetch {path} at {ref[:7]}: {e}") from e
    return blob.decoded_content.decode("utf-8", errors="replace")
