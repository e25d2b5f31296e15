"""
Unit tests for the GitHub client wrapper.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from github import GithubException

from review_bot.models.file_change import ComparedFile, FileStatus
from review_bot.services.github_client import GitHubClient, GitHubClientError


@pytest.fixture
def github_api():
    return MagicMock()


@pytest.fixture
def client(github_api):
    return GitHubClient("ghp_secret", client=github_api)


@pytest.mark.asyncio
async def test_create_comment(client, github_api):
    await client.create_comment("octo", "widgets", 7, "hello")

    github_api.get_repo.assert_called_once_with("octo/widgets")
    repo = github_api.get_repo.return_value
    repo.get_issue.assert_called_once_with(7)
    repo.get_issue.return_value.create_comment.assert_called_once_with("hello")


@pytest.mark.asyncio
async def test_create_issue_returns_number(client, github_api):
    github_api.get_repo.return_value.create_issue.return_value = SimpleNamespace(number=42)

    number = await client.create_issue("octo", "widgets", "Title", "Body")

    assert number == 42
    github_api.get_repo.return_value.create_issue.assert_called_once_with(title="Title", body="Body")


@pytest.mark.asyncio
async def test_compare_commits_maps_files(client, github_api):
    github_api.get_repo.return_value.compare.return_value = SimpleNamespace(files=[
        SimpleNamespace(filename="src/a.py", status="modified", patch="@@ -1 +1 @@"),
        SimpleNamespace(filename="src/b.png", status="added", patch=None),
        SimpleNamespace(filename="src/c.py", status="removed", patch=""),
    ])

    files = await client.compare_commits("octo", "widgets", "base", "head")

    github_api.get_repo.return_value.compare.assert_called_once_with("base", "head")
    assert files == [
        ComparedFile(filename="src/a.py", status=FileStatus.MODIFIED, patch="@@ -1 +1 @@"),
        ComparedFile(filename="src/b.png", status=FileStatus.ADDED, patch=None),
        ComparedFile(filename="src/c.py", status=FileStatus.REMOVED, patch=""),
    ]


@pytest.mark.asyncio
async def test_github_errors_are_wrapped(client, github_api):
    github_api.get_repo.side_effect = GithubException(404, {"message": "Not Found"})

    with pytest.raises(GitHubClientError) as exc_info:
        await client.create_comment("octo", "widgets", 7, "hello")

    assert exc_info.value.status == 404
    assert exc_info.value.operation == "create_comment"
    assert "Not Found" in str(exc_info.value)


def test_clone_url_and_redaction(client):
    url = client.clone_url("octo", "widgets")

    assert url == "https://ghp_secret@github.com/octo/widgets.git"
    assert client.redact(f"fatal: unable to access '{url}'") == (
        "fatal: unable to access 'https://***@github.com/octo/widgets.git'"
    )
