"""
GitHub client component.

Thin async facade over PyGithub for the calls the workflows make: commenting
on pull requests, filing issues and comparing commits. PyGithub is
synchronous, so every call runs in a worker thread.
"""

import asyncio
from typing import List, Optional

from github import Auth, Github, GithubException

from review_bot.models.file_change import ComparedFile, FileStatus
from review_bot.utils.logging import get_logger

logger = get_logger(__name__)


class GitHubClientError(Exception):
    """Raised when a GitHub API call fails."""

    def __init__(self, operation: str, message: str, status: Optional[int] = None):
        self.operation = operation
        self.status = status
        super().__init__(f"GitHub {operation} failed: {message}")


class GitHubClient:
    """Async wrapper around the GitHub REST API."""

    def __init__(self, token: str, host: str = "github.com", client: Optional[Github] = None):
        """
        Initialize the client.

        Args:
            token: Personal access or installation token
            host: GitHub host used for clone URLs
            client: Pre-built PyGithub client (tests inject a mock)
        """
        self._token = token
        self.host = host
        self._github = client or Github(auth=Auth.Token(token))

    def clone_url(self, owner: str, repo: str) -> str:
        """HTTPS clone URL with the token embedded. Never log the result."""
        return f"https://{self._token}@{self.host}/{owner}/{repo}.git"

    def redact(self, text: str) -> str:
        """Mask the token in text that may echo a clone URL."""
        return text.replace(self._token, "***") if self._token else text

    async def _call(self, operation: str, func, *args, **kwargs):
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except GithubException as e:
            message = e.data.get("message") if isinstance(e.data, dict) else str(e.data)
            raise GitHubClientError(operation, message or str(e), status=e.status) from e

    async def create_comment(self, owner: str, repo: str, number: int, body: str) -> None:
        """
        Post a comment on an issue or pull request.

        Args:
            owner: Repository owner login
            repo: Repository name
            number: Issue or pull request number
            body: Markdown comment body
        """
        def _create() -> None:
            issue = self._github.get_repo(f"{owner}/{repo}").get_issue(number)
            issue.create_comment(body)

        await self._call("create_comment", _create)
        logger.debug(f"Posted comment on {owner}/{repo}#{number}")

    async def create_issue(self, owner: str, repo: str, title: str, body: str) -> int:
        """
        File a new issue.

        Returns:
            Number of the created issue
        """
        def _create() -> int:
            issue = self._github.get_repo(f"{owner}/{repo}").create_issue(title=title, body=body)
            return issue.number

        number = await self._call("create_issue", _create)
        logger.info(f"Created issue {owner}/{repo}#{number}")
        return number

    async def compare_commits(self, owner: str, repo: str, base: str, head: str) -> List[ComparedFile]:
        """
        Compare two commits and return the changed files in API order.

        Args:
            owner: Repository owner login
            repo: Repository name
            base: Base commit SHA
            head: Head commit SHA
        """
        def _compare() -> List[ComparedFile]:
            comparison = self._github.get_repo(f"{owner}/{repo}").compare(base, head)
            return [
                ComparedFile(
                    filename=f.filename,
                    status=FileStatus(f.status),
                    patch=f.patch,
                )
                for f in comparison.files
            ]

        return await self._call("compare_commits", _compare)
