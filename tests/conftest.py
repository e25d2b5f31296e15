"""
Shared fixtures: test settings and in-memory collaborators.
"""

import os
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

# Required settings must exist before review_bot.main is imported
os.environ.setdefault("GITHUB_TOKEN", "test-token")
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("WEBHOOK_SECRET", "test-secret")

from review_bot.config import Settings, get_settings  # noqa: E402
from review_bot.services.analysis_service import AnalysisService  # noqa: E402
from review_bot.services.github_client import GitHubClient  # noqa: E402
from review_bot.services.sandbox import (  # noqa: E402
    ExecResult,
    FileEntry,
    Sandbox,
    SandboxCommandError,
    SandboxError,
    SandboxPool,
)


class FakeSandbox(Sandbox):
    """In-memory sandbox recording every call."""

    def __init__(self, key: str, files: Dict[str, str], fail_exec: bool = False):
        self.key = key
        self.files = files
        self.fail_exec = fail_exec
        self.commands: List[str] = []
        self.reads: List[str] = []
        self.destroy_calls = 0

    @property
    def workspace(self) -> str:
        return "/workspace"

    async def exec(self, command: str) -> ExecResult:
        self.commands.append(command)
        if self.fail_exec:
            raise SandboxCommandError(128, "fatal: Remote branch not found")
        return ExecResult(0, "", "")

    async def read_file(self, path: str) -> str:
        self.reads.append(path)
        if path not in self.files:
            raise SandboxError(f"No such file: {path}")
        return self.files[path]

    async def list_files(self, root: str, recursive: bool = True) -> List[FileEntry]:
        entries = []
        directories = set()
        for path in sorted(self.files):
            if not path.startswith(root + "/"):
                continue
            entries.append(FileEntry(path, "file"))
            parent = path.rsplit("/", 1)[0]
            while parent != root and parent not in directories:
                directories.add(parent)
                entries.append(FileEntry(parent, "directory"))
                parent = parent.rsplit("/", 1)[0]
        return entries

    async def destroy(self) -> None:
        self.destroy_calls += 1


class FakeSandboxPool(SandboxPool):
    """Sandbox pool handing out ``FakeSandbox`` instances over a shared file map."""

    def __init__(self, files: Optional[Dict[str, str]] = None, fail_exec: bool = False):
        self.files = files if files is not None else {}
        self.fail_exec = fail_exec
        self.created: List[FakeSandbox] = []
        super().__init__(self._create)

    def _create(self, key: str) -> FakeSandbox:
        sandbox = FakeSandbox(key, self.files, fail_exec=self.fail_exec)
        self.created.append(sandbox)
        return sandbox

    @property
    def destroy_calls(self) -> int:
        return sum(sandbox.destroy_calls for sandbox in self.created)


@pytest.fixture
def settings():
    """Settings with test secrets and default tunables."""
    return Settings(
        github_token="test-token",
        openai_api_key="test-key",
        webhook_secret="test-secret",
        _env_file=None,
    )


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def github():
    """GitHub client double; async methods are AsyncMocks."""
    client = MagicMock(spec=GitHubClient)
    client.clone_url.return_value = "https://test-token@github.com/octo/widgets.git"
    client.redact.side_effect = lambda text: text.replace("test-token", "***")
    client.compare_commits.return_value = []
    client.create_issue.return_value = 1
    return client


@pytest.fixture
def analysis():
    """Analysis service double; async methods are AsyncMocks."""
    service = MagicMock(spec=AnalysisService)
    service.complete_text = AsyncMock(return_value=[])
    service.complete_structured = AsyncMock(return_value=None)
    return service


@pytest.fixture
def sandbox_pool():
    return FakeSandboxPool()


@pytest.fixture
def make_sandbox_pool():
    """Factory for pools over a given file map."""
    return FakeSandboxPool
