"""
Sandbox Lifecycle Manager.

A sandbox is an ephemeral workspace owned by exactly one workflow run. The
``SandboxPool`` hands sandboxes out by key and guarantees every sandbox it
creates is destroyed exactly once, whichever way the holder exits.
"""

import asyncio
import os
import shutil
import uuid
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Callable, Dict, List

from review_bot.utils.logging import get_logger

logger = get_logger(__name__)


class SandboxError(Exception):
    """Base exception for sandbox failures."""
    pass


class SandboxCommandError(SandboxError):
    """A command run inside the sandbox exited with a non-zero status."""

    def __init__(self, exit_code: int, stderr: str):
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"Command exited with status {exit_code}: {stderr.strip()}")


@dataclass(frozen=True)
class ExecResult:
    exit_code: int
    stdout: str
    stderr: str


@dataclass(frozen=True)
class FileEntry:
    absolute_path: str
    type: str  # 'file' or 'directory'


class Sandbox(ABC):
    """Isolated workspace a workflow checks repositories out into."""

    key: str

    @property
    @abstractmethod
    def workspace(self) -> str:
        """Absolute path of the workspace root."""

    async def setup(self) -> None:
        """Prepare the workspace before first use."""

    @abstractmethod
    async def exec(self, command: str) -> ExecResult:
        """Run a shell command in the workspace."""

    @abstractmethod
    async def read_file(self, path: str) -> str:
        """Read a file by absolute path."""

    @abstractmethod
    async def list_files(self, root: str, recursive: bool = True) -> List[FileEntry]:
        """List entries under ``root``."""

    @abstractmethod
    async def destroy(self) -> None:
        """Tear the workspace down."""


class LocalSandbox(Sandbox):
    """
    Sandbox backed by a private directory on the local filesystem.

    Each instance gets its own directory, so two runs holding the same key
    one after the other never see each other's files.
    """

    def __init__(self, key: str, base_dir: Path):
        self.key = key
        self._root = Path(base_dir) / f"{key}-{uuid.uuid4().hex[:12]}"
        self._destroyed = False

    @property
    def workspace(self) -> str:
        return str(self._root)

    async def setup(self) -> None:
        def _create() -> Path:
            self._root.mkdir(parents=True, exist_ok=False)
            return self._root.resolve()

        self._root = await asyncio.to_thread(_create)
        logger.debug(f"Created sandbox {self.key} at {self._root}")

    def _resolve(self, path: str) -> Path:
        resolved = Path(path).resolve()
        if resolved != self._root and self._root not in resolved.parents:
            raise SandboxError(f"Path is outside the sandbox workspace: {path}")
        return resolved

    async def exec(self, command: str) -> ExecResult:
        if self._destroyed:
            raise SandboxError(f"Sandbox {self.key} has been destroyed")

        process = await asyncio.create_subprocess_shell(
            command,
            cwd=self._root,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env={**os.environ, "GIT_TERMINAL_PROMPT": "0"},
        )
        stdout, stderr = await process.communicate()
        result = ExecResult(
            exit_code=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
        if result.exit_code != 0:
            raise SandboxCommandError(result.exit_code, result.stderr)
        return result

    async def read_file(self, path: str) -> str:
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_text, encoding="utf-8", errors="replace")
        except OSError as e:
            raise SandboxError(f"Failed to read {path}: {e}") from e

    async def list_files(self, root: str, recursive: bool = True) -> List[FileEntry]:
        start = self._resolve(root)

        def _walk() -> List[FileEntry]:
            entries: List[FileEntry] = []
            for dirpath, dirnames, filenames in os.walk(start):
                for name in dirnames:
                    entries.append(FileEntry(os.path.join(dirpath, name), "directory"))
                for name in filenames:
                    full_path = os.path.join(dirpath, name)
                    if os.path.isfile(full_path) and not os.path.islink(full_path):
                        entries.append(FileEntry(full_path, "file"))
                if not recursive:
                    break
            return entries

        try:
            return await asyncio.to_thread(_walk)
        except OSError as e:
            raise SandboxError(f"Failed to list {root}: {e}") from e

    async def destroy(self) -> None:
        self._destroyed = True
        await asyncio.to_thread(shutil.rmtree, self._root, ignore_errors=True)
        logger.debug(f"Destroyed sandbox {self.key}")


SandboxFactory = Callable[[str], Sandbox]


class SandboxPool:
    """
    Keyed pool of sandboxes.

    Holders of the same key are serialized; different keys run concurrently.
    """

    def __init__(self, factory: SandboxFactory):
        self._factory = factory
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @classmethod
    def local(cls, base_dir: Path) -> "SandboxPool":
        """Pool creating ``LocalSandbox`` instances under ``base_dir``."""
        return cls(lambda key: LocalSandbox(key, base_dir))

    def in_use(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def acquire(self, key: str) -> AsyncIterator[Sandbox]:
        """
        Acquire a fresh sandbox for ``key`` and destroy it on exit.

        Usage:
            async with pool.acquire("review-octo-widgets-7") as sandbox:
                await sandbox.exec("git clone ...")
        """
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                sandbox = self._factory(key)
                try:
                    await sandbox.setup()
                    yield sandbox
                finally:
                    await sandbox.destroy()
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]
