"""
Issue-Triage Orchestrator.

Checks out a branch of the pushed repository, reads its files within a
configurable budget, asks the analysis service for a structured issue and
files it. Failures are logged as dead-letter records; nothing is posted to
the repository.
"""

import os
import shlex
from typing import Iterable, List

from review_bot.config import Settings
from review_bot.models.analysis import IssueDraft
from review_bot.models.file_change import RepositoryFile
from review_bot.models.pr_event import RepositoryRef
from review_bot.services.analysis_service import AnalysisService
from review_bot.services.github_client import GitHubClient
from review_bot.services.sandbox import FileEntry, Sandbox, SandboxError, SandboxPool
from review_bot.services.workflow import WorkflowRun
from review_bot.utils.logging import get_logger
from review_bot.utils.metrics import track_api_call

logger = get_logger(__name__)

DEAD_LETTER_LOGGER = "review_bot.dead_letter"


class MissingStructuredOutputError(Exception):
    """The analysis service returned no usable structured output."""
    pass


def sandbox_key(repository: RepositoryRef) -> str:
    return f"issue-triage-{repository.owner_login}-{repository.name}"


def is_excluded(relative_path: str, excluded_dirs: Iterable[str]) -> bool:
    """True if any directory component of the path is an excluded name."""
    excluded = set(excluded_dirs)
    parts = relative_path.replace(os.sep, "/").split("/")
    return any(part in excluded for part in parts[:-1])


class IssueTriageOrchestrator:
    """Scans a repository and files a triage issue."""

    WORKFLOW = "issue_triage"

    def __init__(
        self,
        settings: Settings,
        github: GitHubClient,
        analysis: AnalysisService,
        sandboxes: SandboxPool,
    ):
        self.github = github
        self.analysis = analysis
        self.sandboxes = sandboxes
        self.branch = settings.triage_branch
        self.excluded_dirs = list(settings.triage_excluded_dirs)
        self.max_files = settings.triage_max_files
        self.max_total_chars = settings.triage_max_total_chars
        self.dead_letter = get_logger(DEAD_LETTER_LOGGER)

    async def run(self, repository: RepositoryRef) -> None:
        """
        Scan a repository and file one issue with the findings.

        Never raises; failures are written to the dead-letter log.

        Args:
            repository: Repository taken from the push payload
        """
        run = WorkflowRun(self.WORKFLOW, repository.full_name, logger)
        run.logger.info("Analyzing codebase")

        try:
            run.enter("acquire_sandbox")
            async with self.sandboxes.acquire(sandbox_key(repository)) as sandbox:
                await self._triage(run, repository, sandbox)
        except Exception as e:
            record = run.record_failure(e)
            self.dead_letter.error(
                f"Triage run {run.run_id} for {repository.full_name} dropped",
                extra={"error_record": record.model_dump(mode="json")},
            )
            return

        run.metrics.complete(status="completed")

    async def _triage(self, run: WorkflowRun, repository: RepositoryRef, sandbox: Sandbox) -> None:
        repo_dir = f"{sandbox.workspace}/repo"

        run.enter("checkout")
        clone_url = self.github.clone_url(repository.owner_login, repository.name)
        command = (
            f"git clone --depth=1 --single-branch --branch={shlex.quote(self.branch)} "
            f"{shlex.quote(clone_url)} {shlex.quote(repo_dir)}"
        )
        async with track_api_call(run.metrics, "sandbox", "clone", run.logger):
            try:
                await sandbox.exec(command)
            except SandboxError as e:
                raise SandboxError(self.github.redact(str(e))) from None

        run.enter("enumerate")
        async with track_api_call(run.metrics, "sandbox", "list_files", run.logger):
            entries = await sandbox.list_files(repo_dir, recursive=True)
        candidates = self.filter_entries(entries, repo_dir)
        run.logger.info(f"Found {len(candidates)} files to analyze")

        run.enter("read_all")
        files = await self._read_within_budget(run, sandbox, candidates, repo_dir)
        omitted = len(candidates) - len(files)
        if omitted:
            run.logger.warning(
                f"Read budget reached, {omitted} files omitted",
                extra={"max_files": self.max_files, "max_total_chars": self.max_total_chars},
            )
        run.metrics.record_files_analyzed(len(files))

        run.enter("analyze")
        prompt = self.build_prompt(files, omitted)
        async with track_api_call(run.metrics, "analysis", "complete_structured", run.logger):
            draft = await self.analysis.complete_structured(prompt, IssueDraft)

        run.enter("validate")
        if draft is None:
            raise MissingStructuredOutputError("No parsed output")

        run.enter("publish")
        async with track_api_call(run.metrics, "github", "create_issue", run.logger):
            number = await self.github.create_issue(
                repository.owner_login, repository.name, draft.title, draft.body
            )
        run.metrics.record_published()
        run.logger.info(f"Filed triage issue #{number}")

    def filter_entries(self, entries: List[FileEntry], repo_dir: str) -> List[FileEntry]:
        """Regular files outside dependency caches and VCS metadata, sorted by path."""
        kept = [
            entry
            for entry in entries
            if entry.type == "file"
            and not is_excluded(os.path.relpath(entry.absolute_path, repo_dir), self.excluded_dirs)
        ]
        return sorted(kept, key=lambda entry: entry.absolute_path)

    async def _read_within_budget(
        self,
        run: WorkflowRun,
        sandbox: Sandbox,
        candidates: List[FileEntry],
        repo_dir: str,
    ) -> List[RepositoryFile]:
        """
        Read files in order until the count or character budget runs out.

        The file that crosses the character budget is kept, cut to the
        remaining budget, and reading stops there.
        """
        files: List[RepositoryFile] = []
        remaining = self.max_total_chars

        for entry in candidates:
            if len(files) >= self.max_files or remaining <= 0:
                break
            async with track_api_call(run.metrics, "sandbox", "read_file", run.logger):
                content = await sandbox.read_file(entry.absolute_path)

            truncated = len(content) > remaining
            if truncated:
                content = content[:remaining]
            remaining -= len(content)

            files.append(
                RepositoryFile(
                    absolute_path=entry.absolute_path,
                    relative_path=os.path.relpath(entry.absolute_path, repo_dir),
                    content=content,
                    truncated=truncated,
                )
            )
        return files

    def build_prompt(self, files: List[RepositoryFile], omitted: int = 0) -> str:
        body = "\n\n".join(
            f"File: {f.relative_path}{' (truncated)' if f.truncated else ''}\nContent:\n{f.content}"
            for f in files
        )
        prompt = (
            "Analyze this codebase for issues focusing on bugs, security, and best practices. "
            "Respond with a GitHub issue: a short title and a markdown body listing the findings.\n\n"
            f"{body}"
        )
        if omitted:
            prompt += f"\n\n({omitted} more files were omitted to stay within the analysis budget.)"
        return prompt
