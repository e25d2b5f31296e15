"""
PR Review Orchestrator.

Drives one pull request review: announce, check out the head branch, collect
the first changed files, ask the analysis service for a review and post it.
Any failure after the announcement is reported back on the pull request.
"""

import shlex
from typing import List

from review_bot.config import Settings
from review_bot.models.analysis import ContentBlock
from review_bot.models.file_change import ChangedFile, FileStatus
from review_bot.models.pr_event import PullRequestContext
from review_bot.services.analysis_service import AnalysisService
from review_bot.services.github_client import GitHubClient
from review_bot.services.sandbox import Sandbox, SandboxError, SandboxPool
from review_bot.services.workflow import WorkflowRun
from review_bot.utils.logging import get_logger, log_error_with_context
from review_bot.utils.metrics import track_api_call

logger = get_logger(__name__)

IN_PROGRESS_MESSAGE = "Code review in progress..."
FALLBACK_REVIEW = "No review generated"


def sandbox_key(pr: PullRequestContext) -> str:
    return f"review-{pr.owner_login}-{pr.repo_name}-{pr.number}"


def select_files(files, limit: int) -> list:
    """First ``limit`` files of a comparison that were not removed."""
    return [f for f in files if f.status != FileStatus.REMOVED][:limit]


def first_text_block(blocks: List[ContentBlock]) -> str:
    for block in blocks:
        if block.type == "text" and block.text:
            return block.text
    return FALLBACK_REVIEW


class PRReviewOrchestrator:
    """Reviews pull requests and posts the result as a comment."""

    WORKFLOW = "pr_review"

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
        self.max_files = settings.review_max_files
        self.content_chars = settings.review_content_chars
        self.attribution = settings.analysis_model

    async def run(self, pr: PullRequestContext) -> None:
        """
        Review a pull request end to end.

        Never raises for collaborator failures; those are logged and
        reported on the pull request.

        Args:
            pr: Pull request taken from the webhook payload
        """
        run = WorkflowRun(self.WORKFLOW, pr.repository.full_name, logger, pr_number=pr.number)
        run.logger.info(f"Starting review for PR #{pr.number}")

        try:
            run.enter("acquire_sandbox")
            async with self.sandboxes.acquire(sandbox_key(pr)) as sandbox:
                if not await self._announce(run, pr):
                    return
                try:
                    await self._review(run, pr, sandbox)
                except Exception as e:
                    run.record_failure(e)
                    await self._report_failure(run, pr, e)
                    return
        except Exception as e:
            # Sandbox acquisition or teardown failed
            run.record_failure(e)
            return

        run.metrics.complete(status="completed")
        run.logger.info("Review complete!")

    async def _announce(self, run: WorkflowRun, pr: PullRequestContext) -> bool:
        run.enter("announce")
        try:
            async with track_api_call(run.metrics, "github", "create_comment", run.logger):
                await self.github.create_comment(pr.owner_login, pr.repo_name, pr.number, IN_PROGRESS_MESSAGE)
        except Exception as e:
            log_error_with_context(run.logger, f"Could not announce review, aborting: {e}", e)
            run.metrics.complete(status="aborted", error_message=str(e))
            return False
        return True

    async def _review(self, run: WorkflowRun, pr: PullRequestContext, sandbox: Sandbox) -> None:
        repo_dir = f"{sandbox.workspace}/repo"

        run.enter("checkout")
        clone_url = self.github.clone_url(pr.owner_login, pr.repo_name)
        command = (
            f"git clone --depth=1 --single-branch --branch={shlex.quote(pr.head_ref)} "
            f"{shlex.quote(clone_url)} {shlex.quote(repo_dir)}"
        )
        async with track_api_call(run.metrics, "sandbox", "clone", run.logger):
            try:
                await sandbox.exec(command)
            except SandboxError as e:
                raise SandboxError(self.github.redact(str(e))) from None

        run.enter("diff_discovery")
        async with track_api_call(run.metrics, "github", "compare_commits", run.logger):
            comparison = await self.github.compare_commits(
                pr.owner_login, pr.repo_name, pr.base_sha, pr.head_sha
            )
        selected = select_files(comparison, self.max_files)

        run.enter("content_collection")
        files: List[ChangedFile] = []
        for compared in selected:
            async with track_api_call(run.metrics, "sandbox", "read_file", run.logger):
                content = await sandbox.read_file(f"{repo_dir}/{compared.filename}")
            files.append(
                ChangedFile(path=compared.filename, unified_diff=compared.patch or "", content=content)
            )
        run.metrics.record_files_analyzed(len(files))

        run.enter("analyze")
        run.logger.info(f"Analyzing {len(files)} files")
        prompt = self.build_prompt(pr.title, files)
        async with track_api_call(run.metrics, "analysis", "complete_text", run.logger):
            blocks = await self.analysis.complete_text(prompt)
        review = first_text_block(blocks)

        run.enter("publish")
        async with track_api_call(run.metrics, "github", "create_comment", run.logger):
            await self.github.create_comment(
                pr.owner_login, pr.repo_name, pr.number, self.format_review(review)
            )
        run.metrics.record_published()

    async def _report_failure(self, run: WorkflowRun, pr: PullRequestContext, error: Exception) -> None:
        try:
            await self.github.create_comment(
                pr.owner_login, pr.repo_name, pr.number, f"Review failed: {error}"
            )
        except Exception as e:
            log_error_with_context(run.logger, f"Could not post failure comment: {e}", e)

    def build_prompt(self, title: str, files: List[ChangedFile]) -> str:
        """Build the review prompt; file content is cut to ``content_chars``."""
        sections = "\n\n".join(
            f"File: {f.path}\nDiff:\n{f.unified_diff}\n\nContent:\n{f.content[:self.content_chars]}"
            for f in files
        )
        return (
            "Review this PR:\n\n"
            f"Title: {title}\n\n"
            "Changed files:\n"
            f"{sections}\n\n"
            "Provide a brief code review focusing on bugs, security, and best practices."
        )

    def format_review(self, review: str) -> str:
        return f"## Code Review\n\n{review}\n\n---\n*Generated by {self.attribution}*"
