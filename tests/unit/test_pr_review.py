"""
Unit tests for the PR Review Orchestrator.
"""

import pytest

from review_bot.models.analysis import ContentBlock
from review_bot.models.file_change import ComparedFile, FileStatus
from review_bot.models.pr_event import PullRequestContext
from review_bot.services.github_client import GitHubClientError
from review_bot.services.pr_review import (
    FALLBACK_REVIEW,
    IN_PROGRESS_MESSAGE,
    PRReviewOrchestrator,
    first_text_block,
    sandbox_key,
    select_files,
)
from review_bot.services.sandbox import SandboxError

REPO_DIR = "/workspace/repo"


@pytest.fixture
def pr():
    return PullRequestContext(
        number=7,
        title="Add widget cache",
        head_ref="feature/cache",
        head_sha="h" * 40,
        base_sha="b" * 40,
        owner_login="octo",
        repo_name="widgets",
    )


def compared(name: str, status: FileStatus = FileStatus.MODIFIED) -> ComparedFile:
    return ComparedFile(filename=name, status=status, patch=f"@@ -1 +1 @@ {name}")


@pytest.fixture
def two_file_pool(make_sandbox_pool):
    return make_sandbox_pool({
        f"{REPO_DIR}/src/cache.py": "CACHE = {}\n",
        f"{REPO_DIR}/src/widget.py": "class Widget: ...\n",
    })


@pytest.fixture
def orchestrator_factory(settings, github, analysis):
    def _build(pool):
        return PRReviewOrchestrator(settings, github, analysis, pool)
    return _build


def posted_bodies(github):
    return [call.args[3] for call in github.create_comment.call_args_list]


class TestPRReviewOrchestrator:
    """Test suite for the pull request review workflow."""

    @pytest.mark.asyncio
    async def test_review_posts_progress_then_review(self, pr, github, analysis, two_file_pool, orchestrator_factory):
        github.compare_commits.return_value = [compared("src/cache.py"), compared("src/widget.py")]
        analysis.complete_text.return_value = [ContentBlock(type="text", text="Looks reasonable.")]

        await orchestrator_factory(two_file_pool).run(pr)

        bodies = posted_bodies(github)
        assert len(bodies) == 2
        assert bodies[0] == IN_PROGRESS_MESSAGE
        assert bodies[1].startswith("## Code Review\n\nLooks reasonable.")
        assert bodies[1].endswith("*Generated by gpt-4o*")
        github.compare_commits.assert_awaited_once_with("octo", "widgets", "b" * 40, "h" * 40)
        assert two_file_pool.destroy_calls == 1

    @pytest.mark.asyncio
    async def test_checkout_is_shallow_clone_of_head_ref(self, pr, github, two_file_pool, orchestrator_factory):
        await orchestrator_factory(two_file_pool).run(pr)

        sandbox = two_file_pool.created[0]
        assert sandbox.key == "review-octo-widgets-7"
        assert len(sandbox.commands) == 1
        command = sandbox.commands[0]
        assert command.startswith("git clone --depth=1")
        assert "--branch=feature/cache" in command
        assert "https://test-token@github.com/octo/widgets.git" in command
        assert command.endswith(REPO_DIR)

    @pytest.mark.asyncio
    async def test_selects_first_five_files(self, pr, github, analysis, make_sandbox_pool, orchestrator_factory):
        names = [f"src/module_{i}.py" for i in range(8)]
        pool = make_sandbox_pool({f"{REPO_DIR}/{name}": f"# {name}\n" for name in names})
        github.compare_commits.return_value = [compared(name) for name in names]

        await orchestrator_factory(pool).run(pr)

        assert pool.created[0].reads == [f"{REPO_DIR}/{name}" for name in names[:5]]
        prompt = analysis.complete_text.await_args.args[0]
        assert "File: src/module_4.py" in prompt
        assert "File: src/module_5.py" not in prompt

    @pytest.mark.asyncio
    async def test_removed_files_are_skipped(self, pr, github, two_file_pool, orchestrator_factory):
        github.compare_commits.return_value = [
            compared("src/old.py", FileStatus.REMOVED),
            compared("src/cache.py"),
        ]

        await orchestrator_factory(two_file_pool).run(pr)

        assert two_file_pool.created[0].reads == [f"{REPO_DIR}/src/cache.py"]

    @pytest.mark.asyncio
    async def test_content_is_truncated_in_prompt(self, pr, github, analysis, make_sandbox_pool, orchestrator_factory):
        content = "a" * 1000 + "b" * 4000
        pool = make_sandbox_pool({f"{REPO_DIR}/big.py": content})
        github.compare_commits.return_value = [compared("big.py")]

        await orchestrator_factory(pool).run(pr)

        prompt = analysis.complete_text.await_args.args[0]
        assert prompt.split("Content:\n", 1)[1].split("\n\nProvide", 1)[0] == "a" * 1000
        assert "Title: Add widget cache" in prompt
        assert "Diff:\n@@ -1 +1 @@ big.py" in prompt

    @pytest.mark.asyncio
    async def test_fallback_text_when_no_text_block(self, pr, github, analysis, two_file_pool, orchestrator_factory):
        analysis.complete_text.return_value = [ContentBlock(type="refusal", text="I can't help")]

        await orchestrator_factory(two_file_pool).run(pr)

        assert posted_bodies(github)[1].startswith(f"## Code Review\n\n{FALLBACK_REVIEW}")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failure_point", ["checkout", "compare", "read", "analyze", "publish"])
    async def test_failure_reports_and_destroys_sandbox(
        self, failure_point, pr, github, analysis, make_sandbox_pool, orchestrator_factory
    ):
        pool = make_sandbox_pool(
            {f"{REPO_DIR}/src/cache.py": "CACHE = {}\n"},
            fail_exec=failure_point == "checkout",
        )
        github.compare_commits.return_value = [compared("src/cache.py")]
        analysis.complete_text.return_value = [ContentBlock(type="text", text="ok")]

        if failure_point == "compare":
            github.compare_commits.side_effect = GitHubClientError("compare_commits", "Not Found", 404)
        elif failure_point == "read":
            github.compare_commits.return_value = [compared("src/missing.py")]
        elif failure_point == "analyze":
            analysis.complete_text.side_effect = RuntimeError("model overloaded")
        elif failure_point == "publish":
            github.create_comment.side_effect = [None, GitHubClientError("create_comment", "boom"), None]

        await orchestrator_factory(pool).run(pr)

        assert pool.destroy_calls == 1
        bodies = posted_bodies(github)
        assert bodies[0] == IN_PROGRESS_MESSAGE
        assert bodies[-1].startswith("Review failed: ")

    @pytest.mark.asyncio
    async def test_announce_failure_aborts(self, pr, github, analysis, two_file_pool, orchestrator_factory):
        github.create_comment.side_effect = GitHubClientError("create_comment", "Forbidden", 403)

        await orchestrator_factory(two_file_pool).run(pr)

        assert github.create_comment.await_count == 1
        github.compare_commits.assert_not_awaited()
        analysis.complete_text.assert_not_awaited()
        assert two_file_pool.created[0].commands == []
        assert two_file_pool.destroy_calls == 1

    @pytest.mark.asyncio
    async def test_failure_comment_error_does_not_escape(self, pr, github, analysis, two_file_pool, orchestrator_factory):
        analysis.complete_text.side_effect = RuntimeError("model overloaded")
        github.create_comment.side_effect = [None, GitHubClientError("create_comment", "boom")]

        await orchestrator_factory(two_file_pool).run(pr)

        assert two_file_pool.destroy_calls == 1

    @pytest.mark.asyncio
    async def test_clone_failure_message_hides_token(self, pr, github, make_sandbox_pool, orchestrator_factory):
        pool = make_sandbox_pool()

        async def failing_exec(command):
            raise SandboxError("fatal: could not read from https://test-token@github.com/octo/widgets.git")

        orchestrator = orchestrator_factory(pool)
        original_create = pool._create

        def create(key):
            sandbox = original_create(key)
            sandbox.exec = failing_exec
            return sandbox

        pool._factory = create

        await orchestrator.run(pr)

        failure = posted_bodies(github)[-1]
        assert "test-token" not in failure
        assert "***@github.com" in failure


def test_select_files_skips_removed_and_bounds():
    files = [compared(f"f{i}.py", FileStatus.REMOVED if i % 3 == 0 else FileStatus.ADDED) for i in range(12)]
    selected = select_files(files, 5)
    assert [f.filename for f in selected] == ["f1.py", "f2.py", "f4.py", "f5.py", "f7.py"]


def test_first_text_block_prefers_first_text():
    blocks = [
        ContentBlock(type="refusal", text="no"),
        ContentBlock(type="text", text="first"),
        ContentBlock(type="text", text="second"),
    ]
    assert first_text_block(blocks) == "first"
    assert first_text_block([]) == FALLBACK_REVIEW


def test_sandbox_key_includes_repository():
    first = PullRequestContext(
        number=7, title="", head_ref="a", head_sha="h", base_sha="b", owner_login="octo", repo_name="widgets"
    )
    second = first.model_copy(update={"repo_name": "gadgets"})

    assert sandbox_key(first) == "review-octo-widgets-7"
    assert sandbox_key(first) != sandbox_key(second)
