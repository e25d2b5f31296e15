"""
Per-run workflow state shared by both orchestrators.

Orchestrators are long-lived and serve concurrent runs, so anything that
belongs to a single run lives here instead of on the orchestrator.
"""

import uuid
from typing import Optional

from review_bot.models.error import ErrorRecord
from review_bot.utils.logging import ContextLoggerAdapter, log_error_with_context, log_phase_transition
from review_bot.utils.metrics import WorkflowMetrics


class WorkflowRun:
    """Identity, logger, metrics and current phase of one workflow run."""

    def __init__(
        self,
        workflow: str,
        repository: str,
        logger: ContextLoggerAdapter,
        pr_number: Optional[int] = None,
    ):
        self.workflow = workflow
        self.repository = repository
        self.run_id = uuid.uuid4().hex[:12]
        self.phase = "start"

        context = {"workflow": workflow, "run_id": self.run_id, "repository": repository}
        if pr_number is not None:
            context["pr_number"] = pr_number
        self.logger = logger.with_context(**context)
        self.metrics = WorkflowMetrics(workflow, self.run_id, repository, pr_number=pr_number)
        self.metrics.start()

    def enter(self, phase: str) -> None:
        """Mark the start of a phase; failures are attributed to it."""
        self.phase = phase
        log_phase_transition(self.logger, self.workflow, self.run_id, phase, "started")

    def record_failure(self, error: BaseException) -> ErrorRecord:
        """Log the failure of the current phase and close the metrics."""
        record = ErrorRecord.from_exception(
            workflow=self.workflow,
            run_id=self.run_id,
            repository=self.repository,
            phase=self.phase,
            error=error,
        )
        log_error_with_context(
            self.logger,
            f"Workflow {self.workflow} failed during {self.phase}: {error}",
            error,
            phase=self.phase,
            error_record=record.model_dump(mode="json", exclude={"stack_trace"}),
        )
        self.metrics.complete(status="failed", error_message=str(error))
        return record
