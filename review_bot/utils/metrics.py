"""
Metrics collection and emission for observability.

This module provides metrics tracking for:
- Workflow execution time
- Number of files analyzed
- Collaborator call latency (GitHub, sandbox, analysis service)
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from review_bot.utils.logging import get_logger, log_api_call

logger = get_logger(__name__)


class WorkflowMetrics:
    """
    Collects metrics during one workflow run.

    Tracks:
    - Execution start/end time
    - Files analyzed
    - Whether the result was published
    - API call counts and latency per service
    - Final status and error
    """

    def __init__(
        self,
        workflow: str,
        run_id: str,
        repository: str,
        pr_number: Optional[int] = None,
    ):
        self.workflow = workflow
        self.run_id = run_id
        self.repository = repository
        self.pr_number = pr_number

        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.duration_ms: Optional[int] = None

        self.files_analyzed: int = 0
        self.published: bool = False

        self.api_calls: Dict[str, int] = {}
        self.api_latencies: Dict[str, list[float]] = {}

        self.status: str = "pending"
        self.error_message: Optional[str] = None

    def start(self) -> None:
        """Mark workflow execution start."""
        self.start_time = datetime.now(timezone.utc)
        self.status = "running"

    def complete(self, status: str = "completed", error_message: Optional[str] = None) -> None:
        """
        Mark workflow completion and log the summary.

        Args:
            status: Final status ('completed', 'failed', 'aborted')
            error_message: Error message if failed
        """
        self.end_time = datetime.now(timezone.utc)
        self.status = status
        self.error_message = error_message

        if self.start_time:
            duration = (self.end_time - self.start_time).total_seconds()
            self.duration_ms = int(duration * 1000)

        logger.info(
            f"Workflow {self.workflow} finished with status {self.status}",
            extra={
                "workflow": self.workflow,
                "run_id": self.run_id,
                "repository": self.repository,
                "status": self.status,
                "duration_ms": self.duration_ms,
                "files_analyzed": self.files_analyzed,
                "published": self.published,
            },
        )

    def record_files_analyzed(self, count: int) -> None:
        self.files_analyzed = count

    def record_published(self, published: bool = True) -> None:
        self.published = published

    def record_api_call(self, service: str, duration_ms: float) -> None:
        """
        Record an API call and its latency.

        Args:
            service: Service name (e.g., 'github', 'analysis')
            duration_ms: Call duration in milliseconds
        """
        self.api_calls[service] = self.api_calls.get(service, 0) + 1
        self.api_latencies.setdefault(service, []).append(duration_ms)

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Get summary of collected metrics."""
        summary: Dict[str, Any] = {
            "workflow": self.workflow,
            "run_id": self.run_id,
            "repository": self.repository,
            "pr_number": self.pr_number,
            "status": self.status,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_ms": self.duration_ms,
            "files_analyzed": self.files_analyzed,
            "published": self.published,
            "api_calls": self.api_calls,
        }

        if self.api_latencies:
            latency_stats = {}
            for service, latencies in self.api_latencies.items():
                if latencies:
                    latency_stats[service] = {
                        "count": len(latencies),
                        "min_ms": round(min(latencies), 2),
                        "max_ms": round(max(latencies), 2),
                        "avg_ms": round(sum(latencies) / len(latencies), 2),
                    }
            summary["api_latencies"] = latency_stats

        if self.error_message:
            summary["error_message"] = self.error_message

        return summary


@asynccontextmanager
async def track_api_call(
    metrics: Optional[WorkflowMetrics],
    service: str,
    endpoint: str,
    logger_adapter,
):
    """
    Context manager to track collaborator call timing.

    Usage:
        async with track_api_call(metrics, "github", "compare_commits", logger):
            files = await github.compare_commits(...)
    """
    start_time = time.time()
    error = None

    try:
        yield
    except Exception as e:
        error = e
        raise
    finally:
        duration_ms = (time.time() - start_time) * 1000

        if metrics:
            metrics.record_api_call(service, duration_ms)

        log_api_call(
            logger_adapter,
            service=service,
            endpoint=endpoint,
            duration_ms=duration_ms,
            error=str(error) if error else None,
        )


def emit_metric(metric_name: str, value: float, **tags: Any) -> None:
    """
    Emit a metric as a structured log record.

    Args:
        metric_name: Metric name
        value: Metric value
        **tags: Metric tags/labels
    """
    logger.info(
        f"Metric: {metric_name}",
        extra={
            "metric_name": metric_name,
            "metric_value": value,
            "metric_tags": tags,
        },
    )
