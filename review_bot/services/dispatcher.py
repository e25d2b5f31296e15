"""
Background dispatcher.

Workflows run after the webhook response has been sent. The dispatcher is the
only place their exceptions end up, so it logs everything that escapes and
never re-raises into the server.
"""

import time
from typing import Any, Awaitable, Callable

from review_bot.utils.logging import get_logger, log_error_with_context
from review_bot.utils.metrics import emit_metric

logger = get_logger(__name__)


class BackgroundDispatcher:
    """Runs fire-and-forget workflows with an error sink."""

    def __init__(self):
        self.in_flight = 0
        self.completed = 0
        self.failed = 0

    async def run(self, workflow: str, func: Callable[..., Awaitable[Any]], *args: Any) -> None:
        """
        Await one workflow run, logging its outcome.

        Args:
            workflow: Workflow name used in logs and metrics
            func: Coroutine function to run
            *args: Arguments for ``func``
        """
        self.in_flight += 1
        start_time = time.time()
        logger.info(f"Background workflow started: {workflow}", extra={"workflow": workflow})

        try:
            await func(*args)
        except Exception as e:
            self.failed += 1
            log_error_with_context(
                logger,
                f"Background workflow {workflow} raised: {e}",
                e,
                workflow=workflow,
            )
        else:
            self.completed += 1
        finally:
            self.in_flight -= 1
            duration_ms = (time.time() - start_time) * 1000
            emit_metric("workflow_duration_ms", duration_ms, workflow=workflow)
