"""Error tracking data models."""

import traceback
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel


class ErrorRecord(BaseModel):
    """Error record for tracking workflow failures."""

    workflow: str
    run_id: str
    repository: str
    phase: str
    error_type: str
    message: str
    stack_trace: Optional[str] = None
    timestamp: datetime

    @classmethod
    def from_exception(
        cls,
        workflow: str,
        run_id: str,
        repository: str,
        phase: str,
        error: BaseException,
    ) -> "ErrorRecord":
        return cls(
            workflow=workflow,
            run_id=run_id,
            repository=repository,
            phase=phase,
            error_type=type(error).__name__,
            message=str(error),
            stack_trace="".join(traceback.format_exception(type(error), error, error.__traceback__)),
            timestamp=datetime.now(timezone.utc),
        )
