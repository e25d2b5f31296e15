"""
Utility modules for the review bot.
"""

from review_bot.utils.logging import (
    get_logger,
    setup_logging,
    log_webhook_event,
    log_phase_transition,
    log_api_call,
    log_error_with_context,
)
from review_bot.utils.metrics import (
    WorkflowMetrics,
    track_api_call,
    emit_metric,
)
from review_bot.utils.signature import compute_signature, verify_signature

__all__ = [
    "get_logger",
    "setup_logging",
    "log_webhook_event",
    "log_phase_transition",
    "log_api_call",
    "log_error_with_context",
    "WorkflowMetrics",
    "track_api_call",
    "emit_metric",
    "compute_signature",
    "verify_signature",
]
