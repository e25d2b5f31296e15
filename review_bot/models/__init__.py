"""Data models for the review bot."""

from .analysis import ContentBlock, IssueDraft
from .api_response import ErrorResponse, WebhookResponse
from .error import ErrorRecord
from .file_change import ChangedFile, ComparedFile, FileStatus, RepositoryFile
from .pr_event import PullRequestContext, RepositoryRef
from .webhook_event import EventKind, WebhookEvent

__all__ = [
    # Webhook models
    "EventKind",
    "WebhookEvent",
    # Pull request / repository models
    "PullRequestContext",
    "RepositoryRef",
    # File models
    "FileStatus",
    "ComparedFile",
    "ChangedFile",
    "RepositoryFile",
    # Analysis models
    "ContentBlock",
    "IssueDraft",
    # Error models
    "ErrorRecord",
    # API response models
    "WebhookResponse",
    "ErrorResponse",
]
