"""Business logic services package."""

from review_bot.services.analysis_service import AnalysisService, AnalysisServiceError
from review_bot.services.dispatcher import BackgroundDispatcher
from review_bot.services.event_router import EventRouter, RouteDecision
from review_bot.services.github_client import GitHubClient, GitHubClientError
from review_bot.services.issue_triage import IssueTriageOrchestrator, MissingStructuredOutputError
from review_bot.services.payload import PayloadParseError, normalize_payload
from review_bot.services.pr_review import PRReviewOrchestrator
from review_bot.services.sandbox import (
    LocalSandbox,
    Sandbox,
    SandboxCommandError,
    SandboxError,
    SandboxPool,
)

__all__ = [
    'AnalysisService',
    'AnalysisServiceError',
    'BackgroundDispatcher',
    'EventRouter',
    'RouteDecision',
    'GitHubClient',
    'GitHubClientError',
    'IssueTriageOrchestrator',
    'MissingStructuredOutputError',
    'PayloadParseError',
    'normalize_payload',
    'PRReviewOrchestrator',
    'LocalSandbox',
    'Sandbox',
    'SandboxCommandError',
    'SandboxError',
    'SandboxPool',
]
