"""
Event Router.

Maps a verified webhook event to at most one workflow and schedules it to run
after the response has been sent.
"""

from enum import Enum

from fastapi import BackgroundTasks
from review_bot.models.api_response import WebhookResponse
from review_bot.models.pr_event import PullRequestContext, RepositoryRef
from review_bot.models.webhook_event import EventKind, WebhookEvent
from review_bot.services.dispatcher import BackgroundDispatcher
from review_bot.services.issue_triage import IssueTriageOrchestrator
from review_bot.services.payload import PayloadParseError
from review_bot.services.pr_review import PRReviewOrchestrator
from review_bot.utils.logging import get_logger

logger = get_logger(__name__)

REVIEW_ACTIONS = ("opened", "reopened")


class RouteDecision(str, Enum):
    """Workflow chosen for an event."""

    REVIEW_PULL_REQUEST = "review_pull_request"
    TRIAGE_REPOSITORY = "triage_repository"
    IGNORE = "ignore"


class EventRouter:
    """Routes webhook events to the review and triage orchestrators."""

    def __init__(
        self,
        pr_review: PRReviewOrchestrator,
        issue_triage: IssueTriageOrchestrator,
        dispatcher: BackgroundDispatcher,
    ):
        self.pr_review = pr_review
        self.issue_triage = issue_triage
        self.dispatcher = dispatcher

    @staticmethod
    def classify(event: WebhookEvent) -> RouteDecision:
        if event.kind == EventKind.PULL_REQUEST and event.action in REVIEW_ACTIONS:
            return RouteDecision.REVIEW_PULL_REQUEST
        if event.kind == EventKind.PUSH:
            return RouteDecision.TRIAGE_REPOSITORY
        return RouteDecision.IGNORE

    def route(self, event: WebhookEvent, background_tasks: BackgroundTasks) -> WebhookResponse:
        """
        Schedule the workflow for an event and return the acknowledgement.

        Args:
            event: Verified and normalized webhook event
            background_tasks: Tasks run by the server after the response

        Returns:
            Acknowledgement for the webhook caller

        Raises:
            PayloadParseError: If the payload lacks the objects the workflow needs
        """
        decision = self.classify(event)
        payload = event.raw_payload

        if decision == RouteDecision.REVIEW_PULL_REQUEST:
            try:
                pr = PullRequestContext.from_payload(
                    payload.get("pull_request") or {}, payload.get("repository") or {}
                )
            except ValueError as e:
                raise PayloadParseError(f"Invalid pull_request payload: {e}") from e

            logger.info(f"Starting review for PR #{pr.number}", extra={"delivery_id": event.delivery_id})
            background_tasks.add_task(self.dispatcher.run, PRReviewOrchestrator.WORKFLOW, self.pr_review.run, pr)
            return WebhookResponse(message="Review started")

        if decision == RouteDecision.TRIAGE_REPOSITORY:
            try:
                repository = RepositoryRef.from_payload(payload.get("repository") or {})
            except ValueError as e:
                raise PayloadParseError(f"Invalid repository payload: {e}") from e

            logger.info(
                f"Starting triage for {repository.full_name}", extra={"delivery_id": event.delivery_id}
            )
            background_tasks.add_task(
                self.dispatcher.run, IssueTriageOrchestrator.WORKFLOW, self.issue_triage.run, repository
            )
            return WebhookResponse(message="Issue Review Started")

        logger.info(
            f"Ignoring event: {event.event_type} ({event.action})", extra={"delivery_id": event.delivery_id}
        )
        return WebhookResponse(message="Event ignored")
