"""
Webhook endpoint for GitHub repository events.
"""

from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Request
from fastapi.responses import JSONResponse

from review_bot.config import Settings, get_settings
from review_bot.models.api_response import ErrorResponse, WebhookResponse
from review_bot.models.webhook_event import WebhookEvent
from review_bot.services.analysis_service import AnalysisService
from review_bot.services.dispatcher import BackgroundDispatcher
from review_bot.services.event_router import EventRouter
from review_bot.services.github_client import GitHubClient
from review_bot.services.issue_triage import IssueTriageOrchestrator
from review_bot.services.payload import PayloadParseError, normalize_payload
from review_bot.services.pr_review import PRReviewOrchestrator
from review_bot.services.sandbox import SandboxPool
from review_bot.utils.logging import get_logger, log_webhook_event
from review_bot.utils.signature import verify_signature

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


@lru_cache
def get_event_router() -> EventRouter:
    """Build the event router and its collaborators from settings."""
    settings = get_settings()
    github = GitHubClient(settings.github_token, host=settings.github_host)
    analysis = AnalysisService(settings)
    sandboxes = SandboxPool.local(settings.sandbox_root)
    return EventRouter(
        pr_review=PRReviewOrchestrator(settings, github, analysis, sandboxes),
        issue_triage=IssueTriageOrchestrator(settings, github, analysis, sandboxes),
        dispatcher=BackgroundDispatcher(),
    )


@router.post(
    "/webhook",
    response_model=WebhookResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
async def handle_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_hub_signature_256: Optional[str] = Header(None),
    x_github_event: Optional[str] = Header(None),
    x_github_delivery: Optional[str] = Header(None),
    content_type: str = Header(""),
    settings: Settings = Depends(get_settings),
    event_router: EventRouter = Depends(get_event_router),
):
    """
    Receive a GitHub webhook delivery.

    1. Verifies the signature over the raw body
    2. Decodes the JSON or form-encoded payload
    3. Routes the event and returns immediately; workflows run in the background
    """
    # Raw bytes, never a re-serialized body
    body = await request.body()

    if not verify_signature(body, x_hub_signature_256, settings.webhook_secret):
        logger.warning("Invalid webhook signature received", extra={"delivery_id": x_github_delivery})
        return JSONResponse(status_code=401, content={"error": "Invalid signature"})

    try:
        payload = normalize_payload(body, content_type)
        event = WebhookEvent.from_request(x_github_event, payload, delivery_id=x_github_delivery)
        log_webhook_event(logger, x_github_event or "", event.action, x_github_delivery)
        return event_router.route(event, background_tasks)
    except PayloadParseError as e:
        logger.warning(f"Rejected webhook payload: {e}", extra={"delivery_id": x_github_delivery})
        return JSONResponse(status_code=400, content={"error": "Invalid payload"})
