"""API response data models."""

from pydantic import BaseModel


class WebhookResponse(BaseModel):
    """Response from webhook handler."""

    message: str


class ErrorResponse(BaseModel):
    """Error body returned when a delivery is rejected."""

    error: str
