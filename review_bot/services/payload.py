"""
Payload Normalizer.

GitHub delivers webhook bodies either as ``application/json`` or as
``application/x-www-form-urlencoded`` with the JSON document in a ``payload``
form field. Both shapes are decoded into the same dictionary.
"""

import json
from typing import Any, Dict
from urllib.parse import parse_qs


class PayloadParseError(ValueError):
    """Raised when a webhook body cannot be decoded into an event record."""
    pass


def _loads(document: str) -> Dict[str, Any]:
    try:
        payload = json.loads(document)
    except json.JSONDecodeError as e:
        raise PayloadParseError(f"Malformed JSON payload: {e}") from e

    if not isinstance(payload, dict):
        raise PayloadParseError("Webhook payload must be a JSON object")
    return payload


def normalize_payload(body: bytes, content_type: str) -> Dict[str, Any]:
    """
    Decode a webhook body into a payload dictionary.

    Args:
        body: Raw request body
        content_type: Value of the Content-Type header (may be empty)

    Returns:
        Parsed payload; ``{}`` for a form body without a ``payload`` field

    Raises:
        PayloadParseError: If the body or the embedded JSON is malformed
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise PayloadParseError("Webhook body is not valid UTF-8") from e

    if "application/json" in (content_type or "").lower():
        return _loads(text)

    form = parse_qs(text, keep_blank_values=True)
    values = form.get("payload")
    if not values:
        return {}
    return _loads(values[0])
