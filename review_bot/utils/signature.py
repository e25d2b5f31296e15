"""
Webhook signature verification.

GitHub signs every delivery with HMAC-SHA256 over the raw request body using
the shared webhook secret and sends the result in ``X-Hub-Signature-256`` as
``sha256=<hexdigest>``.
"""

import hashlib
import hmac
from typing import Optional

SIGNATURE_PREFIX = "sha256="


def compute_signature(body: bytes, secret: str) -> str:
    """
    Compute the signature GitHub would send for a body.

    Args:
        body: Raw request body exactly as received
        secret: Shared webhook secret

    Returns:
        Signature string in ``sha256=<hex>`` form
    """
    digest = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def verify_signature(body: bytes, signature: Optional[str], secret: str) -> bool:
    """
    Verify webhook signature for security.

    A missing signature and a mismatching one are both reported as False so
    the caller cannot tell them apart.

    Args:
        body: Raw request payload (never a re-serialized form)
        signature: Signature from request header
        secret: Shared webhook secret

    Returns:
        True if signature is valid, False otherwise
    """
    if not signature:
        return False

    expected_signature = compute_signature(body, secret)

    return hmac.compare_digest(signature.encode(), expected_signature.encode())
