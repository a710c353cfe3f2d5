"""
Webhook signature computation and verification.

Signatures are HMAC-SHA256 digests of the raw request body, base64-encoded.
Verification must run on the exact bytes the provider signed, never on a
re-serialized copy of the parsed JSON.
"""

import base64
import hashlib
import hmac
import logging
from typing import Optional, Union

logger = logging.getLogger(__name__)


def _as_bytes(value: Union[bytes, bytearray, str]) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode('utf-8')
    raise TypeError(f"Expected bytes or str, got {type(value).__name__}")


def compute_signature(payload: Union[bytes, str], secret: Union[bytes, str]) -> str:
    """
    Compute the base64 HMAC-SHA256 signature of a payload.

    Args:
        payload: Raw body; str payloads are UTF-8 encoded
        secret: Shared webhook secret

    Returns:
        Base64-encoded digest
    """
    digest = hmac.new(
        key=_as_bytes(secret),
        msg=_as_bytes(payload),
        digestmod=hashlib.sha256
    ).digest()
    return base64.b64encode(digest).decode('ascii')


def verify_signature(
    payload: Union[bytes, str],
    signature: Optional[str],
    secret: Optional[Union[bytes, str]]
) -> bool:
    """
    Check a webhook signature in constant time.

    Returns False for a missing secret, a missing signature or any error
    while computing the digest. Never raises.
    """
    if not secret:
        logger.warning("Webhook secret not configured, rejecting signature")
        return False
    if not signature:
        return False

    try:
        expected = compute_signature(payload, secret)
        return hmac.compare_digest(expected.encode('ascii'), _as_bytes(signature))
    except Exception as e:
        logger.error(
            "Failed to verify webhook signature",
            extra={'error': str(e)},
            exc_info=True
        )
        return False
