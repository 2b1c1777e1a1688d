"""Intercom webhook signature verification (X-Hub-Signature)."""

import hmac
import hashlib
from typing import Optional, Union
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

SIGNATURE_HEADER = "x-hub-signature"
DEFAULT_ALGORITHM = "sha256"
_ALGORITHMS = {
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
}


def signature_algorithm(signature: Optional[str]) -> str:
    """Algorithm named by the header prefix; sha256 unless it says sha1."""
    if signature and signature.startswith("sha1="):
        return "sha1"
    return DEFAULT_ALGORITHM


def compute_signature(secret: str, body: bytes, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """``<algorithm>=<hex digest>`` of the raw body."""
    digest = hmac.new(
        secret.encode('utf-8'),
        body,
        _ALGORITHMS[algorithm]
    ).hexdigest()
    return f"{algorithm}={digest}"


def verify_intercom_signature(
    secret: str,
    body: Union[bytes, str],
    signature: Optional[str]
) -> bool:
    """
    Verify an Intercom webhook signature over the raw, unparsed body.

    The computed ``<prefix>=<hex>`` must equal the header exactly.
    """
    if not secret or not signature:
        return False

    if isinstance(body, str):
        body = body.encode('utf-8')

    expected = compute_signature(secret, body, signature_algorithm(signature))
    # Headers arrive latin-1 decoded; compare_digest rejects non-ASCII str
    return hmac.compare_digest(
        expected.encode('utf-8'),
        signature.encode('utf-8', 'surrogateescape')
    )


def verify_intercom_request(
    secret: Optional[str],
    raw_body: Union[bytes, str],
    signature: Optional[str]
) -> bool:
    """
    Verify a webhook request.

    Without a configured secret verification is skipped (and the request is
    accepted) with a warning on every request.
    """
    if not secret:
        logger.warning(
            "INTERCOM_WEBHOOK_SECRET not set - webhook signature verification is DISABLED",
            insecure=True
        )
        return True

    result = verify_intercom_signature(secret, raw_body, signature)
    if not result:
        logger.warning(
            "Webhook signature mismatch",
            has_signature=bool(signature),
            algorithm=signature_algorithm(signature),
            body_length=len(raw_body)
        )
    return result
