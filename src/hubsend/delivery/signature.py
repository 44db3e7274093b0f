"""Webhook payload signatures."""

from __future__ import annotations

from hubsend.common import hmac
from hubsend.delivery.payload import CanonicalPayload, HeaderSet, encode_payload

SIGNATURE_HEADER = "X-Hub-Signature"
SIGNATURE_256_HEADER = "X-Hub-Signature-256"
REVISION_HEADER = "X-Hub-SHA"
SIGNATURE_PREFIX = "sha256="


def sign_payload(secret: str, payload: CanonicalPayload) -> str:
    """
    Compute the lowercase hex HMAC-SHA256 signature of a payload.

    The empty string is signed as zero input bytes. Every other value,
    including ``0``, ``False`` and ``{}``, is serialized with
    ``encode_payload`` and the resulting bytes are signed.
    """
    if isinstance(payload, str) and payload == "":
        return hmac.sign(secret, None)
    return hmac.sign(secret, encode_payload(payload))


def build_signature_headers(signature: str, revision: str | None) -> HeaderSet:
    """Build the signature and revision headers for a delivery."""
    return {
        SIGNATURE_HEADER: signature,
        SIGNATURE_256_HEADER: f"{SIGNATURE_PREFIX}{signature}",
        REVISION_HEADER: revision or "",
    }


def verify_signature(secret: str, body: bytes, header_value: str | None) -> bool:
    """
    Verify a received signature header against the raw request body.

    Accepts both the bare hex form and the ``sha256=`` prefixed form.
    """
    if not header_value:
        return False
    signature = header_value.strip()
    if signature.startswith(SIGNATURE_PREFIX):
        signature = signature[len(SIGNATURE_PREFIX):]
    return hmac.verify(secret, body, signature)
