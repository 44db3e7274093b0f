"""HMAC-SHA256 signing primitives."""

from __future__ import annotations

import hashlib
import hmac


def sign(secret: str, message: bytes | None) -> str:
    """
    Create a hex-encoded HMAC-SHA256 signature.

    ``None`` finalizes the MAC without feeding any input bytes.
    """
    mac = hmac.new(secret.encode("utf-8"), digestmod=hashlib.sha256)
    if message is not None:
        mac.update(message)
    return mac.hexdigest()


def verify(secret: str, message: bytes | None, signature: str) -> bool:
    """Verify HMAC signature in constant time."""
    if not signature.isascii():
        return False
    expected = sign(secret, message)
    return hmac.compare_digest(expected, signature.lower())
