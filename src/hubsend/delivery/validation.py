"""Pre-flight HMAC secret strength checks."""

from __future__ import annotations

from hubsend.common.errors import (
    EmptySecret,
    LowEntropySecret,
    SecretValidationError,
    WeakSecret,
)

MIN_SECRET_LENGTH = 32
MIN_DISTINCT_CHARS = 4


def validate_secret(secret: str | None) -> None:
    """
    Reject empty, short or low-entropy secrets.

    Checks run in order and the first failure wins.

    Raises:
        EmptySecret: Secret is empty or whitespace only
        WeakSecret: Secret is shorter than MIN_SECRET_LENGTH
        LowEntropySecret: Secret has fewer than MIN_DISTINCT_CHARS distinct characters
    """
    if not secret or not secret.strip():
        raise EmptySecret("The hmac secret seems empty. This doesn't seem like what you want.")
    if len(secret) < MIN_SECRET_LENGTH:
        raise WeakSecret(
            "The hmac secret seems weak. You should use at least 32 secure random hex chars."
        )
    if len(set(secret)) < MIN_DISTINCT_CHARS:
        raise LowEntropySecret(
            "The hmac secret has too little entropy. Use a properly random secret."
        )


def is_valid_secret(secret: str | None) -> bool:
    """Return True when the secret passes every strength check."""
    try:
        validate_secret(secret)
    except SecretValidationError:
        return False
    return True
