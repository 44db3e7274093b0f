"""Shared error types and codes."""

from __future__ import annotations

from typing import Any

from starlette.responses import JSONResponse


class ErrorCode:
    EMPTY_SECRET = "empty_secret"
    WEAK_SECRET = "weak_secret"
    LOW_ENTROPY_SECRET = "low_entropy_secret"
    INVALID_URL = "invalid_url"
    HEADER_PARSE_ERROR = "header_parse_error"
    TRANSPORT_FAILURE = "transport_failure"
    RETRIES_EXHAUSTED = "retries_exhausted"
    INVALID_SIGNATURE = "invalid_signature"
    MISSING_SIGNATURE = "missing_signature"
    NOT_CONFIGURED = "not_configured"


class HubsendError(Exception):
    """Base error for all delivery failures."""

    code = "hubsend_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SecretValidationError(HubsendError):
    """The HMAC secret was rejected before any network activity."""


class EmptySecret(SecretValidationError):
    code = ErrorCode.EMPTY_SECRET


class WeakSecret(SecretValidationError):
    code = ErrorCode.WEAK_SECRET


class LowEntropySecret(SecretValidationError):
    code = ErrorCode.LOW_ENTROPY_SECRET


class InvalidUrl(HubsendError):
    code = ErrorCode.INVALID_URL


class HeaderParseError(HubsendError):
    code = ErrorCode.HEADER_PARSE_ERROR


class TransportFailure(HubsendError):
    """Retryable failure raised by the HTTP layer."""

    code = ErrorCode.TRANSPORT_FAILURE


class TransportError(TransportFailure):
    """
    Error surfaced by a transport while posting.

    Args:
        message: Human readable description
        status: HTTP status, when the transport surfaced one as an error
        code: Network level code such as ``ECONNREFUSED`` or ``ETIMEDOUT``
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.error_code = code


class RetriesExhausted(HubsendError):
    """All delivery attempts failed."""

    code = ErrorCode.RETRIES_EXHAUSTED

    def __init__(self, attempts: int, cause: str) -> None:
        super().__init__(f"Request failed after {attempts} attempts: {cause}")
        self.attempts = attempts
        self.cause = cause


def error_response(
    code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    payload = {
        "error": {
            "code": code,
            "message": message,
        }
    }
    if details:
        payload["error"]["details"] = details
    return JSONResponse(payload, status_code=status_code)
