"""Retrying webhook delivery client."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from hubsend.common.errors import InvalidUrl, RetriesExhausted, TransportError
from hubsend.common.logging import get_logger
from hubsend.common.metrics import record_attempt, record_delivery
from hubsend.delivery.payload import CanonicalPayload, HeaderSet, encode_payload
from hubsend.delivery.signature import build_signature_headers, sign_payload
from hubsend.delivery.transport import Transport, TransportResponse

logger = get_logger(__name__)

ALLOWED_SCHEMES = ("http", "https")
BACKOFF_STEP_MS = 1000


@dataclass(frozen=True)
class DeliveryAttempt:
    """Outcome of a single POST."""

    index: int
    started_at: float
    status: int | None = None
    body: Any = None
    cause: str | None = None
    delay: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.cause is None


@dataclass(frozen=True)
class DeliveryResult:
    """Terminal delivery outcome, created once the retry loop has finished."""

    ok: bool
    attempts: tuple[DeliveryAttempt, ...]
    max_retries: int
    status: int | None = None
    body: Any = None
    cause: str | None = None

    @classmethod
    def success(
        cls,
        response: TransportResponse,
        attempts: tuple[DeliveryAttempt, ...],
        max_retries: int,
    ) -> DeliveryResult:
        return cls(
            ok=True,
            attempts=attempts,
            max_retries=max_retries,
            status=response.status,
            body=response.body,
        )

    @classmethod
    def exhausted(
        cls,
        cause: str,
        attempts: tuple[DeliveryAttempt, ...],
        max_retries: int,
    ) -> DeliveryResult:
        return cls(ok=False, attempts=attempts, max_retries=max_retries, cause=cause)

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    def raise_for_outcome(self) -> None:
        """Raise RetriesExhausted if every attempt failed."""
        if not self.ok:
            raise RetriesExhausted(self.max_retries, self.cause or "unknown error")


def validate_url(url: str) -> None:
    """
    Require a well-formed http or https URL.

    Raises:
        InvalidUrl: URL does not parse, has no host, or uses another scheme
    """
    try:
        parsed = urlsplit(url)
        host = parsed.hostname
    except ValueError as e:
        raise InvalidUrl("Invalid URL provided.") from e
    if not parsed.scheme:
        raise InvalidUrl("Invalid URL provided.")
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidUrl("URL must use http or https protocol.")
    if not host:
        raise InvalidUrl("Invalid URL provided.")


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after a failed attempt (linear in the attempt index)."""
    return BACKOFF_STEP_MS * attempt / 1000


def classify_failure(exc: TransportError) -> str:
    """Describe a transport failure by status, then code, then message."""
    if exc.status:
        return f"status code {exc.status}"
    return exc.error_code or exc.message


class DeliveryClient:
    """
    Delivers one signed payload with bounded, linearly backed-off retries.

    Only transport errors are retried. Any response that arrives, whatever
    its status code, ends the loop as a success.
    """

    def __init__(
        self,
        transport: Transport,
        secret: str,
        revision: str | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize the delivery client.

        Args:
            transport: Transport used for each POST
            secret: Validated HMAC secret
            revision: Source revision sent in the X-Hub-SHA header
            sleep: Coroutine used for backoff waits
        """
        self._transport = transport
        self._secret = secret
        self._revision = revision
        self._sleep = sleep

    def build_headers(self, payload: CanonicalPayload, overrides: HeaderSet) -> HeaderSet:
        """Computed headers overlaid with user overrides (user values win)."""
        headers: HeaderSet = {"Content-Type": "application/json"}
        headers.update(build_signature_headers(sign_payload(self._secret, payload), self._revision))
        headers.update(overrides)
        return headers

    async def deliver(
        self,
        url: str,
        payload: CanonicalPayload,
        headers: HeaderSet,
        timeout: float,
        max_retries: int,
    ) -> DeliveryResult:
        """
        Deliver a payload.

        Args:
            url: http or https target
            payload: Canonical payload
            headers: User header overrides
            timeout: Per-attempt timeout in seconds
            max_retries: Maximum number of attempts

        Returns:
            DeliveryResult for the first received response, or the exhausted
            result carrying the last failure cause

        Raises:
            InvalidUrl: Before any attempt, when the URL is rejected
        """
        validate_url(url)
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        body = encode_payload(payload)
        request_headers = self.build_headers(payload, headers)
        attempts: list[DeliveryAttempt] = []
        cause = ""

        for attempt in range(1, max_retries + 1):
            started_at = time.time()
            start = time.perf_counter()
            try:
                response = await self._transport.post(url, body, request_headers, timeout)
            except TransportError as e:
                record_attempt(False, time.perf_counter() - start)
                cause = classify_failure(e)
                logger.warning(
                    "Delivery attempt failed",
                    attempt=attempt,
                    max_retries=max_retries,
                    cause=cause,
                )
                delay = backoff_delay(attempt) if attempt < max_retries else 0.0
                attempts.append(
                    DeliveryAttempt(
                        index=attempt,
                        started_at=started_at,
                        status=e.status,
                        cause=cause,
                        delay=delay,
                    )
                )
                if delay:
                    await self._sleep(delay)
                continue

            record_attempt(True, time.perf_counter() - start)
            attempts.append(
                DeliveryAttempt(
                    index=attempt,
                    started_at=started_at,
                    status=response.status,
                    body=response.body,
                )
            )
            logger.info("Webhook sent successfully", status=response.status, attempt=attempt)
            record_delivery(True)
            return DeliveryResult.success(response, tuple(attempts), max_retries)

        record_delivery(False)
        return DeliveryResult.exhausted(cause, tuple(attempts), max_retries)
