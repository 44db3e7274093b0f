"""End-to-end delivery: validate, normalize, sign, deliver, report."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from hubsend.common.errors import HubsendError
from hubsend.common.logging import get_logger
from hubsend.common.metrics import write_metrics
from hubsend.common.settings import Settings
from hubsend.delivery.client import DeliveryClient, DeliveryResult, validate_url
from hubsend.delivery.payload import CanonicalPayload, HeaderSet, normalize
from hubsend.delivery.reporter import Report, ResultReporter
from hubsend.delivery.transport import AiohttpTransport, Transport
from hubsend.delivery.validation import validate_secret

logger = get_logger(__name__)


async def run_delivery(
    settings: Settings,
    transport: Transport | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Report:
    """
    Run one delivery from settings.

    Pre-flight failures (secret, URL, headers) are reported before any
    network activity. When settings.metrics_file is set, delivery metrics
    are written there once the retry loop has finished.

    Args:
        settings: Delivery settings
        transport: Transport to use; an AiohttpTransport is opened when omitted
        sleep: Coroutine used for backoff waits
    """
    reporter = ResultReporter(settings.output_file)
    try:
        validate_secret(settings.secret)
        validate_url(settings.url)
        payload, headers = normalize(settings.data, settings.headers)
    except HubsendError as e:
        return reporter.report_error(e)

    logger.info(
        "Delivering webhook",
        url=settings.url,
        retries=settings.retries,
        timeout_ms=settings.timeout,
        secret_length=len(settings.secret),
    )

    if transport is None:
        async with AiohttpTransport() as owned:
            result = await _deliver(settings, owned, payload, headers, sleep)
    else:
        result = await _deliver(settings, transport, payload, headers, sleep)

    if settings.metrics_file:
        try:
            write_metrics(settings.metrics_file)
        except OSError as e:
            logger.warning(
                "Could not write metrics file", path=settings.metrics_file, error=str(e)
            )
    return reporter.report(result)


async def _deliver(
    settings: Settings,
    transport: Transport,
    payload: CanonicalPayload,
    headers: HeaderSet,
    sleep: Callable[[float], Awaitable[Any]],
) -> DeliveryResult:
    client = DeliveryClient(
        transport,
        secret=settings.secret,
        revision=settings.revision,
        sleep=sleep,
    )
    return await client.deliver(
        settings.url,
        payload,
        headers,
        timeout=settings.timeout_seconds,
        max_retries=settings.retries,
    )
