"""Prometheus metrics for delivery and the receiver."""

import time

from prometheus_client import REGISTRY, Counter, Histogram, generate_latest, write_to_textfile
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

# === Counters ===

DELIVERY_ATTEMPTS_TOTAL = Counter(
    "hubsend_delivery_attempts_total",
    "Total delivery attempts",
    ["outcome"],  # outcome: success, failure
)

DELIVERIES_TOTAL = Counter(
    "hubsend_deliveries_total",
    "Terminal delivery results",
    ["outcome"],  # outcome: success, exhausted
)

SIGNATURE_CHECKS_TOTAL = Counter(
    "hubsend_signature_checks_total",
    "Receiver signature verifications",
    ["result"],  # result: valid, invalid, missing
)

HTTP_REQUESTS_TOTAL = Counter(
    "hubsend_http_requests_total",
    "Total receiver HTTP requests",
    ["method", "endpoint", "status"],
)

# === Histograms ===

DELIVERY_ATTEMPT_LATENCY = Histogram(
    "hubsend_delivery_attempt_latency_seconds",
    "Latency of a single delivery attempt",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

HTTP_REQUEST_LATENCY = Histogram(
    "hubsend_http_request_latency_seconds",
    "Receiver HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)


# === Helper Functions ===


def record_attempt(succeeded: bool, latency: float) -> None:
    """Record a single delivery attempt."""
    DELIVERY_ATTEMPTS_TOTAL.labels(outcome="success" if succeeded else "failure").inc()
    DELIVERY_ATTEMPT_LATENCY.observe(latency)


def record_delivery(succeeded: bool) -> None:
    """Record a terminal delivery result."""
    DELIVERIES_TOTAL.labels(outcome="success" if succeeded else "exhausted").inc()


def record_signature_check(result: str) -> None:
    """Record a receiver signature check."""
    SIGNATURE_CHECKS_TOTAL.labels(result=result).inc()


def write_metrics(path: str) -> None:
    """Write the registry in Prometheus text format for a textfile collector."""
    write_to_textfile(path, REGISTRY)


def record_http_request(
    method: str,
    endpoint: str,
    status: int,
    latency: float,
) -> None:
    """Record a receiver HTTP request."""
    HTTP_REQUESTS_TOTAL.labels(
        method=method,
        endpoint=endpoint,
        status=str(status),
    ).inc()
    HTTP_REQUEST_LATENCY.labels(
        method=method,
        endpoint=endpoint,
    ).observe(latency)


# === HTTP Endpoint ===


class MetricsMiddleware(BaseHTTPMiddleware):
    """HTTP request metrics middleware."""

    def __init__(self, app: ASGIApp, exclude_paths: list[str] | None = None) -> None:
        super().__init__(app)
        self._exclude_paths = set(exclude_paths or [])

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self._exclude_paths:
            return await call_next(request)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            record_http_request(
                method=request.method,
                endpoint=request.url.path,
                status=500,
                latency=time.perf_counter() - start,
            )
            raise

        record_http_request(
            method=request.method,
            endpoint=request.url.path,
            status=response.status_code,
            latency=time.perf_counter() - start,
        )
        return response


async def metrics_endpoint(_request: Request) -> Response:
    """Prometheus metrics in text format."""
    return Response(
        generate_latest(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
