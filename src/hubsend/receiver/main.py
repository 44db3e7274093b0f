"""Receiver - Verifies signed webhook deliveries."""

from __future__ import annotations

from starlette.applications import Starlette
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route
from starlette.types import ASGIApp
import uvicorn

from hubsend.common.errors import ErrorCode, error_response
from hubsend.common.logging import get_logger, setup_logging
from hubsend.common.metrics import MetricsMiddleware, metrics_endpoint, record_signature_check
from hubsend.common.settings import Settings, get_settings
from hubsend.delivery.payload import normalize_data
from hubsend.delivery.signature import (
    REVISION_HEADER,
    SIGNATURE_256_HEADER,
    SIGNATURE_HEADER,
    verify_signature,
)

logger = get_logger(__name__)

EXEMPT_PATHS = ("/health", "/metrics")


class SignatureMiddleware(BaseHTTPMiddleware):
    """Rejects requests whose body does not match their HMAC signature header."""

    def __init__(self, app: ASGIApp, settings: Settings) -> None:
        super().__init__(app)
        self._secret = settings.secret
        self._exempt_paths = set(EXEMPT_PATHS)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self._exempt_paths:
            return await call_next(request)

        if not self._secret:
            return error_response(ErrorCode.NOT_CONFIGURED, "HMAC secret not configured", 500)

        signature = request.headers.get(SIGNATURE_256_HEADER) or request.headers.get(
            SIGNATURE_HEADER
        )
        if not signature:
            record_signature_check("missing")
            return error_response(ErrorCode.MISSING_SIGNATURE, "Missing signature header", 401)

        body = await request.body()
        if not verify_signature(self._secret, body, signature):
            record_signature_check("invalid")
            logger.warning("Rejected delivery with invalid signature", path=request.url.path)
            return error_response(ErrorCode.INVALID_SIGNATURE, "Invalid HMAC signature", 401)

        record_signature_check("valid")
        return await call_next(request)


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def receive(request: Request) -> JSONResponse:
    """Echo a verified delivery back to the sender."""
    body = (await request.body()).decode("utf-8", errors="replace")
    sha = request.headers.get(REVISION_HEADER)
    logger.info("Verified delivery received", path=request.url.path, sha=sha)
    return JSONResponse({"received": normalize_data(body), "sha": sha})


def create_app(settings: Settings | None = None) -> Starlette:
    """Create the receiver application."""
    settings = settings or get_settings()
    app = Starlette(
        routes=[
            Route("/health", health, methods=["GET"]),
            Route("/metrics", metrics_endpoint, methods=["GET"]),
            Route("/{path:path}", receive, methods=["POST"]),
        ],
    )
    app.add_middleware(SignatureMiddleware, settings=settings)
    app.add_middleware(MetricsMiddleware, exclude_paths=list(EXEMPT_PATHS))
    return app


def main(settings: Settings | None = None) -> None:
    """Entry point for the receiver."""
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)
    app = create_app(settings)

    uvicorn.run(
        app,
        host=settings.receiver_host,
        port=settings.receiver_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
