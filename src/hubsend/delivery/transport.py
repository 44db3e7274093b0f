"""HTTP transport used by the delivery client."""

from __future__ import annotations

import asyncio
import errno
import json
from dataclasses import dataclass, field
from typing import Any, Protocol

import aiohttp

from hubsend.common.errors import TransportError
from hubsend.common.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "AiohttpTransport",
    "Transport",
    "TransportError",
    "TransportResponse",
]


@dataclass(frozen=True)
class TransportResponse:
    """A response received from the endpoint, whatever its status."""

    status: int
    body: Any
    headers: dict[str, str] = field(default_factory=dict)


class Transport(Protocol):
    """Posts one request; raises TransportError when no response is received."""

    async def post(
        self,
        url: str,
        body: bytes,
        headers: dict[str, str],
        timeout: float,
    ) -> TransportResponse: ...


def decode_body(text: str) -> Any:
    """Return the parsed JSON body, or the raw text when it is not JSON."""
    if not text:
        return text
    try:
        return json.loads(text)
    except ValueError:
        return text


def _os_error_code(exc: BaseException) -> str | None:
    os_error = getattr(exc, "os_error", None) or exc
    number = getattr(os_error, "errno", None)
    if isinstance(number, int):
        return errno.errorcode.get(number)
    return None


class AiohttpTransport:
    """
    aiohttp-backed transport.

    Never raises for HTTP status codes: any received response is returned.
    Usable as an async context manager that owns its session.
    """

    def __init__(self, session: aiohttp.ClientSession | None = None):
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> AiohttpTransport:
        """Enter async context."""
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context."""
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if not self._session:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if this transport created it."""
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

    async def post(
        self,
        url: str,
        body: bytes,
        headers: dict[str, str],
        timeout: float,
    ) -> TransportResponse:
        """
        POST raw bytes to url.

        Args:
            url: Target URL
            body: Encoded request body
            headers: Request headers
            timeout: Total request timeout in seconds

        Returns:
            The received response

        Raises:
            TransportError: On timeout, connection failure or protocol error
        """
        session = self._ensure_session()
        try:
            async with session.post(
                url,
                data=body,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as response:
                text = await response.text(errors="replace")
                return TransportResponse(
                    status=response.status,
                    body=decode_body(text),
                    headers=dict(response.headers),
                )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"timeout of {int(timeout * 1000)}ms exceeded", code="ETIMEDOUT"
            ) from e
        except aiohttp.ClientResponseError as e:
            raise TransportError(e.message or str(e), status=e.status) from e
        except aiohttp.ClientConnectorError as e:
            raise TransportError(str(e), code=_os_error_code(e)) from e
        except aiohttp.ClientError as e:
            logger.debug("Transport error", error_type=type(e).__name__)
            raise TransportError(str(e) or type(e).__name__) from e
