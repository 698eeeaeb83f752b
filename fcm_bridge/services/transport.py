"""
HTTP transport for the batchImport request.

The transport never raises for network problems: it reports them in the
TransportReply so the exchange can classify them.
"""

from typing import Protocol

import httpx
from structlog import get_logger

from fcm_bridge.models.domain import ExchangeRequest, TransportReply

logger = get_logger(__name__)


class Transport(Protocol):
    """Perform a request, complete with (body, status, transport error)."""

    async def perform(self, request: ExchangeRequest) -> TransportReply: ...

    async def close(self) -> None: ...


class HttpxTransport:
    """Transport backed by httpx.AsyncClient."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.timeout = timeout
        self._http_client = http_client
        self._owns_client = http_client is None

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def perform(self, request: ExchangeRequest) -> TransportReply:
        try:
            response = await self.http_client.request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.body,
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "fcm_transport_error",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return TransportReply(error=exc)

        return TransportReply(
            body=response.content or None,
            status_code=response.status_code,
        )

    async def close(self) -> None:
        """Close HTTP client if this transport created it."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None
