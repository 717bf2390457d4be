from __future__ import annotations

import logging
from typing import Any

import httpx

from esdash.adapters.transport.base import Transport, TransportResponse
from esdash.core.errors import BackendConnectionError, BackendResponseError
from esdash.domain.models import DatasourceConfig

logger = logging.getLogger(__name__)


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class HttpxTransport(Transport):
    """Elasticsearch REST transport over a shared ``httpx.AsyncClient``.

    When no client is passed one is created and owned (closed by ``aclose``).
    Timeouts are the client's; no retries are attempted.
    """

    def __init__(
        self,
        config: DatasourceConfig,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        if not config.url:
            raise ValueError("datasource url is required for HttpxTransport")
        self.config = config
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout_seconds)

    def _headers(self) -> dict[str, str]:
        if self.config.basic_auth is None:
            return {}
        return {"Authorization": "Basic " + self.config.basic_auth.get_secret_value()}

    async def request(
        self, method: str, path: str, index: str, body: Any | None = None
    ) -> TransportResponse:
        url = f"{self.config.url}/{index}{path}"
        try:
            response = await self.client.request(
                method, url, json=body, headers=self._headers()
            )
        except httpx.TransportError as e:
            logger.debug("es.request.failed method=%s url=%s error=%r", method, url, e)
            raise BackendConnectionError(f"{method} {url} failed: {e}") from e

        logger.debug("es.request method=%s url=%s status=%s", method, url, response.status_code)
        data = _decode(response)
        if not response.is_success:
            raise BackendResponseError(response.status_code, data)
        return TransportResponse(
            status_code=response.status_code, reason=response.reason_phrase, data=data
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
