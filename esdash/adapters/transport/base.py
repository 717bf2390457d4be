from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    reason: str
    data: Any

    @property
    def created(self) -> bool:
        return self.status_code == 201


class Transport(Protocol):
    """Issues one HTTP call against ``<datasource url>/<index><path>``.

    Implementations return the decoded body on 2xx, raise
    ``BackendResponseError`` on any other status and ``BackendConnectionError``
    when no response was received.
    """

    async def request(
        self, method: str, path: str, index: str, body: Any | None = None
    ) -> TransportResponse: ...

    async def aclose(self) -> None: ...
