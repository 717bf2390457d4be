from __future__ import annotations

from typing import Any

UNREACHABLE_MESSAGE = (
    "Could not contact Elasticsearch. "
    "Please ensure that Elasticsearch is reachable from the dashboard server."
)


class DatasourceError(Exception):
    """Base class for every failure surfaced by the Elasticsearch datasource."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BackendConnectionError(DatasourceError):
    """No HTTP response at all (refused connection, DNS failure, timeout)."""

    status_code = 0


class BackendUnreachableError(DatasourceError):
    def __init__(self, message: str = UNREACHABLE_MESSAGE):
        super().__init__(message)


class BackendResponseError(DatasourceError):
    """Elasticsearch answered with a non-success status."""

    def __init__(self, status_code: int, payload: Any):
        super().__init__(f"Elasticsearch error {status_code}: {payload}")
        self.status_code = status_code
        self.payload = payload


class DashboardNotFoundError(DatasourceError):
    def __init__(self, message: str = "Dashboard not found"):
        super().__init__(message)


class DashboardSaveError(DatasourceError):
    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload
