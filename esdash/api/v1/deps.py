from __future__ import annotations

from fastapi import HTTPException, status

from esdash.container import container
from esdash.core.errors import (
    BackendConnectionError,
    BackendResponseError,
    BackendUnreachableError,
    DashboardNotFoundError,
    DatasourceError,
)
from esdash.services.datasource import ElasticDatasource


def get_datasource() -> ElasticDatasource:
    if container.datasource is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Elasticsearch datasource is not configured",
        )
    return container.datasource


def to_http_error(e: DatasourceError) -> HTTPException:
    if isinstance(e, DashboardNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    if isinstance(e, (BackendUnreachableError, BackendConnectionError)):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)
    if isinstance(e, BackendResponseError) and e.payload is not None:
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.payload)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)
