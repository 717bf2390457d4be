from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request

from esdash.api.v1.deps import get_datasource, to_http_error
from esdash.core.config import settings
from esdash.core.errors import DatasourceError
from esdash.domain.models import SaveResult, SearchResult
from esdash.services.datasource import ElasticDatasource

logger = logging.getLogger("esdash.dashboards")

router = APIRouter()


@router.get("/search", response_model=SearchResult)
async def search_dashboards(
    query: str = Query(default="", description="Finder input, e.g. 'prod' or 'tags!:web'"),
    ds: ElasticDatasource = Depends(get_datasource),
) -> SearchResult:
    try:
        return await ds.search_dashboards(query)
    except DatasourceError as e:
        raise to_http_error(e)


@router.get("/db/{dashboard_id}")
async def get_dashboard(
    dashboard_id: str, ds: ElasticDatasource = Depends(get_datasource)
) -> dict[str, Any]:
    try:
        return await ds.get_dashboard(dashboard_id)
    except DatasourceError as e:
        raise to_http_error(e)


@router.get("/temp/{dashboard_id}")
async def get_temp_dashboard(
    dashboard_id: str, ds: ElasticDatasource = Depends(get_datasource)
) -> dict[str, Any]:
    try:
        return await ds.get_dashboard(dashboard_id, is_temp=True)
    except DatasourceError as e:
        raise to_http_error(e)


@router.post("", response_model=SaveResult)
async def save_dashboard(
    request: Request,
    dashboard: dict[str, Any] = Body(...),
    ds: ElasticDatasource = Depends(get_datasource),
) -> SaveResult:
    # Temp links point at the front-end page (Referer) unless a public URL is set
    base_url = (
        settings.PUBLIC_BASE_URL
        or request.headers.get("referer")
        or str(request.base_url)
    )
    try:
        return await ds.save_dashboard(dashboard, base_url=base_url)
    except DatasourceError as e:
        logger.warning("dashboard.save_failed title=%s error=%s", dashboard.get("title"), e.message)
        raise to_http_error(e)


@router.delete("/db/{dashboard_id}")
async def delete_dashboard(
    dashboard_id: str, ds: ElasticDatasource = Depends(get_datasource)
) -> dict[str, str]:
    try:
        deleted = await ds.delete_dashboard(dashboard_id)
    except DatasourceError as e:
        raise to_http_error(e)
    return {"id": deleted}
