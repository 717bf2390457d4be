from fastapi import APIRouter

from esdash.api.v1 import annotations, dashboards, datasource

api_router = APIRouter()

api_router.include_router(datasource.router, prefix="", tags=["datasource"])  # /datasource
api_router.include_router(dashboards.router, prefix="/dashboards", tags=["dashboards"])
api_router.include_router(annotations.router, prefix="", tags=["annotations"])  # /annotations
