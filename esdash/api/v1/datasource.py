from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from esdash.api.v1.deps import get_datasource
from esdash.services.datasource import ElasticDatasource

router = APIRouter()


class DatasourceInfo(BaseModel):
    """Public description of the datasource; the credential is never exposed."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    name: str
    index: str
    grafana_db: bool = Field(alias="grafanaDB")
    save_temp: bool = Field(alias="saveTemp")
    save_temp_ttl: str = Field(alias="saveTempTTL")
    search_max_results: int = Field(alias="searchMaxResults")
    support_annotations: bool = Field(alias="supportAnnotations")
    support_metrics: bool = Field(alias="supportMetrics")


@router.get("/datasource", response_model=DatasourceInfo)
async def get_datasource_info(ds: ElasticDatasource = Depends(get_datasource)) -> DatasourceInfo:
    c = ds.config
    return DatasourceInfo(
        type=c.type,
        name=c.name,
        index=c.index,
        grafana_db=c.grafana_db,
        save_temp=c.save_temp,
        save_temp_ttl=c.save_temp_ttl,
        search_max_results=c.search_max_results,
        support_annotations=c.support_annotations,
        support_metrics=c.support_metrics,
    )
