from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from esdash.adapters.templating import TemplateSrv, VariableTemplateSrv
from esdash.api.v1.deps import get_datasource, to_http_error
from esdash.core.errors import DatasourceError
from esdash.domain.models import AnnotationEvent, AnnotationSpec, TimeRange
from esdash.services.datasource import ElasticDatasource

router = APIRouter()


class AnnotationQueryRequest(BaseModel):
    annotation: AnnotationSpec
    range: TimeRange
    # Dashboard template variables in effect, merged over the configured ones
    variables: dict[str, str] = Field(default_factory=dict)


@router.post("/annotations", response_model=list[AnnotationEvent], response_model_exclude_none=True)
async def query_annotations(
    req: AnnotationQueryRequest, ds: ElasticDatasource = Depends(get_datasource)
) -> list[AnnotationEvent]:
    template_srv: TemplateSrv | None = None
    if req.variables and isinstance(ds.template_srv, VariableTemplateSrv):
        template_srv = ds.template_srv.with_variables(req.variables)
    try:
        return await ds.annotation_query(req.annotation, req.range, template_srv)
    except DatasourceError as e:
        raise to_http_error(e)
