from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationInfo, field_validator

# Stored dashboards are opaque JSON objects owned by the front-end.
DashboardDocument = dict[str, Any]

TimeValue = str | int | float | datetime


class DatasourceConfig(BaseModel):
    """Connection and behavior settings of one Elasticsearch datasource."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["elastic"] = "elastic"
    url: str
    index: str
    name: str = "elasticsearch"
    basic_auth: SecretStr | None = None
    grafana_db: bool = False
    search_max_results: int = Field(default=20, ge=1)
    save_temp: bool = True
    save_temp_ttl: str = "30d"
    support_annotations: bool = True
    support_metrics: bool = False

    @field_validator("url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class AnnotationSpec(BaseModel):
    """Annotation definition as the front-end's annotation editor stores it."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    enabled: bool = True
    index: str
    time_field: str = Field(default="@timestamp", alias="timeField")
    query: str = "*"
    tags_field: str = Field(default="tags", alias="tagsField")
    title_field: str = Field(default="desc", alias="titleField")
    text_field: str | None = Field(default=None, alias="textField")

    @field_validator("time_field", "query", "tags_field", "title_field", "text_field", mode="before")
    @classmethod
    def _blank_means_default(cls, v: Any, info: ValidationInfo) -> Any:
        # The editor leaves untouched inputs as empty strings
        if v is None or v == "":
            assert info.field_name is not None
            return cls.model_fields[info.field_name].default
        return v


class TimeRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: TimeValue = Field(alias="from")
    to: TimeValue


class AnnotationEvent(BaseModel):
    annotation: AnnotationSpec
    time: int
    title: Any = None
    tags: Any = None
    text: Any = None


class DashboardSummary(BaseModel):
    id: str
    # Denormalized fields pass through as stored
    title: Any = None
    tags: Any = None


class SearchResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    dashboards: list[DashboardSummary] = Field(default_factory=list)
    # Facet terms exactly as the backend returns them: {"term": ..., "count": ...}
    tags: list[dict[str, Any]] = Field(default_factory=list)
    tags_only: bool = Field(default=False, alias="tagsOnly")


class SaveResult(BaseModel):
    title: str | None = None
    url: str
