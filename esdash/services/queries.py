"""Elasticsearch 1.x query documents for dashboards and annotations."""

from __future__ import annotations

from datetime import datetime
from typing import Any, NamedTuple

from esdash.domain.models import TimeRange, TimeValue

ANNOTATION_MAX_HITS = 100
TAG_FACET_SIZE = 50
TAGS_ONLY_PREFIX = "tags!:"


class DashboardQuery(NamedTuple):
    query_string: str
    tags_only: bool


def _range_bound(value: TimeValue) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def build_annotation_query(time_field: str, time_range: TimeRange, query: str) -> dict[str, Any]:
    """Range-filtered free-text search; ``query`` must already be interpolated."""
    time_filter = {
        "bool": {
            "must": [
                {
                    "range": {
                        time_field: {
                            "from": _range_bound(time_range.from_),
                            "to": _range_bound(time_range.to),
                        }
                    }
                }
            ]
        }
    }
    text_query = {"bool": {"should": [{"query_string": {"query": query}}]}}
    return {
        "fields": [time_field, "_source"],
        "query": {"filtered": {"query": text_query, "filter": time_filter}},
        "size": ANNOTATION_MAX_HITS,
    }


def normalize_dashboard_query(raw: str) -> DashboardQuery:
    """Turn what the user typed in the dashboard finder into a query_string.

    Only the first lower-case " and " becomes a boolean AND; a ``tags!:``
    prefix restricts the search to tags.
    """
    q = raw.lower().replace(" and ", " AND ", 1)

    if q.startswith(TAGS_ONLY_PREFIX):
        return DashboardQuery("tags:" + q[len(TAGS_ONLY_PREFIX):] + "*", True)

    if not q:
        q = "title:"
    if not q.endswith("*"):
        q += "*"
    return DashboardQuery(q, False)


def build_dashboard_search(query_string: str, max_results: int) -> dict[str, Any]:
    return {
        "query": {"query_string": {"query": query_string}},
        "facets": {"tags": {"terms": {"field": "tags", "order": "term", "size": TAG_FACET_SIZE}}},
        "size": max_results,
        "sort": ["_uid"],
    }


def dashboard_path(dashboard_id: str, is_temp: bool = False) -> str:
    return ("/temp/" if is_temp else "/dashboard/") + dashboard_id


def temp_dashboard_path(ttl: str) -> str:
    return "/temp/?ttl=" + ttl
