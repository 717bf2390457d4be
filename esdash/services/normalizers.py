from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any

from esdash.domain.models import (
    AnnotationEvent,
    AnnotationSpec,
    DashboardDocument,
    DashboardSummary,
    SearchResult,
)
from esdash.domain.serialization import from_json

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Reduced-precision ISO dates ("2014", "2014-06") and slash-separated dates
_REDUCED_DATE = re.compile(r"^(\d{4})(?:-(\d{2}))?$")
_SLASH_DATE = re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})(?:[ T](.+))?$")


def _expand_date(s: str) -> str:
    m = _REDUCED_DATE.match(s)
    if m:
        return f"{m.group(1)}-{m.group(2) or '01'}-01"
    m = _SLASH_DATE.match(s)
    if m:
        year, month, day, clock = m.groups()
        date = f"{year}-{int(month):02d}-{int(day):02d}"
        return f"{date}T{clock}" if clock else date
    return s


def to_epoch_millis(value: Any) -> int:
    """Convert an Elasticsearch date value to epoch milliseconds.

    Numbers (and digit-only strings other than a bare year) are taken as epoch
    ms; other strings are parsed as ISO-8601, including reduced precision and
    "YYYY/MM/DD[ HH:mm:ss]", naive values being UTC. Raises ValueError otherwise.
    """
    if isinstance(value, bool):
        raise ValueError(f"not a timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        s = value.strip()
        if s.lstrip("-").isdigit() and not _REDUCED_DATE.match(s):
            return int(s)
        s = _expand_date(s)
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        dt = datetime.fromisoformat(s)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return (dt - EPOCH) // timedelta(milliseconds=1)
    raise ValueError(f"not a timestamp: {value!r}")


def _effective_time(hit: dict[str, Any], time_field: str) -> Any:
    source = hit.get("_source") or {}
    fields = hit.get("fields") or {}
    projected = fields.get(time_field)
    if isinstance(projected, (str, int, float)) and not isinstance(projected, bool):
        return projected
    return source.get(time_field)


def normalize_annotation_hits(spec: AnnotationSpec, results: dict[str, Any]) -> list[AnnotationEvent]:
    hits = (results.get("hits") or {}).get("hits") or []
    events: list[AnnotationEvent] = []
    for hit in hits:
        source = hit.get("_source") or {}
        raw_time = _effective_time(hit, spec.time_field)
        try:
            time = to_epoch_millis(raw_time)
        except ValueError:
            logger.warning(
                "annotation.skipped_hit id=%s field=%s value=%r",
                hit.get("_id"),
                spec.time_field,
                raw_time,
            )
            continue

        event = AnnotationEvent(annotation=spec, time=time, title=source.get(spec.title_field))

        tags = source.get(spec.tags_field)
        # An empty list still yields "", only falsy scalars are omitted
        if isinstance(tags, (list, dict)) or tags:
            event.tags = ", ".join(str(t) for t in tags) if isinstance(tags, list) else tags
        if spec.text_field and source.get(spec.text_field):
            event.text = source[spec.text_field]

        events.append(event)
    return events


def parse_stored_dashboard(result: dict[str, Any]) -> DashboardDocument:
    return from_json(result["_source"]["dashboard"])


def normalize_search_results(results: dict[str, Any], tags_only: bool) -> SearchResult:
    if results.get("hits") is None:
        return SearchResult()

    facet = ((results.get("facets") or {}).get("tags")) or {}
    dashboards = [
        DashboardSummary(
            id=hit["_id"],
            title=(hit.get("_source") or {}).get("title"),
            tags=(hit.get("_source") or {}).get("tags"),
        )
        for hit in results["hits"].get("hits") or []
    ]
    return SearchResult(dashboards=dashboards, tags=facet.get("terms") or [], tags_only=tags_only)
