from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote, urldefrag

from esdash.adapters.slug import Slugifier, slugify_for_url
from esdash.adapters.templating import TemplateSrv, VariableTemplateSrv
from esdash.adapters.transport import HttpxTransport, Transport
from esdash.core.errors import (
    BackendConnectionError,
    BackendUnreachableError,
    DashboardNotFoundError,
    DashboardSaveError,
    DatasourceError,
)
from esdash.domain.models import (
    AnnotationEvent,
    AnnotationSpec,
    DashboardDocument,
    DatasourceConfig,
    SaveResult,
    SearchResult,
    TimeRange,
)
from esdash.domain.serialization import to_json
from esdash.services import normalizers, queries

logger = logging.getLogger(__name__)

# Owner fields written on every stored dashboard record
GUEST = "guest"


class ElasticDatasource:
    """Dashboard storage and annotation source backed by Elasticsearch.

    Dashboards live in ``<index>/dashboard/<slug>``; shared snapshots in
    ``<index>/temp/<generated id>`` with a TTL.
    """

    def __init__(
        self,
        config: DatasourceConfig,
        *,
        transport: Transport | None = None,
        template_srv: TemplateSrv | None = None,
        slugify: Slugifier = slugify_for_url,
        base_url: str | None = None,
    ) -> None:
        self.config = config
        self.transport: Transport = transport or HttpxTransport(config)
        self.template_srv: TemplateSrv = template_srv or VariableTemplateSrv()
        self.slugify = slugify
        self.base_url = base_url
        self._cleanup_tasks: set[asyncio.Task[None]] = set()

    async def _get(self, path: str) -> Any:
        response = await self.transport.request("GET", path, self.config.index)
        return response.data

    async def _post(self, path: str, body: Any) -> Any:
        response = await self.transport.request("POST", path, self.config.index, body)
        return response.data

    # --- annotations ---

    async def annotation_query(
        self,
        annotation: AnnotationSpec,
        time_range: TimeRange,
        template_srv: TemplateSrv | None = None,
    ) -> list[AnnotationEvent]:
        srv = template_srv or self.template_srv
        body = queries.build_annotation_query(
            annotation.time_field, time_range, srv.replace(annotation.query)
        )
        response = await self.transport.request("POST", "/_search", annotation.index, body)
        events = normalizers.normalize_annotation_hits(annotation, response.data or {})
        logger.debug("annotation.query index=%s events=%d", annotation.index, len(events))
        return events

    # --- load ---

    async def _get_dashboard_with_slug(self, dashboard_id: str) -> DashboardDocument:
        try:
            result = await self._get(queries.dashboard_path(self.slugify(dashboard_id)))
        except DatasourceError:
            raise DashboardNotFoundError() from None
        return normalizers.parse_stored_dashboard(result)

    async def get_dashboard(self, dashboard_id: str, is_temp: bool = False) -> DashboardDocument:
        try:
            result = await self._get(queries.dashboard_path(dashboard_id, is_temp))
        except BackendConnectionError as e:
            raise BackendUnreachableError() from e
        except DatasourceError:
            # Dashboards saved before ids were slugged are looked up by slug
            logger.debug("dashboard.fallback_to_slug id=%s", dashboard_id)
            return await self._get_dashboard_with_slug(dashboard_id)
        return normalizers.parse_stored_dashboard(result)

    # --- save ---

    async def save_dashboard(
        self, dashboard: DashboardDocument, base_url: str | None = None
    ) -> SaveResult:
        doc = dict(dashboard)
        title = doc.get("title")
        temp = doc.pop("temp", None)

        record = {
            "user": GUEST,
            "group": GUEST,
            "title": title,
            "tags": doc.get("tags"),
            "dashboard": to_json(doc),
        }

        if temp:
            return await self._save_temp_dashboard(record, base_url)

        dashboard_id = quote(self.slugify(title or ""), safe="")
        try:
            response = await self.transport.request(
                "PUT", queries.dashboard_path(dashboard_id), self.config.index, record
            )
        except DatasourceError as e:
            payload = getattr(e, "payload", e.message)
            raise DashboardSaveError(f"Failed to save to elasticsearch {payload}", payload) from e

        if response.created and title:
            self._schedule_unslugified_cleanup(title)
        logger.info("dashboard.saved id=%s created=%s", dashboard_id, response.created)
        return SaveResult(title=title, url="/dashboard/db/" + dashboard_id)

    def _schedule_unslugified_cleanup(self, title: str) -> None:
        task = asyncio.create_task(self._remove_unslugified_dashboard(title))
        self._cleanup_tasks.add(task)
        task.add_done_callback(self._cleanup_tasks.discard)

    async def _remove_unslugified_dashboard(self, title: str) -> None:
        # Records stored before slugging used the raw title as id
        try:
            await self._get(queries.dashboard_path(title))
            await self.delete_dashboard(title)
            logger.info("dashboard.legacy_removed title=%s", title)
        except DatasourceError as e:
            logger.debug("dashboard.legacy_cleanup_skipped title=%s reason=%s", title, e.message)

    async def _save_temp_dashboard(
        self, record: dict[str, Any], base_url: str | None = None
    ) -> SaveResult:
        if not self.config.save_temp:
            raise DashboardSaveError("Temporary dashboards are disabled for this datasource")
        try:
            data = await self._post(queries.temp_dashboard_path(self.config.save_temp_ttl), record)
        except DatasourceError as e:
            payload = getattr(e, "payload", e.message)
            raise DashboardSaveError(
                f"Failed to save to temp dashboard to elasticsearch {payload}", payload
            ) from e

        page, _ = urldefrag(base_url or self.base_url or "")
        return SaveResult(title=record["title"], url=page + "#dashboard/temp/" + data["_id"])

    # --- delete ---

    async def delete_dashboard(self, dashboard_id: str) -> str:
        response = await self.transport.request(
            "DELETE", queries.dashboard_path(dashboard_id), self.config.index
        )
        return response.data["_id"]

    # --- search ---

    async def search_dashboards(self, query_string: str) -> SearchResult:
        q = queries.normalize_dashboard_query(query_string)
        body = queries.build_dashboard_search(q.query_string, self.config.search_max_results)
        results = await self._post("/dashboard/_search", body)
        return normalizers.normalize_search_results(results or {}, q.tags_only)

    async def wait_pending(self) -> None:
        """Wait for detached legacy cleanups scheduled by earlier saves."""
        if self._cleanup_tasks:
            await asyncio.gather(*list(self._cleanup_tasks), return_exceptions=True)

    async def aclose(self) -> None:
        await self.wait_pending()
        await self.transport.aclose()
