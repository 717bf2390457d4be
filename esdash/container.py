from __future__ import annotations

import logging

from esdash.adapters.templating import VariableTemplateSrv
from esdash.adapters.transport import HttpxTransport
from esdash.core.config import build_datasource_config, parse_template_variables, settings
from esdash.services.datasource import ElasticDatasource


logger = logging.getLogger("esdash.container")


class Container:
    # Class-level annotations so static checkers understand intended types
    datasource: ElasticDatasource | None

    def __init__(self) -> None:
        # Built lazily by init_datasource(); the app lifespan and tests call it.
        self.datasource = None

    def init_datasource(self) -> None:
        """Create the Elasticsearch datasource from settings.

        No-op when ES_URL is not configured so the app can start without a backend.
        """
        if not settings.ES_URL:
            logger.info("Elasticsearch datasource not configured (ES_URL unset)")
            return
        config = build_datasource_config(settings)
        transport = HttpxTransport(config, timeout_seconds=settings.ES_TIMEOUT_SECONDS)
        self.datasource = ElasticDatasource(
            config,
            transport=transport,
            template_srv=VariableTemplateSrv(parse_template_variables(settings.TEMPLATE_VARIABLES)),
            base_url=settings.PUBLIC_BASE_URL,
        )
        logger.info(
            "Elasticsearch datasource ready: url=%s index=%s grafana_db=%s",
            config.url,
            config.index,
            config.grafana_db,
        )

    async def shutdown(self) -> None:
        if self.datasource is not None:
            await self.datasource.aclose()
            self.datasource = None


container = Container()
