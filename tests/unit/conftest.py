import pytest
import respx

from httpx import AsyncClient, ASGITransport

from esdash.adapters.templating import VariableTemplateSrv
from esdash.adapters.transport import HttpxTransport
from esdash.container import container
from esdash.domain.models import DatasourceConfig
from esdash.services.datasource import ElasticDatasource

ES_URL = "http://es.test:9200"
INDEX = "grafana-dash"


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def es_config() -> DatasourceConfig:
    return DatasourceConfig(url=ES_URL, index=INDEX, grafana_db=True, search_max_results=20)


@pytest.fixture()
def es_mock():
    """Intercept every httpx call made against the fake Elasticsearch node."""
    with respx.mock(base_url=ES_URL, assert_all_called=False) as mock:
        yield mock


@pytest.fixture()
async def datasource(es_config, es_mock):
    ds = ElasticDatasource(
        es_config,
        transport=HttpxTransport(es_config),
        template_srv=VariableTemplateSrv({"host": "web-01"}),
        base_url="http://grafana.test/#/dashboard/db/home",
    )
    yield ds
    await ds.aclose()


@pytest.fixture()
async def async_client(datasource):
    """HTTPX AsyncClient bound to the app through ASGITransport (no sockets).

    The container is pointed at the test datasource for the duration of the test.
    """
    from esdash.main import create_app

    app = create_app()
    previous = container.datasource
    container.datasource = datasource
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    container.datasource = previous


@pytest.fixture()
def user_headers():
    return {"X-Grafana-User": "test-user"}
