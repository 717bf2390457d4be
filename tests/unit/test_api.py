from __future__ import annotations

import json

import httpx
import pytest

from esdash.container import container


def _stored(doc: dict) -> dict:
    return {"_id": "x", "_source": {"dashboard": json.dumps(doc)}}


@pytest.mark.anyio
async def test_healthz(async_client):
    r = await async_client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


@pytest.mark.anyio
async def test_datasource_info_hides_credential(async_client):
    r = await async_client.get("/v1/datasource")
    assert r.status_code == 200
    body = r.json()
    assert body["type"] == "elastic"
    assert body["grafanaDB"] is True
    assert body["saveTempTTL"] == "30d"
    assert body["searchMaxResults"] == 20
    assert "basic_auth" not in body and "basicAuth" not in body


@pytest.mark.anyio
async def test_search_endpoint(async_client, es_mock, user_headers):
    es_mock.post("/grafana-dash/dashboard/_search").mock(
        return_value=httpx.Response(
            200,
            json={
                "hits": {"hits": [{"_id": "web", "_source": {"title": "Web", "tags": ["prod"]}}]},
                "facets": {"tags": {"terms": [{"term": "prod", "count": 1}]}},
            },
        )
    )
    r = await async_client.get("/v1/dashboards/search", params={"query": "tags!:prod"}, headers=user_headers)
    assert r.status_code == 200
    assert r.json() == {
        "dashboards": [{"id": "web", "title": "Web", "tags": ["prod"]}],
        "tags": [{"term": "prod", "count": 1}],
        "tagsOnly": True,
    }


@pytest.mark.anyio
async def test_get_dashboard_not_found(async_client, es_mock):
    es_mock.get("/grafana-dash/dashboard/gone").mock(return_value=httpx.Response(404, json={}))
    r = await async_client.get("/v1/dashboards/db/gone")
    assert r.status_code == 404
    assert r.json()["detail"] == "Dashboard not found"


@pytest.mark.anyio
async def test_get_dashboard_unreachable(async_client, es_mock):
    es_mock.get("/grafana-dash/dashboard/a").mock(side_effect=httpx.ConnectError)
    r = await async_client.get("/v1/dashboards/db/a")
    assert r.status_code == 503
    assert "Could not contact Elasticsearch" in r.json()["detail"]


@pytest.mark.anyio
async def test_get_temp_dashboard(async_client, es_mock):
    es_mock.get("/grafana-dash/temp/AbC").mock(
        return_value=httpx.Response(200, json=_stored({"title": "Shared"}))
    )
    r = await async_client.get("/v1/dashboards/temp/AbC")
    assert r.status_code == 200
    assert r.json() == {"title": "Shared"}


@pytest.mark.anyio
async def test_save_dashboard(async_client, es_mock):
    es_mock.put("/grafana-dash/dashboard/my-dash").mock(
        return_value=httpx.Response(200, json={"_id": "my-dash"})
    )
    r = await async_client.post("/v1/dashboards", json={"title": "My Dash", "rows": []})
    assert r.status_code == 200
    assert r.json() == {"title": "My Dash", "url": "/dashboard/db/my-dash"}


@pytest.mark.anyio
async def test_save_temp_dashboard_links_to_request_host(async_client, es_mock):
    es_mock.post("/grafana-dash/temp/").mock(
        return_value=httpx.Response(201, json={"_id": "AbC123"})
    )
    r = await async_client.post("/v1/dashboards", json={"title": "Shared", "temp": True})
    assert r.status_code == 200
    assert r.json()["url"] == "http://testserver/#dashboard/temp/AbC123"


@pytest.mark.anyio
async def test_save_temp_dashboard_links_to_referring_page(async_client, es_mock):
    es_mock.post("/grafana-dash/temp/").mock(
        return_value=httpx.Response(201, json={"_id": "t1"})
    )
    r = await async_client.post(
        "/v1/dashboards",
        json={"title": "x", "temp": True},
        headers={"Referer": "https://grafana.example.com/#/dashboard/db/x"},
    )
    assert r.status_code == 200
    assert r.json()["url"] == "https://grafana.example.com/#dashboard/temp/t1"


@pytest.mark.anyio
async def test_save_failure_is_bad_gateway(async_client, es_mock):
    es_mock.put("/grafana-dash/dashboard/x").mock(return_value=httpx.Response(500, text="boom"))
    r = await async_client.post("/v1/dashboards", json={"title": "x"})
    assert r.status_code == 502
    assert r.json()["detail"] == "Failed to save to elasticsearch boom"


@pytest.mark.anyio
async def test_delete_dashboard(async_client, es_mock):
    es_mock.delete("/grafana-dash/dashboard/x").mock(
        return_value=httpx.Response(200, json={"_id": "x", "found": True})
    )
    r = await async_client.delete("/v1/dashboards/db/x")
    assert r.status_code == 200
    assert r.json() == {"id": "x"}


@pytest.mark.anyio
async def test_delete_missing_dashboard_returns_backend_payload(async_client, es_mock):
    es_mock.delete("/grafana-dash/dashboard/x").mock(
        return_value=httpx.Response(404, json={"_id": "x", "found": False})
    )
    r = await async_client.delete("/v1/dashboards/db/x")
    assert r.status_code == 502
    assert r.json()["detail"] == {"_id": "x", "found": False}


@pytest.mark.anyio
async def test_annotations_endpoint(async_client, es_mock):
    route = es_mock.post("/events/_search").mock(
        return_value=httpx.Response(
            200,
            json={
                "hits": {
                    "hits": [
                        {
                            "_source": {"ts": "2014-06-01T12:00:00Z", "desc": "deploy", "tags": ["a", "b"]},
                            "fields": {"ts": ["2014-06-01T12:00:00Z"]},
                        }
                    ]
                }
            },
        )
    )
    r = await async_client.post(
        "/v1/annotations",
        json={
            "annotation": {"name": "deploys", "index": "events", "timeField": "ts", "query": "env:$env"},
            "range": {"from": "now-6h", "to": "now"},
            "variables": {"env": "prod"},
        },
    )
    assert r.status_code == 200
    sent = json.loads(route.calls.last.request.content)
    assert sent["query"]["filtered"]["query"]["bool"]["should"][0]["query_string"]["query"] == "env:prod"
    events = r.json()
    assert len(events) == 1
    assert events[0]["time"] == 1401624000000
    assert events[0]["title"] == "deploy"
    assert events[0]["tags"] == "a, b"
    assert "text" not in events[0]
    assert events[0]["annotation"]["timeField"] == "ts"


@pytest.mark.anyio
async def test_unconfigured_datasource_is_unavailable(async_client):
    previous = container.datasource
    container.datasource = None
    try:
        r = await async_client.get("/v1/dashboards/search")
    finally:
        container.datasource = previous
    assert r.status_code == 503
