"""Test HTTP endpoint functionality."""

from __future__ import annotations

import zlib

import httpx
import orjson
import pytest
from fastapi.testclient import TestClient

from ddhouse.adapters.influxdb import InfluxDBForwarder
from ddhouse.config.models import EnvSettings
from ddhouse.events.writer import EventWriter
from ddhouse.server.http import create_app

BASE = "http://influx.test:8086"


class SinkRecorder:
    """Records every request the forwarder sends."""

    def __init__(self):
        self.series = []
        self.created = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/db" and request.method == "GET":
            return httpx.Response(200, json=[])
        if request.url.path == "/db":
            self.created.append(orjson.loads(request.content))
            return httpx.Response(201)
        self.series.append(orjson.loads(request.content))
        return httpx.Response(200)


@pytest.fixture
def sink():
    return SinkRecorder()


@pytest.fixture
def make_app(sink, tmp_path):
    def _make(api_key: str = ""):
        settings = EnvSettings(
            api_key=api_key, event_log_path=str(tmp_path / "events.log")
        )
        client = httpx.AsyncClient(base_url=BASE, transport=httpx.MockTransport(sink.handler))
        forwarder = InfluxDBForwarder(BASE, settings.db_name, client=client)
        writer = EventWriter(settings.event_log_path, capacity=4)
        return create_app(settings, forwarder=forwarder, writer=writer)

    return _make


def test_health_and_ready(make_app):
    client = TestClient(make_app())
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/ready").json() == {"status": "ready"}


def test_startup_bootstraps_database(make_app, sink):
    with TestClient(make_app()):
        pass
    assert sink.created == [{"name": "datadog"}]


def test_intake_acknowledges_and_forwards(make_app, sink):
    body = {"internalHostname": "web-1", "collection_timestamp": 10, "cpuIdle": 93.5}
    with TestClient(make_app()) as client:
        response = client.post("/intake/", content=orjson.dumps(body))
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
    # forwarding is drained at shutdown
    assert sink.series == [
        [{"name": "system.cpu", "columns": ["time", "hostname", "idle"], "points": [[10000, "web-1", 93.5]]}]
    ]


def test_intake_accepts_deflate_body(make_app, sink):
    raw = zlib.compress(orjson.dumps({"internalHostname": "h", "cpuUser": 1}))
    with TestClient(make_app()) as client:
        response = client.post(
            "/intake", content=raw, headers={"Content-Encoding": "deflate"}
        )
        assert response.json() == {"status": "ok"}
    assert sink.series[0][0]["name"] == "system.cpu"


def test_malformed_body_is_acknowledged_as_failed(make_app, sink):
    with TestClient(make_app()) as client:
        response = client.post("/intake", content=b"{broken")
        assert response.status_code == 200
        assert response.json() == {"status": "failed"}
        bad_deflate = client.post(
            "/intake", content=b"xx", headers={"Content-Encoding": "deflate"}
        )
        assert bad_deflate.json() == {"status": "failed"}
    assert sink.series == []


def test_series_endpoint(make_app, sink):
    payload = {"series": [{"metric": "requests", "points": [[1, 2]], "host": "h"}]}
    with TestClient(make_app()) as client:
        for path in ("/api/v1/series", "/api/v1/series/"):
            response = client.post(path, content=orjson.dumps(payload))
            assert response.json() == {"status": "ok"}
        invalid = client.post("/api/v1/series", content=b'{"series": 3}')
        assert invalid.json() == {"status": "failed"}
    assert [batch[0]["name"] for batch in sink.series] == ["statsd.requests"] * 2


def test_events_are_written_to_log(make_app, tmp_path):
    body = {"events": {"api": [{"msg_title": "deploy"}]}}
    with TestClient(make_app()) as client:
        assert client.post("/intake", content=orjson.dumps(body)).json() == {
            "status": "ok"
        }
    lines = (tmp_path / "events.log").read_bytes().splitlines()
    assert [orjson.loads(line) for line in lines] == [
        {"source": "api", "msg_title": "deploy"}
    ]


def test_api_key_is_enforced(make_app, sink):
    with TestClient(make_app(api_key="s3cret")) as client:
        denied = client.post("/intake?api_key=wrong", content=b"{}")
        assert denied.status_code == 403
        assert denied.text == "Bad API Key"
        missing = client.post("/intake", content=b"{}")
        assert missing.status_code == 403
        allowed = client.post("/intake?api_key=s3cret", content=b'{"cpuIdle": 1}')
        assert allowed.json() == {"status": "ok"}
    assert len(sink.series) == 1


def test_status_check_user_agent_is_answered(make_app, sink):
    with TestClient(make_app(api_key="s3cret")) as client:
        response = client.post(
            "/intake", content=b"{}", headers={"User-Agent": "Datadog-Status-Check"}
        )
        assert response.status_code == 200
        assert response.text == "STILL-ALIVE\n"
    assert sink.series == []


def test_series_with_null_fields_is_acknowledged_ok(make_app, sink):
    payload = {
        "series": [
            {"metric": "m", "points": [[1, 1]], "host": "h", "interval": None, "type": None, "tags": None},
            {"metric": "n", "points": [[1, 2]]},
        ]
    }
    with TestClient(make_app()) as client:
        response = client.post("/api/v1/series", content=orjson.dumps(payload))
        assert response.json() == {"status": "ok"}
    assert [record["name"] for record in sink.series[0]] == ["statsd.m", "statsd.n"]
