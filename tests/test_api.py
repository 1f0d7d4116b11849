"""
Tests for the HTTP API.

The shared engine is swapped for one without a browser so validation
requests never launch Playwright.

Run with: pytest tests/test_api.py -v
"""
import json

import pytest
from fastapi.testclient import TestClient
import sse_starlette.sse as sse_module

from pagebuilder.main import app
from pagebuilder.services import ConversionEngine, set_conversion_engine
from pagebuilder.validator import ConversionValidator

from conftest import HEADING_PAGE

PREFIX = "/api/pagebuilder"


@pytest.fixture
def client():
    set_conversion_engine(ConversionEngine(validator=ConversionValidator()))
    # sse-starlette keeps a module-level exit event bound to the first event loop
    if hasattr(sse_module, "AppStatus"):
        sse_module.AppStatus.should_exit_event = None
    with TestClient(app) as test_client:
        yield test_client
    set_conversion_engine(None)


def sse_events(text):
    """(event, data) pairs from a text/event-stream body."""
    events = []
    name = None
    for line in text.splitlines():
        if line.startswith("event: "):
            name = line[len("event: "):]
        elif line.startswith("data: ") and name:
            events.append((name, json.loads(line[len("data: "):])))
            name = None
    return events


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealth:
    def test_root_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "UP"

    def test_prefixed_health(self, client):
        assert client.get(f"{PREFIX}/health").json()["status"] == "UP"

    def test_info(self, client):
        body = client.get(f"{PREFIX}/info").json()
        assert set(body["targets"]) == {"elementor", "gutenberg", "beaver-builder", "divi", "bricks", "oxygen"}
        assert body["patternTableVersion"]
        assert body["defaults"]["fallbackToHTML"] is True


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


class TestConvert:
    def test_convert_html(self, client):
        response = client.post(f"{PREFIX}/convert", json={
            "html": HEADING_PAGE,
            "options": {"targetBuilder": "gutenberg"},
        })
        assert response.status_code == 200
        body = response.json()
        assert body["targetBuilder"] == "gutenberg"
        assert body["status"] == "done"
        assert [b["blockName"] for b in body["exportData"]["blocks"]] == ["core/heading", "core/paragraph"]

    def test_convert_dom(self, client):
        response = client.post(f"{PREFIX}/convert", json={
            "dom": {"tag": "div", "children": [{"tag": "h2", "text": "Hello"}]},
            "options": {"targetBuilder": "bricks"},
        })
        assert response.status_code == 200
        assert response.json()["targetBuilder"] == "bricks"

    def test_with_validation(self, client):
        response = client.post(f"{PREFIX}/convert", json={
            "html": HEADING_PAGE,
            "options": {"targetBuilder": "divi", "runValidation": True},
        })
        validation = response.json()["validation"]
        assert validation["overallScore"] == 100
        assert validation["canExport"] is True

    def test_missing_input(self, client):
        assert client.post(f"{PREFIX}/convert", json={"options": {}}).status_code == 422

    def test_empty_document(self, client):
        response = client.post(f"{PREFIX}/convert", json={"html": "   "})
        assert response.status_code == 422
        assert "detail" in response.json()

    def test_unknown_target(self, client):
        response = client.post(f"{PREFIX}/convert", json={"html": HEADING_PAGE, "options": {"targetBuilder": "wix"}})
        assert response.status_code == 422

    def test_convert_all(self, client):
        response = client.post(f"{PREFIX}/convert/all", json={"html": HEADING_PAGE, "targets": ["elementor", "oxygen"]})
        assert response.status_code == 200
        results = response.json()["results"]
        assert set(results) == {"elementor", "oxygen"}
        assert results["oxygen"]["serialized"].startswith("[ct_section")


class TestConvertStream:
    def test_single_target_stream(self, client):
        response = client.post(f"{PREFIX}/convert/stream", json={
            "html": HEADING_PAGE,
            "options": {"targetBuilder": "gutenberg"},
        })
        assert response.status_code == 200
        events = sse_events(response.text)
        names = [name for name, _ in events]
        assert names[0] == "status"
        assert names[-1] == "complete"
        assert [data["data"]["state"] for name, data in events if name == "phase"] == ["converting", "done"]
        assert events[-1][1]["data"]["targetBuilder"] == "gutenberg"

    def test_multi_target_stream(self, client):
        response = client.post(f"{PREFIX}/convert/stream", json={
            "html": HEADING_PAGE,
            "targets": ["elementor", "divi"],
        })
        events = sse_events(response.text)
        assert set(events[-1][1]["data"]["results"]) == {"elementor", "divi"}
        targets = {data["target"] for name, data in events if name == "phase"}
        assert targets == {"elementor", "divi"}

    def test_stream_error(self, client):
        response = client.post(f"{PREFIX}/convert/stream", json={"html": ""})
        events = sse_events(response.text)
        assert events[-1][0] == "error"
        assert events[-1][1]["message"]
