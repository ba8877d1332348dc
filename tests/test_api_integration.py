# tests/test_api_integration.py
"""
Integration Tests for the timeledger HTTP API.

Focus
-----
These tests verify the HTTP contract (status codes, JSON shapes, CORS and the
access gate) against an in-memory content store. Nothing leaves the process.

Scenarios
---------
1. **Health Check**: ungated, reports version and mode.
2. **Access Gate**: correct, wrong, malformed and missing credentials.
3. **Submission**: text-only and image entries end up in the stored CSV.
4. **Error Mapping**: 400 / 405 / 409 bodies keep `success: false`.
"""

from __future__ import annotations

import asyncio
import base64
import io

from conftest import basic_header, fixed_clock, make_settings
from fastapi.testclient import TestClient
from PIL import Image

from timeledger import __version__
from timeledger.api.app import create_app
from timeledger.core.contracts.stored_file import StoredFile
from timeledger.core.csv_codec import decode
from timeledger.core.errors import ConflictError
from timeledger.storage.memory import InMemoryContentStore

CSV = "timeline-data.csv"


def png_data_url() -> str:
    buf = io.BytesIO()
    Image.new("RGB", (6, 6), "green").save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode()


def stored_rows(store: InMemoryContentStore) -> list:
    return list(decode(asyncio.run(store.get(CSV)).text()))


def test_health_is_public(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == __version__
    assert data["mode"] == "demo"


def test_missing_credentials_are_challenged(client: TestClient) -> None:
    response = client.post("/api/update-csv", json={"entry": {"date": "Mar 30", "description": "x"}})
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"].startswith("Basic")
    assert response.json() == {"success": False, "error": "Authentication required", "kind": "auth"}


def test_wrong_and_malformed_credentials_are_rejected(client: TestClient) -> None:
    body = {"entry": {"date": "Mar 30", "description": "x"}}
    wrong = client.post("/api/update-csv", json=body, headers=basic_header("editor", "nope"))
    assert wrong.status_code == 401

    malformed = client.post("/api/update-csv", json=body, headers={"Authorization": "Basic %%%"})
    assert malformed.status_code == 401
    assert "WWW-Authenticate" in malformed.headers

    bearer = client.post("/api/update-csv", json=body, headers={"Authorization": "Bearer token"})
    assert bearer.status_code == 401


def test_scenario_a_over_http(client: TestClient, store: InMemoryContentStore) -> None:
    response = client.post(
        "/api/update-csv",
        json={"entry": {"date": "Mar 30", "description": "Test entry"}},
        headers=basic_header(),
    )
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["success"] is True
    assert data["imagePath"] is None

    [row] = stored_rows(store)
    assert row.image_path == ""
    assert row.quarter == "2025-Q1"


def test_scenario_b_over_http(client: TestClient, store: InMemoryContentStore) -> None:
    response = client.post(
        "/api/submit-entry",
        json={
            "entry": {"date": "Mar 30", "year": 2025, "description": "Photo"},
            "imageData": png_data_url(),
            "filename": "photo.png",
        },
        headers=basic_header(),
    )
    assert response.status_code == 200, response.text
    image_url = response.json()["imagePath"]
    assert image_url.startswith("https://raw.githubusercontent.com/owner/timeline/main/images/")
    assert image_url.endswith(".webp")

    last = stored_rows(store)[-1]
    assert last.image_path == image_url
    assert last.year == "2025"


def test_missing_required_fields_is_400(client: TestClient, store: InMemoryContentStore) -> None:
    for body in ({}, {"entry": {"description": "no date"}}, {"entry": "not-an-object"}):
        response = client.post("/api/submit-entry", json=body, headers=basic_header())
        assert response.status_code == 400, body
        assert response.json()["success"] is False
    assert store.commits == []


def test_update_csv_rejects_images(client: TestClient) -> None:
    response = client.post(
        "/api/update-csv",
        json={"entry": {"date": "Mar 30", "description": "x"}, "imageData": png_data_url()},
        headers=basic_header(),
    )
    assert response.status_code == 400


def test_wrong_method_is_405(client: TestClient) -> None:
    response = client.get("/api/submit-entry", headers=basic_header())
    assert response.status_code == 405
    assert response.json()["success"] is False


def test_cors_preflight_passes_the_gate(client: TestClient) -> None:
    response = client.options(
        "/api/submit-entry",
        headers={
            "Origin": "https://form.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type, Authorization",
        },
    )
    assert response.status_code == 200
    assert "POST" in response.headers["access-control-allow-methods"]


def test_bare_options_is_ok(client: TestClient) -> None:
    assert client.options("/api/submit-entry").status_code == 200


def test_list_entries(client: TestClient) -> None:
    client.post("/api/update-csv", json={"entry": {"date": "A", "description": "1"}}, headers=basic_header())
    client.post("/api/update-csv", json={"entry": {"date": "B", "description": "2"}}, headers=basic_header())

    response = client.get("/api/entries", headers=basic_header())
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert [e["date"] for e in data["entries"]] == ["A", "B"]
    assert "imagePath" in data["entries"][0]


def test_upload_image_only(client: TestClient, store: InMemoryContentStore) -> None:
    response = client.post(
        "/api/upload-image",
        json={"imageData": png_data_url(), "date": "Mar 30", "title": "Solo"},
        headers=basic_header(),
    )
    assert response.status_code == 200
    assert response.json()["url"].endswith(".webp")
    assert CSV not in store.paths()


class AlwaysConflictStore(InMemoryContentStore):
    async def put(self, path: str, content: bytes, message: str, revision: str | None = None) -> StoredFile:
        raise ConflictError(f"{path} was changed by another writer", path=path, step="put")


def test_conflict_is_reported_distinctly() -> None:
    app = create_app(make_settings(append_retries=1), store=AlwaysConflictStore(), clock=fixed_clock)
    with TestClient(app) as c:
        response = c.post(
            "/api/update-csv",
            json={"entry": {"date": "Mar 30", "description": "x"}},
            headers=basic_header(),
        )
    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"
    assert response.json()["success"] is False


def test_gate_can_be_disabled() -> None:
    settings = make_settings(auth_enabled=False, auth_username=None, auth_password=None)
    with TestClient(create_app(settings, store=InMemoryContentStore(), clock=fixed_clock)) as c:
        response = c.post("/api/update-csv", json={"entry": {"date": "Mar 30", "description": "x"}})
    assert response.status_code == 200


class BrokenStore(InMemoryContentStore):
    async def get(self, path: str) -> StoredFile:
        raise RuntimeError("disk on fire")


def test_unhandled_error_keeps_json_body_and_cors_headers() -> None:
    app = create_app(make_settings(), store=BrokenStore(), clock=fixed_clock)
    with TestClient(app) as c:
        response = c.get("/api/entries", headers={**basic_header(), "Origin": "https://form.example"})
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "disk on fire", "kind": "internal"}
    assert "access-control-allow-origin" in response.headers
