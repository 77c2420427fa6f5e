"""Tests for the query parameter and JSON body inspection dependencies."""

import logging
from typing import Any

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from storeguard.core.config import settings
from storeguard.core.exception_handlers import setup_exception_handlers
from storeguard.core.input_guard import reject_malicious_query_params, sanitized_json_body


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/products", dependencies=[Depends(reject_malicious_query_params)])
    async def list_products() -> dict:
        return {"ok": True}

    @app.post("/contact")
    async def contact(payload: Any = Depends(sanitized_json_body)) -> dict:
        return {"payload": payload}

    return TestClient(app)


class TestQueryParams:
    def test_clean_query_passes(self, client: TestClient) -> None:
        resp = client.get("/products", params={"q": "blue shirt", "page": "2"})

        assert resp.status_code == 200

    def test_malicious_query_rejected(self, client: TestClient) -> None:
        resp = client.get("/products", params={"page": "2", "q": "1 UNION SELECT password"})

        assert resp.status_code == 403
        error = resp.json()["error"]
        assert error["code"] == "malicious_input_detected"
        assert error["details"] == {"field": "q", "category": "sql"}

    def test_repeated_parameter_is_scanned(self, client: TestClient) -> None:
        resp = client.get("/products?tag=sale&tag=javascript:void%200")

        assert resp.status_code == 403
        assert resp.json()["error"]["details"]["category"] == "xss"

    def test_rejection_is_logged_without_raw_ip(
        self, client: TestClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="storeguard.core.input_guard"):
            client.get(
                "/products",
                params={"q": "DROP TABLE users"},
                headers={"X-Forwarded-For": "203.0.113.5"},
            )

        records = [r for r in caplog.records if r.getMessage() == "input_guard.rejected"]
        assert len(records) == 1
        record = records[0]
        assert record.source == "query"
        assert record.field == "q"
        assert record.client_hash != "203.0.113.5"
        assert not hasattr(record, "client_ip")


class TestJsonBody:
    def test_clean_body_is_sanitized(self, client: TestClient) -> None:
        resp = client.post("/contact", json={"name": "  Ana  ", "tags": ["{vip}"], "qty": 2})

        assert resp.status_code == 200
        assert resp.json() == {"payload": {"name": "Ana", "tags": ["vip"], "qty": 2}}

    def test_malicious_body_rejected_with_field(self, client: TestClient) -> None:
        resp = client.post("/contact", json={"name": "Ana", "note": "DROP TABLE users;"})

        assert resp.status_code == 403
        error = resp.json()["error"]
        assert error["message"] == "Field 'note' contains malicious input (possible SQL injection)"
        assert error["details"]["field"] == "note"

    def test_nested_field_path(self, client: TestClient) -> None:
        resp = client.post(
            "/contact",
            json={"items": [{"name": "mug"}, {"name": "<img src=x onerror=alert(1)>"}]},
        )

        assert resp.status_code == 403
        assert resp.json()["error"]["details"]["field"] == "items[1].name"

    def test_empty_body_returns_none(self, client: TestClient) -> None:
        resp = client.post("/contact")

        assert resp.status_code == 200
        assert resp.json() == {"payload": None}

    def test_invalid_json_returns_400(self, client: TestClient) -> None:
        resp = client.post(
            "/contact",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_json"

    def test_depth_limit_from_settings(self, client: TestClient, monkeypatch) -> None:
        monkeypatch.setattr(settings.guard, "max_payload_depth", 2)

        resp = client.post("/contact", json={"a": {"b": {"c": 1}}})

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "payload_too_deep"
