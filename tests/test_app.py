"""HTTP tests for the Flask invoice endpoints."""

from __future__ import annotations

import pytest

from app import create_app
from config import Config
from pdf_service import PREVIEW_PREFIX


@pytest.fixture
def client(monkeypatch, tmp_path):
    monkeypatch.setattr(Config, "EXPORTS_DIR", str(tmp_path / "exports"))
    app = create_app({"TESTING": True})
    return app.test_client()


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


class TestInvoicePdf:
    def test_download(self, client, sample_payload):
        resp = client.post("/invoices/pdf", json=sample_payload)

        assert resp.status_code == 200
        assert resp.mimetype == "application/pdf"
        assert "Invoice-INV-1001.pdf" in resp.headers["Content-Disposition"]
        assert resp.data.startswith(b"%PDF")

    def test_missing_field(self, client, sample_payload):
        del sample_payload["clientName"]

        resp = client.post("/invoices/pdf", json=sample_payload)

        assert resp.status_code == 400
        assert "clientName" in resp.get_json()["error"]

    def test_not_json(self, client):
        resp = client.post("/invoices/pdf", data="nope", content_type="text/plain")

        assert resp.status_code == 400

    def test_invalid_values(self, client, sample_payload):
        sample_payload["subtotal"] = "lots"

        resp = client.post("/invoices/pdf", json=sample_payload)

        assert resp.status_code == 400

    @pytest.mark.parametrize(
        "field, value",
        [("items", "ab"), ("items", [1]), ("userInfo", "Jane")],
    )
    def test_wrong_shapes(self, client, sample_payload, field, value):
        sample_payload[field] = value

        resp = client.post("/invoices/pdf", json=sample_payload)

        assert resp.status_code == 400
        assert "must be" in resp.get_json()["error"]

    def test_fractional_quantity(self, client, sample_payload):
        sample_payload["items"][0]["quantity"] = 1.5

        resp = client.post("/invoices/pdf", json=sample_payload)

        assert resp.status_code == 400
        assert "whole number" in resp.get_json()["error"]

    def test_bad_strategy_is_server_error(self, monkeypatch, tmp_path, sample_payload):
        monkeypatch.setattr(Config, "EXPORTS_DIR", str(tmp_path))
        app = create_app({"TESTING": True, "DESCRIPTION_STRATEGY": "ellipsis"})

        resp = app.test_client().post("/invoices/pdf", json=sample_payload)

        assert resp.status_code == 500
        assert "ellipsis" in resp.get_json()["error"]


def test_preview(client, sample_payload):
    resp = client.post("/invoices/preview", json=sample_payload)

    assert resp.status_code == 200
    assert resp.get_json()["preview"].startswith(PREVIEW_PREFIX)


def test_app_does_not_create_exports_dir(monkeypatch, tmp_path):
    exports = tmp_path / "exports"
    monkeypatch.setattr(Config, "EXPORTS_DIR", str(exports))

    create_app({"TESTING": True})

    assert not exports.exists()
