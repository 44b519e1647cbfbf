import base64
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from qriscodec.api import app
from qriscodec.config import settings
from qriscodec.crc import verify

from samples import STATIC_QRIS, tamper

HEADERS = {"X-API-Key": settings.api_key}


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def test_health_and_index(client):
    health = client.get("/health").json()
    assert health["status"] == "ok"
    assert datetime.fromisoformat(health["timestamp"]).tzinfo is not None

    index = client.get("/").json()
    assert index["endpoints"]["decode"] == "POST /v1/decode"


def test_cors_preflight_is_answered(client):
    response = client.options(
        "/v1/decode",
        headers={
            "Origin": "https://kasir.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type, X-API-Key",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "POST" in response.headers["access-control-allow-methods"]


def test_api_key_is_required(client):
    assert client.post("/v1/decode", json={"payload": STATIC_QRIS}, headers={"X-API-Key": "wrong"}).status_code == 401
    assert client.post("/v1/decode", json={"payload": STATIC_QRIS}).status_code == 422


def test_decode_returns_fields_nodes_and_checksum(client):
    response = client.post("/v1/decode", json={"payload": STATIC_QRIS}, headers=HEADERS)

    assert response.status_code == 200
    assert response.headers["X-Request-ID"]
    body = response.json()
    assert body["payload"] == STATIC_QRIS
    assert body["fields"]["merchantName"] == "NamaToko"
    assert body["fields"]["transactionAmount"] is None
    assert body["checksum"] == {
        "status": "VALID",
        "valid": True,
        "expected": STATIC_QRIS[-4:],
        "actual": STATIC_QRIS[-4:],
    }
    merchant = body["nodes"][2]
    assert merchant["name"] == "merchantAccountInformation"
    assert merchant["length"] == 42
    assert merchant["children"][0] == {
        "tag": "00",
        "length": 14,
        "name": None,
        "value": "ID.CO.QRIS.WWW",
        "children": None,
    }


def test_decode_reports_checksum_mismatch_without_failing(client):
    response = client.post("/v1/decode", json={"payload": tamper(STATIC_QRIS)}, headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["checksum"]["status"] == "MISMATCH"


def test_decode_maps_parse_errors_to_422(client):
    response = client.post("/v1/decode", json={"payload": "26060009AB"}, headers=HEADERS)

    assert response.status_code == 422
    assert response.json() == {
        "code": "ERR_TRUNCATED_VALUE",
        "message": "Tag 00 declares 9 characters but 2 remain",
        "path": ["26"],
    }


def test_decode_rejects_oversized_payload(client):
    response = client.post("/v1/decode", json={"payload": "0" * (settings.max_payload_length + 1)}, headers=HEADERS)

    assert response.status_code == 400
    assert response.json()["code"] == "ERR_PAYLOAD_TOO_LARGE"


def test_dynamic_conversion(client):
    response = client.post(
        "/v1/dynamic",
        json={"payload": STATIC_QRIS, "amount": "15000", "render": False},
        headers=HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert verify(body["payload"])
    assert body["crc"] == body["payload"][-4:]
    assert body["fields"]["transactionAmount"] == "15000"
    assert body["fields"]["pointOfInitiationMethod"] == "12"
    assert body["source_checksum"]["status"] == "VALID"
    assert body["qr_png_base64"] is None


def test_dynamic_conversion_renders_png(client):
    response = client.post(
        "/v1/dynamic",
        json={"payload": STATIC_QRIS, "amount": "15000", "fee": "500", "render": True},
        headers=HEADERS,
    )

    assert response.status_code == 200
    png = base64.b64decode(response.json()["qr_png_base64"])
    assert png.startswith(b"\x89PNG")


def test_dynamic_refuses_bad_source_checksum_unless_told_otherwise(client):
    tampered = tamper(STATIC_QRIS)

    strict = client.post("/v1/dynamic", json={"payload": tampered, "amount": "15000", "render": False}, headers=HEADERS)
    assert strict.status_code == 422
    assert strict.json()["code"] == "ERR_CRC_MISMATCH"

    lenient = client.post(
        "/v1/dynamic",
        json={"payload": tampered, "amount": "15000", "render": False, "require_valid_checksum": False},
        headers=HEADERS,
    )
    assert lenient.status_code == 200
    assert lenient.json()["source_checksum"]["status"] == "MISMATCH"
    assert verify(lenient.json()["payload"])


def test_dynamic_validates_amount(client):
    response = client.post("/v1/dynamic", json={"payload": STATIC_QRIS, "amount": "abc"}, headers=HEADERS)

    assert response.status_code == 422


def test_metrics_exposes_codec_counters(client):
    client.post("/v1/decode", json={"payload": STATIC_QRIS}, headers=HEADERS)

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "qriscodec_decode_total" in response.text
