import time

import pytest
from fastapi.testclient import TestClient

from conftest import SECRET, RecordingDelay, future
from licensegate.config import Settings
from licensegate.main import create_app
from licensegate.models.license import LicenseStatus
from licensegate.services.signature import SignatureVerifier

KEY = "ABCD-1234-EFGH"


@pytest.fixture
def delay():
    return RecordingDelay()


@pytest.fixture
def client(engine, delay):
    settings = Settings(activation_secret=SECRET, admin_token="admin-token")
    app = create_app(settings, engine=engine, delay=delay)
    with TestClient(app) as client:
        yield client


def test_activation_scenario(client, seed):
    seed(KEY, owner="Jane Doe", expires_at=future())

    first = client.post("/activate", json={"key": KEY, "domain": "https://www.Example.com/pricing"})
    assert first.status_code == 200
    body = first.json()
    assert body["valid"] is True
    assert body["code"] == "VALID"
    assert body["license"]["domain"] == "example.com"
    assert body["license"]["productName"] == "Starter Theme"

    again = client.post("/activate", json={"key": KEY, "domain": "example.com"}).json()
    assert again["code"] == "VALID"

    other = client.post("/activate", json={"key": KEY, "domain": "other-site.com"}).json()
    assert other == {
        "valid": False,
        "code": "DOMAIN_MISMATCH",
        "message": "License is activated for another domain",
    }

    verified = client.get("/verify-domain/example.com").json()
    assert verified["success"] is True
    assert verified["verified"] is True
    assert verified["license"]["ownerName"] == "Jane Doe"

    revoke = client.post(f"/admin/licenses/{KEY}/revoke", headers={"X-Admin-Token": "admin-token"})
    assert revoke.status_code == 200

    revoked = client.post("/activate", json={"key": KEY, "domain": "example.com"}).json()
    assert revoked["code"] == "REVOKED"

    after = client.get("/verify-domain/example.com").json()
    assert after["success"] is True
    assert after["verified"] is False
    assert after["license"]["status"] == "revoked"


def test_signed_activation(client, seed):
    seed(KEY)
    timestamp = int(time.time() * 1000)
    signature = SignatureVerifier(SECRET).sign(KEY, "example.com", timestamp)

    body = client.post(
        "/activate",
        json={"key": KEY, "domain": "example.com", "timestamp": timestamp, "signature": signature},
    ).json()

    assert body["code"] == "VALID"


def test_stale_signed_activation(client, seed):
    seed(KEY)
    timestamp = int(time.time() * 1000) - 10 * 60 * 1000
    signature = SignatureVerifier(SECRET).sign(KEY, "example.com", timestamp)

    body = client.post(
        "/activate",
        json={"key": KEY, "domain": "example.com", "timestamp": timestamp, "signature": signature},
    ).json()

    assert body == {"valid": False, "code": "EXPIRED_REQUEST", "message": "Request has expired"}


@pytest.mark.parametrize(
    "payload",
    [{}, {"key": KEY}, {"domain": "example.com"}, ["a", "b"], "text", None],
)
def test_missing_params(client, delay, payload):
    response = client.post("/activate", json=payload)
    assert response.status_code == 200
    assert response.json()["code"] == "MISSING_PARAMS"
    assert delay.calls == 1


def test_non_json_body(client, delay):
    response = client.post(
        "/activate", content=b"key=ABCD", headers={"Content-Type": "application/x-www-form-urlencoded"}
    )
    assert response.json()["code"] == "MISSING_PARAMS"
    assert delay.calls == 1


@pytest.mark.parametrize("key", [123, True, {"a": 1}, ["ABCD-1234-EFGH"]])
def test_non_string_key_is_missing_params(client, delay, key):
    response = client.post("/activate", json={"key": key, "domain": "example.com"})
    assert response.status_code == 200
    assert response.json()["code"] == "MISSING_PARAMS"
    assert delay.calls == 1


@pytest.mark.parametrize("constant", [b"Infinity", b"-Infinity", b"NaN"])
def test_non_finite_timestamp_is_invalid_signature(client, seed, delay, constant):
    seed(KEY)
    body = (
        b'{"key": "ABCD-1234-EFGH", "domain": "example.com", "timestamp": '
        + constant
        + b', "signature": "ab"}'
    )

    response = client.post("/activate", content=body, headers={"Content-Type": "application/json"})

    assert response.status_code == 200
    assert response.json()["code"] == "INVALID_SIGNATURE"
    assert delay.calls == 1


def test_invalid_domain_and_key(client):
    assert client.post("/activate", json={"key": KEY, "domain": "nope"}).json()["code"] == "INVALID_DOMAIN"
    assert client.post("/activate", json={"key": "x y", "domain": "example.com"}).json()["code"] == "INVALID_KEY"


def test_unknown_key(client):
    body = client.post("/activate", json={"key": "NOPE-0000-0000", "domain": "example.com"}).json()
    assert body["valid"] is False
    assert body["code"] == "INVALID_KEY"


def test_verify_domain_not_found(client):
    response = client.get("/verify-domain/unknown.com")
    assert response.status_code == 200
    assert response.json() == {"success": False, "error": "No license found for this domain"}


def test_verify_domain_accepts_full_url(client, seed):
    seed(KEY, status=LicenseStatus.ACTIVE.value, domain="example.com")
    body = client.get("/verify-domain/www.Example.com/shop").json()
    assert body["success"] is True
    assert body["verified"] is True


def test_check_license_key(client, seed):
    seed(KEY)
    body = client.get(f"/license/check/{KEY}").json()
    assert body["success"] is True
    assert body["license"]["key"] == KEY
    assert body["license"]["status"] == "unused"

    missing = client.get("/license/check/NOPE-0000-0000").json()
    assert missing == {"success": False, "error": "License key not found"}
