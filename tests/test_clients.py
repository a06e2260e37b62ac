from decimal import Decimal

import pytest
import requests

from bazaar_orders.domain.errors import CatalogUnavailable, StorageUnavailable, ValidationError
from bazaar_orders.domain.status import Role
from bazaar_orders.services import identity_client, material_client
from bazaar_orders.services.identity_client import IdentityClient
from bazaar_orders.services.material_client import MaterialClient
from bazaar_orders.services.notification_service import NotificationService, send_order_notification_task


class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self._payload = payload or {}

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def test_material_client_returns_snapshot(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        return FakeResponse(200, {"id": "MAT001", "name": "Premium Mustard Oil", "price": 180, "unit": "liter", "supplier_id": "SUP001"})

    monkeypatch.setattr(material_client.requests, "get", fake_get)

    material = MaterialClient(base_url="http://catalog/").fetch_material("MAT001")

    assert calls == ["http://catalog/materials/MAT001"]
    assert material.name == "Premium Mustard Oil"
    assert material.price == Decimal("180")
    assert material.unit == "liter"
    assert material.supplier_id == "SUP001"


def test_material_client_unknown_material(monkeypatch):
    monkeypatch.setattr(material_client.requests, "get", lambda url, timeout: FakeResponse(404))

    with pytest.raises(ValidationError):
        MaterialClient(base_url="http://catalog").fetch_material("NOPE")


def test_material_client_unreachable_after_retries(monkeypatch):
    attempts = []

    def fake_get(url, timeout):
        attempts.append(url)
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(material_client.requests, "get", fake_get)
    client = MaterialClient(base_url="http://catalog")
    monkeypatch.setattr(client._get.retry, "sleep", lambda seconds: None)

    with pytest.raises(CatalogUnavailable):
        client.fetch_material("MAT001")

    assert len(attempts) == 3


def test_identity_client_resolves_actor(monkeypatch):
    seen = {}

    def fake_get(url, headers, timeout):
        seen["url"] = url
        seen["auth"] = headers["Authorization"]
        return FakeResponse(200, {"user": {"id": "VEN001", "role": "vendor"}})

    monkeypatch.setattr(identity_client.requests, "get", fake_get)

    actor = IdentityClient(base_url="http://auth").resolve("abc")

    assert seen == {"url": "http://auth/auth/me", "auth": "Bearer abc"}
    assert actor.user_id == "VEN001"
    assert actor.role == Role.VENDOR


def test_identity_client_invalid_token(monkeypatch):
    monkeypatch.setattr(identity_client.requests, "get", lambda url, headers, timeout: FakeResponse(401))

    assert IdentityClient(base_url="http://auth").resolve("expired") is None


@pytest.mark.parametrize("status_code", [400, 403, 404])
def test_identity_client_rejected_token(monkeypatch, status_code):
    monkeypatch.setattr(identity_client.requests, "get", lambda url, headers, timeout: FakeResponse(status_code))

    assert IdentityClient(base_url="http://auth").resolve("abc") is None


def test_identity_client_rate_limited(monkeypatch):
    monkeypatch.setattr(identity_client.requests, "get", lambda url, headers, timeout: FakeResponse(429))

    with pytest.raises(StorageUnavailable):
        IdentityClient(base_url="http://auth").resolve("abc")


@pytest.mark.parametrize(
    "payload",
    [
        {"user": {"id": "VEN001", "role": "admin"}},
        {"user": {"role": "vendor"}},
        {"user": "VEN001"},
        {},
    ],
)
def test_identity_client_malformed_reply(monkeypatch, payload):
    monkeypatch.setattr(identity_client.requests, "get", lambda url, headers, timeout: FakeResponse(200, payload))

    assert IdentityClient(base_url="http://auth").resolve("abc") is None


def test_identity_client_unreachable(monkeypatch):
    def fake_get(url, headers, timeout):
        raise requests.Timeout("slow")

    monkeypatch.setattr(identity_client.requests, "get", fake_get)
    client = IdentityClient(base_url="http://auth")
    monkeypatch.setattr(client._get_me.retry, "sleep", lambda seconds: None)

    with pytest.raises(StorageUnavailable):
        client.resolve("abc")


def test_notification_failure_is_swallowed(monkeypatch):
    def broken_delay(*args):
        raise ConnectionError("broker down")

    monkeypatch.setattr(send_order_notification_task, "delay", broken_delay)

    NotificationService().notify("VEN001", "ORD1", "confirmed", "Order confirmed")


def test_notification_task_body():
    result = send_order_notification_task.run("VEN001", "ORD1", "confirmed", "Order confirmed")

    assert result == {"recipient_id": "VEN001", "order_id": "ORD1", "event": "confirmed", "status": "sent"}


def test_dev_material_catalog():
    from fastapi.testclient import TestClient

    from bazaar_orders.material_service.main import app

    with TestClient(app) as c:
        assert c.get("/materials/MAT001").json()["unit"] == "liter"
        assert c.get("/materials/NOPE").status_code == 404
