from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from bazaar_orders.api import deps
from bazaar_orders.data.backend import DataBackend
from bazaar_orders.domain.errors import ValidationError
from bazaar_orders.domain.models import Actor, MaterialSnapshot, OrderItem
from bazaar_orders.domain.status import Role
from bazaar_orders.main import create_app
from bazaar_orders.repos.order_store import InMemoryOrderStore
from bazaar_orders.services.order_service import OrderService

VENDOR = Actor(user_id="VEN001", role=Role.VENDOR)
OTHER_VENDOR = Actor(user_id="VEN002", role=Role.VENDOR)
SUPPLIER = Actor(user_id="SUP001", role=Role.SUPPLIER)
OTHER_SUPPLIER = Actor(user_id="SUP002", role=Role.SUPPLIER)

TOKENS = {
    "vendor-token": VENDOR,
    "other-vendor-token": OTHER_VENDOR,
    "supplier-token": SUPPLIER,
    "other-supplier-token": OTHER_SUPPLIER,
}


class FakeCatalog:
    def __init__(self):
        self.materials = {
            "MAT001": MaterialSnapshot(id="MAT001", name="Premium Mustard Oil", price=Decimal("180"), unit="liter", supplier_id="SUP001"),
            "MAT002": MaterialSnapshot(id="MAT002", name="Garam Masala", price=Decimal("320"), unit="kg", supplier_id="SUP001"),
            "MAT003": MaterialSnapshot(id="MAT003", name="Basmati Rice", price=Decimal("95"), unit="kg", supplier_id="SUP002"),
        }
        self.calls = []

    def fetch_material(self, material_id):
        self.calls.append(material_id)
        material = self.materials.get(material_id)
        if material is None:
            raise ValidationError(f"Material {material_id} not found")
        return material


class FakeNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, recipient_id, order_id, event, message):
        self.sent.append((recipient_id, order_id, event, message))


class FakeIdentity:
    def resolve(self, token):
        return TOKENS.get(token)


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def sample_items():
    return [
        OrderItem(material_id="MAT001", material_name="Premium Mustard Oil", quantity=2, unit_price=Decimal("180"), unit="liter"),
        OrderItem(material_id="MAT002", material_name="Garam Masala", quantity=1, unit_price=Decimal("320"), unit="kg"),
    ]


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def store():
    return InMemoryOrderStore()


@pytest.fixture
def service(store, catalog, notifier):
    return OrderService(store=store, catalog=catalog, notifier=notifier)


@pytest.fixture
def sqlite_backend():
    backend = DataBackend.sql(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    backend.init_schema()
    yield backend
    backend.engine.dispose()


@pytest.fixture(params=["memory", "sqlite"])
def any_backend(request):
    if request.param == "memory":
        yield DataBackend.memory()
    else:
        yield request.getfixturevalue("sqlite_backend")


@pytest.fixture
def client(any_backend, catalog, notifier):
    app = create_app(any_backend)
    app.dependency_overrides[deps.get_catalog] = lambda: catalog
    app.dependency_overrides[deps.get_notifier] = lambda: notifier
    app.dependency_overrides[deps.get_identity_client] = lambda: FakeIdentity()
    app.dependency_overrides[deps.get_lock_service] = lambda: None

    with TestClient(app) as c:
        yield c
