from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from bazaar_orders.domain import lifecycle
from bazaar_orders.domain.errors import DuplicateOrderId, StorageConflict, StorageUnavailable
from bazaar_orders.domain.models import Rating
from bazaar_orders.domain.status import OrderStatus, Role
from bazaar_orders.repos.order_repo import SqlOrderStore

from .conftest import sample_items

T0 = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


def make_order(order_id, vendor_id="VEN001", supplier_id="SUP001", minutes=0):
    return lifecycle.create_order(
        vendor_id=vendor_id,
        supplier_id=supplier_id,
        items=sample_items(),
        delivery_address="12 MG Road, Pune",
        order_id=order_id,
        now=T0 + timedelta(minutes=minutes),
    )


@pytest.fixture
def order_store(any_backend):
    with any_backend.store() as store:
        yield store


def test_insert_and_find(order_store):
    saved = order_store.save(make_order("ORD1"))

    assert saved.version == 1
    found = order_store.find_by_id("ORD1")
    assert found is not None
    assert found.order_id == "ORD1"
    assert found.total_amount == Decimal("680")
    assert found.final_amount == Decimal("680")
    assert [i.material_name for i in found.items] == ["Premium Mustard Oil", "Garam Masala"]
    assert [s.step for s in found.tracking_steps] == ["Order Placed"]
    assert found.created_at == T0
    assert order_store.exists("ORD1")
    assert not order_store.exists("ORD2")
    assert order_store.find_by_id("ORD2") is None


def test_duplicate_order_id_is_rejected(order_store):
    order_store.save(make_order("ORD1"))

    with pytest.raises(DuplicateOrderId):
        order_store.save(make_order("ORD1", vendor_id="VEN002"))

    assert order_store.find_by_id("ORD1").vendor_id == "VEN001"


def test_update_bumps_version_and_keeps_tracking_log(order_store):
    saved = order_store.save(make_order("ORD1"))
    confirmed = lifecycle.transition(saved, OrderStatus.CONFIRMED, Role.SUPPLIER, now=T0 + timedelta(hours=1))

    stored = order_store.save(confirmed)

    assert stored.version == 2
    found = order_store.find_by_id("ORD1")
    assert found.status == OrderStatus.CONFIRMED
    assert [s.step for s in found.tracking_steps] == ["Order Placed", "Order Confirmed"]
    assert found.tracking_steps[0].time == T0
    assert found.updated_at == T0 + timedelta(hours=1)


def test_stale_version_is_a_conflict(order_store):
    saved = order_store.save(make_order("ORD1"))

    first = lifecycle.transition(saved, OrderStatus.CONFIRMED, Role.SUPPLIER)
    second = lifecycle.transition(saved, OrderStatus.CANCELLED, Role.VENDOR)

    order_store.save(first)
    with pytest.raises(StorageConflict):
        order_store.save(second)

    found = order_store.find_by_id("ORD1")
    assert found.status == OrderStatus.CONFIRMED
    assert [s.step for s in found.tracking_steps] == ["Order Placed", "Order Confirmed"]


def test_update_of_unknown_order_is_a_conflict(order_store):
    ghost = make_order("ORD404").model_copy(update={"version": 3})

    with pytest.raises(StorageConflict):
        order_store.save(ghost)


def test_items_rating_and_payment_round_trip(order_store):
    saved = order_store.save(make_order("ORD1"))
    for status in (OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED):
        role = Role.SUPPLIER
        saved = order_store.save(lifecycle.transition(saved, status, role))
    saved = order_store.save(lifecycle.update_payment_status(saved, "paid", Role.SUPPLIER, payment_method="cash"))
    rating = Rating(overall=5, quality=4, delivery=4, service=5, comment="Good")
    saved = order_store.save(lifecycle.rate(saved, rating, Role.VENDOR))

    found = order_store.find_by_id("ORD1")
    assert found.rating == rating
    assert found.payment_status.value == "paid"
    assert found.payment_method.value == "cash"
    assert found.actual_delivery_time is not None
    assert len(found.tracking_steps) == 5
    assert found.version == 7


def test_queries_by_vendor_supplier_and_status(order_store):
    order_store.save(make_order("ORD1", vendor_id="VEN001", supplier_id="SUP001", minutes=1))
    order_store.save(make_order("ORD2", vendor_id="VEN001", supplier_id="SUP002", minutes=2))
    third = order_store.save(make_order("ORD3", vendor_id="VEN002", supplier_id="SUP001", minutes=3))
    order_store.save(lifecycle.transition(third, OrderStatus.CONFIRMED, Role.SUPPLIER))

    assert [o.order_id for o in order_store.find_by_vendor("VEN001")] == ["ORD2", "ORD1"]
    assert [o.order_id for o in order_store.find_by_supplier("SUP001")] == ["ORD3", "ORD1"]
    assert [o.order_id for o in order_store.find_by_supplier("SUP001", OrderStatus.PENDING)] == ["ORD1"]
    assert [o.order_id for o in order_store.find_by_supplier("SUP001", "confirmed")] == ["ORD3"]
    assert order_store.find_by_vendor("VEN404") == []


def test_list_recent_is_newest_first_with_limit(order_store):
    for n in range(5):
        order_store.save(make_order(f"ORD{n}", minutes=n))

    assert [o.order_id for o in order_store.list_recent(3)] == ["ORD4", "ORD3", "ORD2"]
    assert order_store.list_recent(10, OrderStatus.DELIVERED) == []


def test_returned_records_are_detached(order_store):
    saved = order_store.save(make_order("ORD1"))
    saved.tracking_steps.clear()

    assert len(order_store.find_by_id("ORD1").tracking_steps) == 1


def test_save_does_not_recompute_totals(order_store):
    # zapis jest czysty - sumy liczy silnik, nie magazyn
    order = make_order("ORD1")
    order.final_amount = Decimal("1.00")

    order_store.save(order)

    assert order_store.find_by_id("ORD1").final_amount == Decimal("1.00")


class _BrokenSession:
    def execute(self, *args, **kwargs):
        from sqlalchemy.exc import OperationalError

        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    def rollback(self):
        pass


def test_sql_store_maps_connection_errors():
    store = SqlOrderStore(_BrokenSession())

    with pytest.raises(StorageUnavailable):
        store.find_by_id("ORD1")
    with pytest.raises(StorageUnavailable):
        store.find_by_vendor("VEN001")
