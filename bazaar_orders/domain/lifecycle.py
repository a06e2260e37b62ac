# bazaar_orders/domain/lifecycle.py
"""
Silnik cyklu zycia zamowienia.

Czyste funkcje: dostaja rekord, zwracaja zmieniona KOPIE. Nie zapisuja niczego -
zapis robi OrderService przez OrderStore. Przy bledzie wejsciowy rekord
zostaje nietkniety (brak wpisu w logu, brak zmiany updated_at).
"""
import secrets
import string
import time
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, List, Optional

from bazaar_orders.domain.errors import AuthorizationError, TransitionError, ValidationError
from bazaar_orders.domain.models import Order, OrderItem, Rating, TrackingStep, utcnow
from bazaar_orders.domain.status import (
    CHARGES_EDITABLE_IN,
    ITEMS_EDITABLE_IN,
    PAYMENT_TRANSITIONS,
    TRANSITION_ROLES,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    Role,
    authorize,
    can_transition,
    is_terminal,
    step_for,
)

MONEY = Decimal("0.01")
# zakres kolumny Numeric(12, 2)
MAX_AMOUNT = Decimal("9999999999.99")
MAX_ITEM_QUANTITY = 100000
_ID_ALPHABET = string.digits + string.ascii_uppercase


def to_money(value) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid amount: {value!r}")

    if not amount.is_finite() or abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"Amount out of range: {value!r}")
    return amount.quantize(MONEY, rounding=ROUND_HALF_UP)


def generate_order_id() -> str:
    # ORD + epoch millis + 5 znakow base36
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(5))
    return f"ORD{int(time.time() * 1000)}{suffix}"


def _require_role(actor_role, required_role, action: str) -> None:
    if not authorize(actor_role, required_role):
        raise AuthorizationError(
            f"Access denied. {Role(required_role).value.capitalize()} role required to {action}."
        )


def validate_items(items: Iterable[OrderItem]) -> List[OrderItem]:
    items = list(items)
    if not items:
        raise ValidationError("Order must contain at least one item")

    for item in items:
        if item.quantity < 1:
            raise ValidationError(
                f"Quantity must be at least 1 (material {item.material_id})"
            )
        if item.quantity > MAX_ITEM_QUANTITY:
            raise ValidationError(
                f"Quantity cannot exceed {MAX_ITEM_QUANTITY} (material {item.material_id})"
            )
        if item.unit_price < 0:
            raise ValidationError(
                f"Price cannot be negative (material {item.material_id})"
            )
    return items


def recompute_derived_fields(order: Order) -> Order:
    """total = suma(quantity * unit_price), final = total + delivery_charges."""
    total = sum((i.line_total for i in order.items), Decimal("0.00"))
    order.total_amount = to_money(total)
    order.delivery_charges = to_money(order.delivery_charges)
    order.final_amount = to_money(order.total_amount + order.delivery_charges)
    return order


def upsert_tracking_step(order: Order, status: OrderStatus, at: datetime) -> TrackingStep:
    """Jeden wpis na etykiete: dopisz nowy albo odswiez istniejacy."""
    label, description = step_for(status)

    for step in order.tracking_steps:
        if step.step == label:
            step.completed = True
            step.time = at
            return step

    step = TrackingStep(step=label, time=at, completed=True, description=description)
    order.tracking_steps.append(step)
    return step


def create_order(
    vendor_id: str,
    supplier_id: str,
    items: Iterable[OrderItem],
    delivery_address: Optional[str],
    delivery_instructions: Optional[str] = None,
    *,
    order_id: Optional[str] = None,
    delivery_charges=Decimal("0.00"),
    payment_method: Optional[PaymentMethod] = None,
    vendor_notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Order:
    """
    Buduje nowe zamowienie w stanie pending.
    Nie sprawdza kolizji orderId - to robi serwis razem z magazynem.
    """
    items = validate_items(items)

    if not delivery_address or not delivery_address.strip():
        raise ValidationError("Delivery address is required")

    if not vendor_id or not supplier_id:
        raise ValidationError("Vendor and supplier are required")

    if vendor_id == supplier_id:
        raise ValidationError("Vendor cannot place an order with themselves")

    charges = to_money(delivery_charges)
    if charges < 0:
        raise ValidationError("Delivery charges cannot be negative")

    now = now or utcnow()
    order = Order(
        order_id=order_id or generate_order_id(),
        vendor_id=vendor_id,
        supplier_id=supplier_id,
        items=items,
        delivery_charges=charges,
        status=OrderStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
        payment_method=payment_method,
        delivery_address=delivery_address.strip(),
        delivery_instructions=delivery_instructions,
        vendor_notes=vendor_notes,
        created_at=now,
        updated_at=now,
    )

    upsert_tracking_step(order, OrderStatus.PENDING, now)
    return recompute_derived_fields(order)


def transition(
    order: Order,
    new_status: OrderStatus,
    actor_role,
    *,
    reason: Optional[str] = None,
    notes: Optional[str] = None,
    estimated_delivery_time: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Order:
    new_status = OrderStatus(new_status)
    current = order.status

    if is_terminal(current):
        raise TransitionError(
            f"Order {order.order_id} is already {current.value} and cannot change status"
        )

    if not can_transition(current, new_status):
        raise TransitionError(
            f"Invalid status transition: {current.value} -> {new_status.value}"
        )

    _require_role(actor_role, TRANSITION_ROLES[new_status], f"set status {new_status.value}")

    now = now or utcnow()
    updated = order.copy_for_update()
    updated.status = new_status
    upsert_tracking_step(updated, new_status, now)

    if new_status in (OrderStatus.CANCELLED, OrderStatus.REJECTED) and reason:
        updated.cancellation_reason = reason

    if notes and authorize(actor_role, Role.SUPPLIER):
        updated.supplier_notes = notes

    if estimated_delivery_time is not None and new_status in (
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.OUT_FOR_DELIVERY,
    ):
        updated.estimated_delivery_time = estimated_delivery_time

    if new_status == OrderStatus.DELIVERED:
        updated.actual_delivery_time = now

    updated.updated_at = now
    return updated


def replace_items(
    order: Order,
    items: Iterable[OrderItem],
    actor_role,
    *,
    now: Optional[datetime] = None,
) -> Order:
    """Zmiana pozycji tylko przez vendora i tylko przed potwierdzeniem."""
    _require_role(actor_role, Role.VENDOR, "change order items")

    if order.status not in ITEMS_EDITABLE_IN:
        raise TransitionError(
            f"Items cannot be changed once the order is {order.status.value}"
        )

    items = validate_items(items)

    updated = order.copy_for_update()
    updated.items = items
    recompute_derived_fields(updated)
    updated.updated_at = now or utcnow()
    return updated


def set_delivery_charges(
    order: Order,
    delivery_charges,
    actor_role,
    *,
    now: Optional[datetime] = None,
) -> Order:
    _require_role(actor_role, Role.SUPPLIER, "set delivery charges")

    if order.status not in CHARGES_EDITABLE_IN:
        raise TransitionError(
            f"Delivery charges cannot be changed once the order is {order.status.value}"
        )

    charges = to_money(delivery_charges)
    if charges < 0:
        raise ValidationError("Delivery charges cannot be negative")

    updated = order.copy_for_update()
    updated.delivery_charges = charges
    recompute_derived_fields(updated)
    updated.updated_at = now or utcnow()
    return updated


def rate(
    order: Order,
    rating: Rating,
    actor_role,
    *,
    now: Optional[datetime] = None,
) -> Order:
    _require_role(actor_role, Role.VENDOR, "rate an order")

    if order.status != OrderStatus.DELIVERED:
        raise TransitionError(
            f"Only delivered orders can be rated (order is {order.status.value})"
        )

    if order.rating is not None:
        raise TransitionError(f"Order {order.order_id} has already been rated")

    updated = order.copy_for_update()
    updated.rating = rating
    updated.updated_at = now or utcnow()
    return updated


def update_payment_status(
    order: Order,
    payment_status: PaymentStatus,
    actor_role,
    *,
    payment_method: Optional[PaymentMethod] = None,
    now: Optional[datetime] = None,
) -> Order:
    """Platnosc ma wlasny cykl zycia, niezalezny od statusu zamowienia."""
    payment_status = PaymentStatus(payment_status)
    _require_role(actor_role, Role.SUPPLIER, "update payment status")

    if payment_status not in PAYMENT_TRANSITIONS[order.payment_status]:
        raise TransitionError(
            f"Invalid payment transition: {order.payment_status.value} -> {payment_status.value}"
        )

    updated = order.copy_for_update()
    updated.payment_status = payment_status
    if payment_method is not None:
        updated.payment_method = PaymentMethod(payment_method)
    updated.updated_at = now or utcnow()
    return updated
