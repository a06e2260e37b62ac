# bazaar_orders/domain/status.py
from enum import Enum
from typing import Dict, FrozenSet, Tuple


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    WALLET = "wallet"


class Role(str, Enum):
    VENDOR = "vendor"
    SUPPLIER = "supplier"


# status -> (etykieta kroku, opis); teksty musza zostac bez zmian (kompatybilnosc API)
TRACKING_STEPS: Dict[OrderStatus, Tuple[str, str]] = {
    OrderStatus.PENDING: (
        "Order Placed",
        "Order has been placed and waiting for supplier confirmation",
    ),
    OrderStatus.CONFIRMED: (
        "Order Confirmed",
        "Order confirmed by supplier and being prepared",
    ),
    OrderStatus.PREPARING: (
        "Preparing Order",
        "Items are being packed and prepared for delivery",
    ),
    OrderStatus.OUT_FOR_DELIVERY: (
        "Out for Delivery",
        "Order is on the way to your location",
    ),
    OrderStatus.DELIVERED: (
        "Delivered",
        "Order has been successfully delivered",
    ),
    OrderStatus.CANCELLED: (
        "Cancelled",
        "Order has been cancelled",
    ),
    OrderStatus.REJECTED: (
        "Rejected",
        "Order has been rejected by supplier",
    ),
}

TERMINAL_STATUSES: FrozenSet[OrderStatus] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REJECTED}
)

ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset(
        {OrderStatus.CONFIRMED, OrderStatus.CANCELLED, OrderStatus.REJECTED}
    ),
    OrderStatus.CONFIRMED: frozenset(
        {OrderStatus.PREPARING, OrderStatus.CANCELLED, OrderStatus.REJECTED}
    ),
    OrderStatus.PREPARING: frozenset({OrderStatus.OUT_FOR_DELIVERY}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REJECTED: frozenset(),
}

# kto moze wprowadzic zamowienie w dany status
TRANSITION_ROLES: Dict[OrderStatus, Role] = {
    OrderStatus.CONFIRMED: Role.SUPPLIER,
    OrderStatus.PREPARING: Role.SUPPLIER,
    OrderStatus.OUT_FOR_DELIVERY: Role.SUPPLIER,
    OrderStatus.DELIVERED: Role.SUPPLIER,
    OrderStatus.REJECTED: Role.SUPPLIER,
    OrderStatus.CANCELLED: Role.VENDOR,
}

# happy path, uzywany do sprawdzania spojnosci logu
FORWARD_PATH: Tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
)

PAYMENT_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED}),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PENDING, PaymentStatus.PAID}),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED: frozenset(),
}

ITEMS_EDITABLE_IN: FrozenSet[OrderStatus] = frozenset({OrderStatus.PENDING})
CHARGES_EDITABLE_IN: FrozenSet[OrderStatus] = frozenset(
    {OrderStatus.PENDING, OrderStatus.CONFIRMED}
)


def step_for(status: OrderStatus) -> Tuple[str, str]:
    return TRACKING_STEPS[status]


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def _value(v):
    return v.value if isinstance(v, Enum) else v


def authorize(actor_role, required_role) -> bool:
    """Czysta funkcja allow/deny - bez zadnego stanu requestu."""
    return _value(actor_role) == _value(required_role)
