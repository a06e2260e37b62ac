# bazaar_orders/domain/models.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from bazaar_orders.domain.status import OrderStatus, PaymentMethod, PaymentStatus, Role


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Actor(BaseModel):
    """Tozsamosc z zewnetrznego serwisu auth (userId + rola)."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: Role


class MaterialSnapshot(BaseModel):
    """Odpowiedz katalogu materialow dla jednego id."""

    id: str
    name: str
    price: Decimal
    unit: str
    supplier_id: Optional[str] = None


class OrderItem(BaseModel):
    """Snapshot pozycji - niezmienny po utworzeniu zamowienia."""

    model_config = ConfigDict(frozen=True)

    material_id: str
    material_name: str
    quantity: int
    unit_price: Decimal
    unit: str

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class TrackingStep(BaseModel):
    step: str
    time: datetime
    completed: bool = False
    description: str = ""


class Rating(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall: int = Field(..., ge=1, le=5)
    quality: int = Field(..., ge=1, le=5)
    delivery: int = Field(..., ge=1, le=5)
    service: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class Order(BaseModel):
    order_id: str
    vendor_id: str
    supplier_id: str

    items: List[OrderItem]
    total_amount: Decimal = Decimal("0.00")
    delivery_charges: Decimal = Decimal("0.00")
    final_amount: Decimal = Decimal("0.00")

    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: Optional[PaymentMethod] = None

    delivery_address: str
    delivery_instructions: Optional[str] = None
    estimated_delivery_time: Optional[datetime] = None
    actual_delivery_time: Optional[datetime] = None

    tracking_steps: List[TrackingStep] = Field(default_factory=list)
    rating: Optional[Rating] = None

    vendor_notes: Optional[str] = None
    supplier_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # 0 = rekord jeszcze nie zapisany
    version: int = 0

    def copy_for_update(self) -> "Order":
        return self.model_copy(deep=True)
