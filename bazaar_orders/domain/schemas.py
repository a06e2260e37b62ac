# bazaar_orders/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from bazaar_orders.domain.status import OrderStatus, PaymentMethod, PaymentStatus


# Reguly biznesowe (ilosc >= 1, niepusta lista, adres) sprawdza silnik domeny,
# zeby API zwracalo 400 a nie 422.

class ItemIn(BaseModel):
    """Pozycja zamowienia - cena i nazwa pobierane z katalogu."""

    material_id: str = Field(..., min_length=1, description="ID materialu z katalogu")
    quantity: int = Field(..., description="Ilosc (musi byc >= 1)")


class OrderCreate(BaseModel):
    """Schema dla tworzenia zamowienia (vendor z kontekstu auth)."""

    supplier_id: str = Field(..., min_length=1)
    items: List[ItemIn]
    delivery_address: str = ""
    delivery_instructions: Optional[str] = None
    delivery_charges: Decimal = Decimal("0.00")
    payment_method: Optional[PaymentMethod] = None
    vendor_notes: Optional[str] = None


class StatusUpdateIn(BaseModel):
    status: OrderStatus
    reason: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=1000)
    estimated_delivery_time: Optional[datetime] = None


class ItemsUpdateIn(BaseModel):
    items: List[ItemIn]


class DeliveryChargesIn(BaseModel):
    delivery_charges: Decimal


class PaymentUpdateIn(BaseModel):
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None


class RatingIn(BaseModel):
    overall: int = Field(..., ge=1, le=5)
    quality: int = Field(..., ge=1, le=5)
    delivery: int = Field(..., ge=1, le=5)
    service: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class OrderItemOut(BaseModel):
    material_id: str
    material_name: str
    quantity: int
    unit_price: Decimal
    unit: str

    model_config = ConfigDict(from_attributes=True)


class TrackingStepOut(BaseModel):
    step: str
    time: datetime
    completed: bool
    description: str

    model_config = ConfigDict(from_attributes=True)


class RatingOut(BaseModel):
    overall: int
    quality: int
    delivery: int
    service: int
    comment: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamowienia (response)."""

    order_id: str
    vendor_id: str
    supplier_id: str
    items: List[OrderItemOut]
    total_amount: Decimal
    delivery_charges: Decimal
    final_amount: Decimal
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    delivery_address: str
    delivery_instructions: Optional[str] = None
    estimated_delivery_time: Optional[datetime] = None
    actual_delivery_time: Optional[datetime] = None
    tracking_steps: List[TrackingStepOut]
    rating: Optional[RatingOut] = None
    vendor_notes: Optional[str] = None
    supplier_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderListOut(BaseModel):
    data: List[OrderOut]
    count: int
