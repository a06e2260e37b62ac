# bazaar_orders/data/models/order.py
from sqlalchemy import Column, Integer, String, DateTime, Numeric, Text, Index, SmallInteger
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from bazaar_orders.data.database import Base


class OrderModel(Base):
    __tablename__ = "orders"

    # klucz wewnetrzny, na zewnatrz widoczny tylko order_id
    id = Column(Integer, primary_key=True)
    order_id = Column(String(40), nullable=False, unique=True)

    vendor_id = Column(String(64), nullable=False)
    supplier_id = Column(String(64), nullable=False)

    total_amount = Column(Numeric(12, 2), nullable=False)
    delivery_charges = Column(Numeric(12, 2), nullable=False, default=0)
    final_amount = Column(Numeric(12, 2), nullable=False)

    status = Column(String(20), nullable=False, default="pending")
    payment_status = Column(String(20), nullable=False, default="pending")
    payment_method = Column(String(20), nullable=True)

    delivery_address = Column(Text, nullable=False)
    delivery_instructions = Column(Text, nullable=True)
    estimated_delivery_time = Column(DateTime(timezone=True), nullable=True)
    actual_delivery_time = Column(DateTime(timezone=True), nullable=True)

    rating_overall = Column(SmallInteger, nullable=True)
    rating_quality = Column(SmallInteger, nullable=True)
    rating_delivery = Column(SmallInteger, nullable=True)
    rating_service = Column(SmallInteger, nullable=True)
    rating_comment = Column(Text, nullable=True)

    vendor_notes = Column(Text, nullable=True)
    supplier_notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.position",
    )
    tracking_steps = relationship(
        "TrackingStepModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="TrackingStepModel.position",
    )

    __table_args__ = (
        Index("ix_orders_vendor_status", "vendor_id", "status"),
        Index("ix_orders_supplier_status", "supplier_id", "status"),
        Index("ix_orders_created_at", "created_at"),
        Index("ix_orders_status_created_at", "status", "created_at"),
    )
