from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Boolean, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from bazaar_orders.data.database import Base


class TrackingStepModel(Base):
    __tablename__ = "order_tracking_steps"

    id = Column(Integer, primary_key=True)
    order_pk = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)

    step = Column(String(40), nullable=False)
    time = Column(DateTime(timezone=True), nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    description = Column(Text, nullable=False, default="")

    order = relationship("OrderModel", back_populates="tracking_steps")

    # jeden wpis na etykiete kroku
    __table_args__ = (UniqueConstraint("order_pk", "step", name="u_order_step"),)
