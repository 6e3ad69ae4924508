# storefront/data/models/order.py
from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models._ids import utcnow


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    payment_method_id = Column(String(36), ForeignKey("payment_methods.id"), nullable=False)

    payment_status = Column(String(20), nullable=False, default="pending")  # pending, paid, failed, refunded
    status = Column(String(20), nullable=False, default="pending", index=True)  # fulfillment
    payment_details = Column(JSON, nullable=False, default=dict)

    delivery_address = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)

    #fee copied from store settings at checkout, never recomputed
    delivery_fee = Column(Numeric(10, 2), nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )
