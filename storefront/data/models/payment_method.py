# storefront/data/models/payment_method.py
from sqlalchemy import JSON, Boolean, Column, DateTime, String

from storefront.data.database import Base
from storefront.data.models._ids import new_id, utcnow


class PaymentMethodModel(Base):
    __tablename__ = "payment_methods"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False)  # pix, credit_card, cash
    is_active = Column(Boolean, nullable=False, default=True)
    config = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
