# storefront/data/models/order_item.py
from sqlalchemy import JSON, Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(36), nullable=False)
    name = Column(String(200), nullable=False)

    quantity = Column(Integer, nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    line_total = Column(Numeric(10, 2), nullable=False)

    #[{"optionId": ..., "variationIds": [...], "variationPrices": {...}}]
    selected_options = Column(JSON, nullable=False, default=list)

    order = relationship("OrderModel", back_populates="items")
