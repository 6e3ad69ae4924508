# storefront/data/models/product.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models._ids import new_id, utcnow


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    image = Column(String, nullable=True)
    popular = Column(Boolean, nullable=False, default=False)
    vegetarian = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    category = relationship("CategoryModel", back_populates="products")
    options = relationship(
        "ProductOptionModel",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductOptionModel.position",
    )


class ProductOptionModel(Base):
    __tablename__ = "product_options"

    id = Column(String(36), primary_key=True, default=new_id)
    product_id = Column(String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    title = Column(String(100), nullable=False)
    required = Column(Boolean, nullable=False, default=False)
    position = Column(Integer, nullable=False, default=0)

    product = relationship("ProductModel", back_populates="options")
    variations = relationship(
        "OptionVariationModel",
        back_populates="option",
        cascade="all, delete-orphan",
        order_by="OptionVariationModel.position",
    )


class OptionVariationModel(Base):
    __tablename__ = "option_variations"

    id = Column(String(36), primary_key=True, default=new_id)
    option_id = Column(String(36), ForeignKey("product_options.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    position = Column(Integer, nullable=False, default=0)

    option = relationship("ProductOptionModel", back_populates="variations")
