# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Dict
from decimal import Decimal
from datetime import datetime

from storefront.domain.status import FulfillmentStatus, PaymentMethodType


# =====================================================
# CATALOG
# =====================================================
class VariationOut(BaseModel):
    id: str
    name: str
    price: Decimal = Field(..., ge=0)

    model_config = ConfigDict(from_attributes=True)


class OptionOut(BaseModel):
    id: str
    title: str
    required: bool = False
    variations: List[VariationOut] = []

    model_config = ConfigDict(from_attributes=True)


class ProductOut(BaseModel):
    """Product as served by the catalog service."""

    id: str
    name: str
    price: Decimal = Field(..., ge=0)
    image: str | None = None
    description: str | None = None
    category_id: str | None = None
    popular: bool = False
    vegetarian: bool = False
    is_active: bool = True
    options: List[OptionOut] = []

    model_config = ConfigDict(from_attributes=True)


class VariationIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(Decimal("0.00"), ge=0)


class OptionIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    required: bool = False
    variations: List[VariationIn] = []


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0)
    image: str | None = None
    description: str | None = None
    category_id: str | None = None
    popular: bool = False
    vegetarian: bool = False
    is_active: bool = True
    options: List[OptionIn] = []


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    position: int = 0


class CategoryOut(BaseModel):
    id: str
    name: str
    position: int

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# CART
# =====================================================
class CartItemIn(BaseModel):
    """Product with its chosen variations, as posted by the menu page."""

    product_id: str = Field(..., min_length=1)
    quantity: int = Field(1, description="Quantity, validated by the cart (>= 1)")
    selected_options: Dict[str, List[str]] = {}


class QuantityIn(BaseModel):
    quantity: int


class CartLineOut(BaseModel):
    id: str
    product_id: str
    name: str
    image: str | None = None
    base_price: Decimal
    quantity: int
    selected_options: Dict[str, List[str]]
    line_total: Decimal


class CartOut(BaseModel):
    items: List[CartLineOut]
    subtotal: Decimal
    item_count: int
    below_minimum: bool = False


# =====================================================
# ORDERS
# =====================================================
class CheckoutIn(BaseModel):
    delivery_address: str = ""
    notes: str | None = None
    payment_method_id: str | None = None


class OrderItemOut(BaseModel):
    id: int
    product_id: str
    name: str
    quantity: int
    base_price: Decimal
    unit_price: Decimal
    line_total: Decimal
    selected_options: List[Dict]

    model_config = ConfigDict(from_attributes=True)


class StatusOut(BaseModel):
    value: str
    label: str
    color: str


class OrderOut(BaseModel):
    id: int
    user_id: str
    payment_method_id: str
    payment_status: StatusOut
    fulfillment_status: StatusOut
    delivery_address: str
    notes: str | None = None
    delivery_fee: Decimal
    subtotal: Decimal
    total: Decimal
    payment_details: Dict = {}
    items: List[OrderItemOut] = []
    created_at: datetime
    updated_at: datetime


class CardConfirmIn(BaseModel):
    payment_intent_id: str = Field(..., min_length=1)


class PaymentIntentOut(BaseModel):
    order_id: int
    payment_intent_id: str
    client_secret: str
    amount: Decimal


class PixCodeOut(BaseModel):
    order_id: int
    pix_code: str
    amount: Decimal


class PaymentResultOut(BaseModel):
    order: OrderOut
    completed: bool


class FulfillmentStatusIn(BaseModel):
    status: FulfillmentStatus


class ItemCorrectionIn(BaseModel):
    quantity: int


# =====================================================
# PAYMENT METHODS
# =====================================================
class PaymentMethodConfig(BaseModel):
    instructions: str | None = None
    provider: str | None = None

    model_config = ConfigDict(extra="allow")


class PaymentMethodIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: PaymentMethodType
    is_active: bool = True
    config: PaymentMethodConfig = PaymentMethodConfig()


class PaymentMethodOut(BaseModel):
    id: str
    name: str
    type: PaymentMethodType
    is_active: bool
    config: Dict = {}

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# STORE
# =====================================================
class StoreConfig(BaseModel):
    """Store settings, persisted as a single document in local storage."""

    name: str = "Casa da Esfiha - Culinária Árabe"
    description: str | None = "Os melhores sabores da culinária árabe, com qualidade e tradição"
    logo_url: str = "/lovable-uploads/9aa20d70-4f30-4ab3-a534-a41b217aab7a.png"
    banner_url: str = "https://source.unsplash.com/featured/?arabian,restaurant"
    delivery_fee: Decimal = Decimal("10.99")
    min_order: Decimal = Decimal("25.00")
    cuisine_type: str = "Culinária Árabe"


class StoreConfigPatch(BaseModel):
    name: str | None = None
    description: str | None = None
    logo_url: str | None = None
    banner_url: str | None = None
    delivery_fee: Decimal | None = None
    min_order: Decimal | None = None
    cuisine_type: str | None = None


class CurrentUser(BaseModel):
    """Identity handed over by the auth gateway."""

    id: str
    role: str = "customer"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

