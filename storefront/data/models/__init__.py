#every model imported here so SQLAlchemy registers it in Base.metadata

from storefront.data.models.category import CategoryModel
from storefront.data.models.product import ProductModel, ProductOptionModel, OptionVariationModel
from storefront.data.models.payment_method import PaymentMethodModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel

__all__ = [
    "CategoryModel",
    "ProductModel",
    "ProductOptionModel",
    "OptionVariationModel",
    "PaymentMethodModel",
    "OrderModel",
    "OrderItemModel",
]
