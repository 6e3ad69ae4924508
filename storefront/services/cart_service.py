# storefront/services/cart_service.py
from typing import Dict, Any

from storefront.domain.errors import NotFoundError, ValidationError
from storefront.services.cart_store import CartStore
from storefront.services.product_client import ProductClient
from storefront.services.storage import LocalStorage
from storefront.services.store_config import StoreConfigHolder
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Use cases of the session cart.
    commands (add, update, remove, clear, refresh_prices) change the cart
    query (get_cart) only reads it

    Catalog lookups happen here, before the store is touched, so the store
    itself only ever computes totals from prices it already holds.
    """

    def __init__(
        self,
        storage: LocalStorage,
        product_client: ProductClient,
        store_config: StoreConfigHolder,
    ):
        self.storage = storage
        self.product_client = product_client
        self.store_config = store_config

    def open(self, session_id: str) -> CartStore:
        if not session_id:
            raise ValidationError("Missing cart session", field="session_id")
        return CartStore.load(self.storage, session_id)

    # query
    def get_cart(self, session_id: str) -> Dict[str, Any]:
        return self.to_view(self.open(session_id))

    def to_view(self, store: CartStore) -> Dict[str, Any]:
        subtotal = store.subtotal
        min_order = self.store_config.get().min_order

        return {
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "name": i.name,
                    "image": i.image,
                    "base_price": i.base_price,
                    "quantity": i.quantity,
                    "selected_options": i.selected_options,
                    "line_total": i.line_total,
                }
                for i in store.items
            ],
            "subtotal": subtotal,
            "item_count": store.item_count,
            "below_minimum": bool(store.items) and subtotal < min_order,
        }

    # commands
    def add_item(
        self,
        session_id: str,
        product_id: str,
        quantity: int,
        selected_options: Dict[str, list] | None = None,
    ) -> Dict[str, Any]:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1", field="quantity")

        store = self.open(session_id)

        logger.info(f"Fetching product {product_id} from catalog")
        product = self.product_client.fetch_product(product_id)
        if not product.is_active:
            raise ValidationError(f"Product {product.name} is not available", field="product_id")

        store.add_item(product, quantity, selected_options or {})
        return self.to_view(store)

    def update_quantity(self, session_id: str, line_id: str, quantity: int) -> Dict[str, Any]:
        store = self.open(session_id)
        store.update_quantity(line_id, quantity)
        return self.to_view(store)

    def remove_item(self, session_id: str, line_id: str) -> Dict[str, Any]:
        store = self.open(session_id)
        store.remove_item(line_id)
        return self.to_view(store)

    def clear(self, session_id: str) -> Dict[str, Any]:
        store = self.open(session_id)
        store.clear()
        return self.to_view(store)

    def refresh_prices(self, session_id: str) -> Dict[str, Any]:
        """Pull current prices for every product in the cart."""
        store = self.open(session_id)

        for product_id in sorted({i.product_id for i in store.items}):
            try:
                product = self.product_client.fetch_product(product_id)
            except NotFoundError:
                logger.warning(f"Product {product_id} disappeared from catalog, keeping cart prices")
                continue
            store.apply_prices(product)

        return self.to_view(store)
