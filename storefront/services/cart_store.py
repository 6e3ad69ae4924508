# storefront/services/cart_store.py
import copy
import json
import warnings
from dataclasses import replace
from decimal import Decimal
from typing import Dict, List

from pydantic import BaseModel, Field, ValidationError as SchemaError
from redis.exceptions import RedisError

from storefront.domain import pricing
from storefront.domain.cart import CartLineItem, CartSnapshot
from storefront.domain.errors import PersistenceDurabilityWarning, ValidationError
from storefront.domain.schemas import ProductOut
from storefront.services.storage import LocalStorage
from storefront.utils.settings import CART_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CART_FORMAT_VERSION = 1


class _PersistedLine(BaseModel):
    """Shape of one cart line in local storage. Derived totals are never stored."""

    product_id: str = Field(..., min_length=1)
    name: str
    image: str | None = None
    base_price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    selected_options: Dict[str, List[str]] = {}
    variation_prices: Dict[str, Decimal] = {}
    required_options: List[str] = []


class CartStore:
    """
    Session cart kept in memory and mirrored to local storage.

    Every mutation is applied in memory first and then written through to
    storage. A failed write is logged and warned about, the in-memory cart
    stays as it is.
    """

    def __init__(self, storage: LocalStorage, session_id: str, ttl: int | None = CART_TTL_SECONDS):
        self.storage = storage
        self.session_id = session_id
        self.key = f"cart:{session_id}"
        self.ttl = ttl
        self._items: list[CartLineItem] = []

    @classmethod
    def load(cls, storage: LocalStorage, session_id: str, **kwargs) -> "CartStore":
        store = cls(storage, session_id, **kwargs)
        store.rehydrate()
        return store

    # query
    @property
    def items(self) -> tuple[CartLineItem, ...]:
        return tuple(self._items)

    @property
    def subtotal(self) -> Decimal:
        return sum((i.line_total for i in self._items), Decimal("0.00"))

    @property
    def item_count(self) -> int:
        return sum(i.quantity for i in self._items)

    def get_line(self, line_id: str) -> CartLineItem | None:
        for line in self._items:
            if line.id == line_id:
                return line
        return None

    def snapshot(self) -> CartSnapshot:
        items = tuple(copy.deepcopy(line) for line in self._items)
        return CartSnapshot(
            items=items,
            subtotal=sum((i.line_total for i in items), Decimal("0.00")),
            item_count=sum(i.quantity for i in items),
        )

    # commands
    def add_item(self, product: ProductOut, quantity: int, selected_options=None) -> CartLineItem:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1", field="quantity")

        #raises ValidationError on missing/duplicate required choices
        variation_prices = pricing.resolve_variation_prices(product.options, selected_options)
        selection = pricing.normalize_selection(selected_options)
        line_id = pricing.line_key(product.id, selection)

        existing = self.get_line(line_id)
        if existing:
            logger.info(
                f"Line {line_id} already in cart {self.session_id}, quantity "
                f"{existing.quantity} -> {existing.quantity + quantity}"
            )
            line = replace(existing, quantity=existing.quantity + quantity)
            self._replace(line)
        else:
            line = CartLineItem(
                id=line_id,
                product_id=product.id,
                name=product.name,
                image=product.image,
                base_price=pricing.money(product.price),
                quantity=quantity,
                selected_options=selection,
                variation_prices=variation_prices,
                required_options=tuple(o.id for o in product.options if o.required),
            )
            logger.info(f"Adding product {product.id} as line {line_id} to cart {self.session_id}")
            self._items.append(line)

        self._persist()
        return line

    def update_quantity(self, line_id: str, quantity: int) -> CartLineItem | None:
        line = self.get_line(line_id)
        if line is None:
            logger.info(f"Line {line_id} not in cart {self.session_id}, nothing to update")
            return None

        #below 1 is ignored, removing a line is remove_item
        if quantity < 1:
            logger.info(f"Ignoring quantity {quantity} for line {line_id}")
            return line

        line = replace(line, quantity=quantity)
        self._replace(line)
        self._persist()
        return line

    def remove_item(self, line_id: str) -> None:
        before = len(self._items)
        self._items = [i for i in self._items if i.id != line_id]
        if len(self._items) != before:
            logger.info(f"Removed line {line_id} from cart {self.session_id}")
        self._persist()

    def clear(self) -> None:
        self._items = []
        logger.info(f"Cart {self.session_id} cleared")
        self._persist()

    def apply_prices(self, product: ProductOut) -> int:
        """
        Re-price every line of a product with fresh catalog data.
        Variations that no longer exist keep the price captured at add-time.
        Required options are taken from the fresh product too.
        Returns the number of lines that changed.
        """
        fresh = {v.id: pricing.money(v.price) for o in product.options for v in o.variations}
        base_price = pricing.money(product.price)
        required = tuple(o.id for o in product.options if o.required)
        changed = 0

        for line in list(self._items):
            if line.product_id != product.id:
                continue

            prices = dict(line.variation_prices)
            for variation_id in prices:
                if variation_id in fresh:
                    prices[variation_id] = fresh[variation_id]
                else:
                    logger.warning(
                        f"Variation {variation_id} of product {product.id} no longer in catalog, "
                        f"keeping price {prices[variation_id]}"
                    )

            updated = replace(
                line, base_price=base_price, variation_prices=prices, required_options=required
            )
            if updated != line:
                changed += 1
            self._replace(updated)

        if changed:
            logger.info(f"Re-priced {changed} line(s) of product {product.id} in cart {self.session_id}")
            self._persist()
        return changed

    # persistence
    def to_payload(self) -> str:
        return json.dumps(
            {
                "version": CART_FORMAT_VERSION,
                "items": [
                    {
                        "id": i.id,
                        "product_id": i.product_id,
                        "name": i.name,
                        "image": i.image,
                        "base_price": str(i.base_price),
                        "quantity": i.quantity,
                        "selected_options": i.selected_options,
                        "variation_prices": {k: str(v) for k, v in i.variation_prices.items()},
                        "required_options": list(i.required_options),
                    }
                    for i in self._items
                ],
            }
        )

    def rehydrate(self) -> None:
        """Replace in-memory lines with the last persisted cart. Invalid entries are dropped."""
        self._items = []

        try:
            raw = self.storage.get(self.key)
        except RedisError as e:
            logger.warning(f"Could not read cart {self.session_id} from storage: {e}")
            return

        if not raw:
            return

        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning(f"Cart {self.session_id} in storage is not valid JSON, starting empty")
            return

        if not isinstance(data, dict) or data.get("version") != CART_FORMAT_VERSION:
            logger.warning(f"Cart {self.session_id} has an incompatible format, starting empty")
            return

        for entry in data.get("items") or []:
            line = self._line_from_entry(entry)
            if line is None:
                continue
            existing = self.get_line(line.id)
            if existing:
                self._replace(replace(existing, quantity=existing.quantity + line.quantity))
            else:
                self._items.append(line)

        logger.info(f"Rehydrated cart {self.session_id} with {len(self._items)} line(s)")

    def _line_from_entry(self, entry) -> CartLineItem | None:
        try:
            persisted = _PersistedLine.model_validate(entry)
        except SchemaError as e:
            logger.warning(f"Dropping invalid cart entry in {self.session_id}: {e.error_count()} error(s)")
            return None

        selection = pricing.normalize_selection(persisted.selected_options)
        priced = {v for ids in selection.values() for v in ids}
        if not priced.issubset(persisted.variation_prices):
            logger.warning(f"Dropping cart entry for {persisted.product_id} without variation prices")
            return None

        return CartLineItem(
            id=pricing.line_key(persisted.product_id, selection),
            product_id=persisted.product_id,
            name=persisted.name,
            image=persisted.image,
            base_price=pricing.money(persisted.base_price),
            quantity=persisted.quantity,
            selected_options=selection,
            variation_prices={k: pricing.money(v) for k, v in persisted.variation_prices.items()},
            required_options=tuple(persisted.required_options),
        )

    def _replace(self, line: CartLineItem) -> None:
        self._items = [line if i.id == line.id else i for i in self._items]

    def _persist(self) -> None:
        try:
            if self._items:
                self.storage.set(self.key, self.to_payload(), ttl=self.ttl)
            else:
                #an empty cart leaves nothing behind in storage
                self.storage.delete(self.key)
        except (RedisError, OSError) as e:
            message = f"Cart {self.session_id} not persisted, changes kept in memory only: {e}"
            logger.warning(message)
            warnings.warn(message, PersistenceDurabilityWarning, stacklevel=3)
