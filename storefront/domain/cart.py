# storefront/domain/cart.py
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Tuple

from storefront.domain import pricing


@dataclass(frozen=True)
class CartLineItem:
    """
    One product + selection in the cart.

    name/image/base_price are copied from the catalog when the line is added.
    variation_prices holds the resolved price of every selected variation so
    the total can be recomputed without another catalog lookup.
    """

    id: str
    product_id: str
    name: str
    base_price: Decimal
    quantity: int
    selected_options: Dict[str, List[str]] = field(default_factory=dict)
    variation_prices: Dict[str, Decimal] = field(default_factory=dict)
    required_options: Tuple[str, ...] = ()
    image: str | None = None

    @property
    def unit_price(self) -> Decimal:
        return pricing.unit_price(self.base_price, self.variation_prices, self.selected_options)

    @property
    def line_total(self) -> Decimal:
        return pricing.line_total(
            self.base_price, self.variation_prices, self.selected_options, self.quantity
        )

    def missing_required_options(self) -> List[str]:
        return [opt for opt in self.required_options if not self.selected_options.get(opt)]


@dataclass(frozen=True)
class CartSnapshot:
    items: Tuple[CartLineItem, ...]
    subtotal: Decimal
    item_count: int

    @property
    def is_empty(self) -> bool:
        return not self.items
