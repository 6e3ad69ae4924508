# storefront/domain/pricing.py
"""
Variation price resolution and line totals.

Everything here is pure: prices are resolved up front from catalog data
already in memory, then totals are computed from the resolved map. Nothing
in this module talks to the catalog service.
"""
import hashlib
import json
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Sequence

from storefront.domain.errors import ValidationError
from storefront.domain.schemas import OptionOut

TWOPLACES = Decimal("0.01")

SelectedOptions = Mapping[str, Sequence[str]]


def money(value) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")
    return Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def normalize_selection(selected: SelectedOptions | None) -> dict[str, list[str]]:
    """
    Canonical form of a selection: option ids sorted, variation ids
    de-duplicated and sorted, options without any selection dropped.
    """
    if not selected:
        return {}
    normalized = {}
    for option_id in sorted(selected):
        variation_ids = sorted(set(selected[option_id] or []))
        if variation_ids:
            normalized[str(option_id)] = variation_ids
    return normalized


def line_key(product_id: str, selected: SelectedOptions | None) -> str:
    """Stable cart line id for a product and its selection."""
    canonical = json.dumps(
        [str(product_id), normalize_selection(selected)],
        sort_keys=True,
        separators=(",", ":"),
    )
    digest = hashlib.sha1(canonical.encode("utf-8")).hexdigest()[:12]
    return f"{product_id}-{digest}"


def resolve_variation_prices(
    options: Iterable[OptionOut],
    selected: SelectedOptions | None,
) -> dict[str, Decimal]:
    """
    Validate a selection against a product's options and return the price of
    every chosen variation, keyed by variation id.

    Required options are single-select: exactly one variation must be chosen.
    Optional options accept zero or more variations.
    """
    selection = normalize_selection(selected)
    by_id = {option.id: option for option in options}

    unknown = [option_id for option_id in selection if option_id not in by_id]
    if unknown:
        raise ValidationError(
            f"Unknown option(s): {', '.join(unknown)}", field="selected_options"
        )

    prices: dict[str, Decimal] = {}
    for option in by_id.values():
        chosen = selection.get(option.id, [])

        if option.required and not chosen:
            raise ValidationError(
                f"Select an option for '{option.title}'", field="selected_options"
            )
        if option.required and len(chosen) > 1:
            raise ValidationError(
                f"Only one choice allowed for '{option.title}'", field="selected_options"
            )

        variation_prices = {v.id: money(v.price) for v in option.variations}
        for variation_id in chosen:
            if variation_id not in variation_prices:
                raise ValidationError(
                    f"Unknown choice '{variation_id}' for '{option.title}'",
                    field="selected_options",
                )
            prices[variation_id] = variation_prices[variation_id]

    return prices


def variations_total(options: Iterable[OptionOut], selected: SelectedOptions | None) -> Decimal:
    return sum(resolve_variation_prices(options, selected).values(), Decimal("0.00"))


def unit_price(
    base_price: Decimal,
    variation_prices: Mapping[str, Decimal],
    selected: SelectedOptions | None,
) -> Decimal:
    total = money(base_price)
    for variation_ids in normalize_selection(selected).values():
        for variation_id in variation_ids:
            total += money(variation_prices.get(variation_id, Decimal("0.00")))
    return total


def line_total(
    base_price: Decimal,
    variation_prices: Mapping[str, Decimal],
    selected: SelectedOptions | None,
    quantity: int,
) -> Decimal:
    #(base + sum(selected variations)) * quantity
    return money(unit_price(base_price, variation_prices, selected) * quantity)
