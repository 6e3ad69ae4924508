import json
from decimal import Decimal

import pytest
import redis

from storefront.domain.errors import PersistenceDurabilityWarning, ValidationError
from storefront.services.cart_store import CartStore
from storefront.services.storage import LocalStorage


def assert_totals_consistent(store):
    assert store.subtotal == sum((i.line_total for i in store.items), Decimal("0.00"))
    assert store.item_count == sum(i.quantity for i in store.items)
    for line in store.items:
        extras = sum(
            (line.variation_prices[v] for ids in line.selected_options.values() for v in ids),
            Decimal("0.00"),
        )
        assert line.line_total == (line.base_price + extras) * line.quantity


@pytest.fixture
def store(storage):
    return CartStore.load(storage, "session-1")


def test_line_total_for_required_variation(store, esfiha):
    line = store.add_item(esfiha, 2, {"size": ["large"]})

    assert line.line_total == Decimal("18.98")
    assert store.subtotal == Decimal("18.98")
    assert store.item_count == 2


def test_same_product_and_selection_merges(store, esfiha):
    first = store.add_item(esfiha, 1, {"size": ["large"], "extras": ["cheese", "olives"]})
    second = store.add_item(esfiha, 2, {"extras": ["olives", "cheese"], "size": ["large"]})

    assert first.id == second.id
    assert len(store.items) == 1
    assert store.items[0].quantity == 3
    assert store.items[0].line_total == Decimal("38.22")
    assert_totals_consistent(store)


def test_different_selection_appends_new_line(store, esfiha, kibe):
    store.add_item(esfiha, 1, {"size": ["large"]})
    store.add_item(esfiha, 1, {"size": ["small"]})
    store.add_item(kibe, 3)

    assert len(store.items) == 3
    assert store.item_count == 5
    assert store.subtotal == Decimal("9.49") + Decimal("7.99") + Decimal("16.50")
    assert_totals_consistent(store)


def test_add_rejects_quantity_below_one(store, kibe):
    with pytest.raises(ValidationError):
        store.add_item(kibe, 0)

    assert store.items == ()


def test_add_rejects_missing_required_option(store, esfiha):
    with pytest.raises(ValidationError):
        store.add_item(esfiha, 1, {})

    assert store.items == ()


def test_update_quantity_below_one_is_ignored(store, esfiha):
    line = store.add_item(esfiha, 2, {"size": ["large"]})

    store.update_quantity(line.id, 0)
    store.update_quantity(line.id, -4)

    assert store.get_line(line.id).quantity == 2
    assert store.subtotal == Decimal("18.98")


def test_update_quantity_recomputes_line_total(store, esfiha):
    line = store.add_item(esfiha, 2, {"size": ["large"]})

    updated = store.update_quantity(line.id, 5)

    assert updated.quantity == 5
    assert updated.line_total == Decimal("47.45")
    assert_totals_consistent(store)


def test_update_unknown_line_does_nothing(store, kibe):
    store.add_item(kibe, 1)

    assert store.update_quantity("nope", 3) is None
    assert store.item_count == 1


def test_remove_item_is_idempotent(store, kibe, esfiha):
    line = store.add_item(kibe, 1)
    store.add_item(esfiha, 1, {"size": ["small"]})

    store.remove_item("does-not-exist")
    store.remove_item(line.id)
    store.remove_item(line.id)

    assert [i.product_id for i in store.items] == ["esfiha-carne"]
    assert_totals_consistent(store)


def test_clear_is_idempotent(store, kibe):
    store.add_item(kibe, 2)

    store.clear()
    store.clear()

    assert store.items == ()
    assert store.subtotal == Decimal("0.00")
    assert store.item_count == 0


def test_emptied_cart_is_removed_from_storage(redis_client, store, kibe):
    line = store.add_item(kibe, 1)
    assert redis_client.ttl("cart:session-1") > 0

    store.remove_item(line.id)

    assert redis_client.get("cart:session-1") is None


def test_round_trip_through_storage(storage, store, esfiha, kibe):
    store.add_item(esfiha, 2, {"size": ["large"], "extras": ["cheese"]})
    store.add_item(kibe, 1)

    reloaded = CartStore.load(storage, "session-1")

    assert reloaded.items == store.items
    assert reloaded.subtotal == store.subtotal
    assert reloaded.item_count == store.item_count


def test_sessions_do_not_share_carts(storage, store, kibe):
    store.add_item(kibe, 1)

    assert CartStore.load(storage, "session-2").items == ()


def test_derived_fields_are_not_persisted(redis_client, store, esfiha):
    store.add_item(esfiha, 2, {"size": ["large"]})

    data = json.loads(redis_client.get("cart:session-1"))

    assert data["version"] == 1
    assert "line_total" not in data["items"][0]
    assert "subtotal" not in data


def test_rehydrate_drops_invalid_entries(storage, redis_client):
    redis_client.set(
        "cart:session-1",
        json.dumps(
            {
                "version": 1,
                "items": [
                    {"product_id": "kibe", "name": "Kibe Frito", "base_price": "5.50", "quantity": 2},
                    {"product_id": "broken", "name": "No price", "quantity": 1},
                    {"product_id": "zero", "name": "Zero", "base_price": "1.00", "quantity": 0},
                    {
                        "product_id": "esfiha-carne",
                        "name": "Esfiha",
                        "base_price": "7.99",
                        "quantity": 1,
                        "selected_options": {"size": ["large"]},
                        "variation_prices": {},
                    },
                    "garbage",
                ],
            }
        ),
    )

    store = CartStore.load(storage, "session-1")

    assert [i.product_id for i in store.items] == ["kibe"]
    assert store.subtotal == Decimal("11.00")


def test_rehydrate_ignores_stored_totals(storage, redis_client):
    redis_client.set(
        "cart:session-1",
        json.dumps(
            {
                "version": 1,
                "items": [
                    {
                        "product_id": "kibe",
                        "name": "Kibe Frito",
                        "base_price": "5.50",
                        "quantity": 2,
                        "line_total": "999.00",
                    }
                ],
            }
        ),
    )

    assert CartStore.load(storage, "session-1").subtotal == Decimal("11.00")


@pytest.mark.parametrize(
    "raw",
    [
        "not json at all",
        json.dumps({"version": 99, "items": [{"product_id": "kibe"}]}),
        json.dumps([1, 2, 3]),
    ],
)
def test_rehydrate_discards_incompatible_payload(storage, redis_client, raw):
    redis_client.set("cart:session-1", raw)

    assert CartStore.load(storage, "session-1").items == ()


class BrokenRedis:
    def __init__(self, inner):
        self.inner = inner

    def get(self, key):
        return self.inner.get(key)

    def set(self, *args, **kwargs):
        raise redis.exceptions.ConnectionError("no space left on device")

    def delete(self, key):
        return self.inner.delete(key)


def test_storage_failure_keeps_mutation_in_memory(redis_client, kibe):
    store = CartStore.load(LocalStorage(client=BrokenRedis(redis_client)), "session-1")

    with pytest.warns(PersistenceDurabilityWarning):
        store.add_item(kibe, 2)

    assert store.item_count == 2
    assert store.subtotal == Decimal("11.00")
    assert redis_client.get("cart:session-1") is None


def test_snapshot_is_decoupled_from_later_changes(store, esfiha):
    line = store.add_item(esfiha, 1, {"size": ["large"]})
    snapshot = store.snapshot()

    store.update_quantity(line.id, 4)
    store.clear()

    assert len(snapshot.items) == 1
    assert snapshot.items[0].quantity == 1
    assert snapshot.subtotal == Decimal("9.49")
    assert snapshot.item_count == 1


def test_apply_prices_recomputes_affected_lines(store, esfiha, kibe):
    store.add_item(esfiha, 2, {"size": ["large"]})
    store.add_item(kibe, 1)

    repriced = esfiha.model_copy(deep=True)
    repriced.price = Decimal("8.49")
    repriced.options[0].variations[1].price = Decimal("2.00")

    assert store.apply_prices(repriced) == 1
    assert store.items[0].line_total == Decimal("20.98")
    assert store.items[1].line_total == Decimal("5.50")
    assert_totals_consistent(store)


def test_apply_prices_picks_up_newly_required_options(storage, store, esfiha):
    store.add_item(esfiha, 1, {"size": ["small"]})

    updated = esfiha.model_copy(deep=True)
    updated.options[1].required = True

    assert store.apply_prices(updated) == 1
    assert store.items[0].missing_required_options() == ["extras"]
    assert CartStore.load(storage, "session-1").items[0].required_options == ("size", "extras")
