import pytest
from fastapi.testclient import TestClient

from storefront.catalog_service.main import create_app as create_catalog_app
from storefront.data.database import get_db
from tests.conftest import provider_down

SESSION = {"X-Session-Id": "browser-1"}
BUYER = {"X-User-Id": "user-1", **SESSION}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}


def add_esfihas(client, quantity=2):
    return client.post(
        "/cart/items",
        json={"product_id": "esfiha-carne", "quantity": quantity, "selected_options": {"size": ["large"]}},
        headers=SESSION,
    )


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_cart_requires_session(client):
    assert client.get("/cart").status_code == 400


def test_add_item_and_view_cart(client):
    resp = add_esfihas(client)

    assert resp.status_code == 200
    body = resp.json()
    assert body["subtotal"] == "18.98"
    assert body["item_count"] == 2
    assert body["below_minimum"] is True
    assert body["items"][0]["selected_options"] == {"size": ["large"]}

    assert client.get("/cart", headers=SESSION).json() == body


def test_add_item_errors(client):
    missing_size = client.post("/cart/items", json={"product_id": "esfiha-carne"}, headers=SESSION)
    unknown = client.post("/cart/items", json={"product_id": "nope"}, headers=SESSION)
    zero = client.post("/cart/items", json={"product_id": "kibe", "quantity": 0}, headers=SESSION)

    assert missing_size.status_code == 400
    assert unknown.status_code == 404
    assert zero.status_code == 400


def test_update_and_remove_line(client):
    line_id = add_esfihas(client).json()["items"][0]["id"]

    updated = client.patch(f"/cart/items/{line_id}", json={"quantity": 3}, headers=SESSION)
    assert updated.json()["subtotal"] == "28.47"
    assert updated.json()["below_minimum"] is False

    ignored = client.patch(f"/cart/items/{line_id}", json={"quantity": 0}, headers=SESSION)
    assert ignored.json()["item_count"] == 3

    removed = client.delete(f"/cart/items/{line_id}", headers=SESSION)
    assert removed.json() == {"items": [], "subtotal": "0.00", "item_count": 0, "below_minimum": False}


def test_carts_are_per_session(client):
    add_esfihas(client)

    other = client.get("/cart", headers={"X-Session-Id": "browser-2"})

    assert other.json()["items"] == []


def test_refresh_prices_uses_catalog(client, product_client):
    add_esfihas(client)
    product_client.products["esfiha-carne"].price = product_client.products["esfiha-carne"].price + 1

    resp = client.post("/cart/refresh-prices", headers=SESSION)

    assert resp.json()["subtotal"] == "20.98"


def test_checkout_keeps_cart_until_payment_confirmed(client, payment_methods):
    add_esfihas(client)

    created = client.post(
        "/orders",
        json={"delivery_address": "Rua das Flores, 10", "payment_method_id": payment_methods["cash"].id},
        headers=BUYER,
    )

    assert created.status_code == 201
    order = created.json()
    assert order["total"] == "29.97"
    assert order["payment_status"] == {"value": "pending", "label": "Aguardando pagamento", "color": "bg-purple-500"}
    assert client.get("/cart", headers=SESSION).json()["item_count"] == 2

    confirmed = client.post(f"/orders/{order['id']}/confirm/cash", headers=BUYER)

    assert confirmed.status_code == 200
    assert confirmed.json()["completed"] is True
    assert client.get("/cart", headers=SESSION).json()["items"] == []


def test_declined_card_keeps_cart(client, payment_methods, payment_client):
    add_esfihas(client)
    order_id = client.post(
        "/orders",
        json={"delivery_address": "Rua A", "payment_method_id": payment_methods["credit_card"].id},
        headers=BUYER,
    ).json()["id"]
    intent = client.post(f"/orders/{order_id}/payment-intent", headers=BUYER).json()
    payment_client.confirm_result = False

    resp = client.post(
        f"/orders/{order_id}/confirm/card",
        json={"payment_intent_id": intent["payment_intent_id"]},
        headers=BUYER,
    )

    assert resp.json()["completed"] is False
    assert resp.json()["order"]["payment_status"]["value"] == "failed"
    assert client.get("/cart", headers=SESSION).json()["item_count"] == 2


def test_card_provider_outage_is_bad_gateway(client, payment_methods, payment_client):
    add_esfihas(client)
    order_id = client.post(
        "/orders",
        json={"delivery_address": "Rua A", "payment_method_id": payment_methods["credit_card"].id},
        headers=BUYER,
    ).json()["id"]
    intent = client.post(f"/orders/{order_id}/payment-intent", headers=BUYER).json()
    payment_client.confirm_result = provider_down()

    resp = client.post(
        f"/orders/{order_id}/confirm/card",
        json={"payment_intent_id": intent["payment_intent_id"]},
        headers=BUYER,
    )

    assert resp.status_code == 502


def test_card_confirmation_with_foreign_intent_is_rejected(client, payment_methods):
    add_esfihas(client)
    method = payment_methods["credit_card"].id
    checkout = {"delivery_address": "Rua A", "payment_method_id": method}
    first = client.post("/orders", json=checkout, headers=BUYER).json()["id"]
    second = client.post("/orders", json=checkout, headers=BUYER).json()["id"]
    intent = client.post(f"/orders/{first}/payment-intent", headers=BUYER).json()

    resp = client.post(
        f"/orders/{second}/confirm/card",
        json={"payment_intent_id": intent["payment_intent_id"]},
        headers=BUYER,
    )

    assert resp.status_code == 400
    assert client.get(f"/orders/{second}", headers=BUYER).json()["payment_status"]["value"] == "pending"


def test_empty_checkout_is_rejected(client, payment_methods):
    resp = client.post(
        "/orders",
        json={"delivery_address": "Rua A", "payment_method_id": payment_methods["cash"].id},
        headers=BUYER,
    )

    assert resp.status_code == 400
    assert client.get("/orders", headers=BUYER).json() == []


def test_orders_need_identity(client):
    assert client.get("/orders", headers=SESSION).status_code == 401


def test_order_of_someone_else_is_forbidden(client, payment_methods):
    add_esfihas(client)
    order_id = client.post(
        "/orders",
        json={"delivery_address": "Rua A", "payment_method_id": payment_methods["cash"].id},
        headers=BUYER,
    ).json()["id"]

    assert client.get(f"/orders/{order_id}", headers={"X-User-Id": "user-2"}).status_code == 403
    assert client.get("/orders/9999", headers=BUYER).status_code == 404


def test_admin_routes_require_admin(client):
    assert client.get("/admin/orders", headers={"X-User-Id": "user-1"}).status_code == 403
    assert client.patch("/admin/store", json={"delivery_fee": "5.00"}, headers=BUYER).status_code == 403


def test_admin_moves_order_forward(client, payment_methods):
    add_esfihas(client)
    order_id = client.post(
        "/orders",
        json={"delivery_address": "Rua A", "payment_method_id": payment_methods["pix"].id},
        headers=BUYER,
    ).json()["id"]

    moved = client.patch(f"/admin/orders/{order_id}/status", json={"status": "delivering"}, headers=ADMIN)
    back = client.patch(f"/admin/orders/{order_id}/status", json={"status": "processing"}, headers=ADMIN)
    listed = client.get("/admin/orders", params={"status": "delivering"}, headers=ADMIN)

    assert moved.json()["fulfillment_status"]["label"] == "Em entrega"
    assert back.status_code == 400
    assert [o["id"] for o in listed.json()] == [order_id]


def test_store_settings(client):
    assert client.get("/store").json()["delivery_fee"] == "10.99"

    patched = client.patch("/admin/store", json={"delivery_fee": "5.00"}, headers=ADMIN)
    negative = client.patch("/admin/store", json={"min_order": "-1"}, headers=ADMIN)

    assert patched.json()["delivery_fee"] == "5.00"
    assert patched.json()["min_order"] == "25.00"
    assert negative.status_code == 400
    assert client.get("/store").json()["delivery_fee"] == "5.00"


def test_payment_methods_listing(client, payment_methods):
    public = client.get("/payment-methods").json()
    everything = client.get("/admin/payment-methods", headers=ADMIN).json()

    assert {m["type"] for m in public} == {"pix", "credit_card", "cash"}
    assert "Vale" not in {m["name"] for m in public}
    assert len(everything) == 4

    toggled = client.patch(f"/admin/payment-methods/{payment_methods['pix'].id}/toggle", headers=ADMIN)
    assert toggled.json()["is_active"] is False
    assert client.patch("/admin/payment-methods/nope/toggle", headers=ADMIN).status_code == 404


@pytest.fixture
def catalog(db):
    app = create_catalog_app()

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


def test_catalog_admin_creates_product(catalog):
    category = catalog.post("/admin/categories", json={"name": "Esfihas"}, headers=ADMIN).json()
    created = catalog.post(
        "/admin/products",
        json={
            "name": "Esfiha de Queijo",
            "price": "6.50",
            "category_id": category["id"],
            "options": [
                {"title": "Tamanho", "required": True, "variations": [{"name": "Grande", "price": "1.50"}]}
            ],
        },
        headers=ADMIN,
    )

    assert created.status_code == 201
    product = catalog.get(f"/products/{created.json()['id']}").json()
    assert product["name"] == "Esfiha de Queijo"
    assert product["options"][0]["variations"][0]["price"] == "1.50"
    assert [p["id"] for p in catalog.get("/products", params={"category_id": category["id"]}).json()] == [product["id"]]


def test_catalog_rejects_bad_products(catalog):
    unknown_category = catalog.post(
        "/admin/products", json={"name": "X", "price": "1.00", "category_id": "nope"}, headers=ADMIN
    )
    empty_required = catalog.post(
        "/admin/products",
        json={"name": "X", "price": "1.00", "options": [{"title": "Tamanho", "required": True}]},
        headers=ADMIN,
    )

    assert unknown_category.status_code == 400
    assert empty_required.status_code == 400
    assert catalog.get("/products/missing").status_code == 404
    assert catalog.post("/admin/products", json={"name": "X", "price": "1.00"}).status_code == 401
