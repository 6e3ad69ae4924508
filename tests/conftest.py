import os

os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal

import fakeredis
import pytest
from fastapi.testclient import TestClient

import storefront.data.models  # noqa: F401
from storefront.data.database import Base, SessionLocal, engine, get_db
from storefront.data.models.payment_method import PaymentMethodModel
from storefront.domain.errors import ExternalServiceError, NotFoundError
from storefront.domain.schemas import OptionOut, ProductOut, VariationOut
from storefront.main import create_app
from storefront.services.storage import LocalStorage
from storefront.services.store_config import StoreConfigHolder


class FakeProductClient:
    def __init__(self, *products: ProductOut):
        self.products = {p.id: p for p in products}
        self.calls = []

    def fetch_product(self, product_id: str) -> ProductOut:
        self.calls.append(product_id)
        if product_id not in self.products:
            raise NotFoundError(f"Product {product_id} not found")
        return self.products[product_id].model_copy(deep=True)


class FakePaymentClient:
    def __init__(self):
        self.intents = []
        self.confirmations = []
        self.confirm_result = True

    def create_payment_intent(self, amount, order_id):
        intent_id = f"pi_{order_id}_{len(self.intents) + 1}"
        self.intents.append((intent_id, amount, order_id))
        return intent_id, f"{intent_id}_secret"

    def confirm_payment(self, payment_intent_id, order_id, amount):
        self.confirmations.append((payment_intent_id, order_id, amount))
        if isinstance(self.confirm_result, Exception):
            raise self.confirm_result
        return self.confirm_result


class FakeNotifier:
    def __init__(self):
        self.events = []

    def order_created(self, user_id, order_id):
        self.events.append(("created", user_id, order_id))

    def payment_confirmed(self, user_id, order_id, payment_status):
        self.events.append(("payment", user_id, order_id, payment_status))

    def fulfillment_changed(self, user_id, order_id, status):
        self.events.append(("status", user_id, order_id, status))


def provider_down():
    return ExternalServiceError("payments", "card network unavailable")


@pytest.fixture
def esfiha():
    return ProductOut(
        id="esfiha-carne",
        name="Esfiha de Carne",
        price=Decimal("7.99"),
        image="/img/esfiha.png",
        options=[
            OptionOut(
                id="size",
                title="Tamanho",
                required=True,
                variations=[
                    VariationOut(id="small", name="Pequena", price=Decimal("0.00")),
                    VariationOut(id="large", name="Grande", price=Decimal("1.50")),
                ],
            ),
            OptionOut(
                id="extras",
                title="Adicionais",
                required=False,
                variations=[
                    VariationOut(id="cheese", name="Queijo", price=Decimal("2.00")),
                    VariationOut(id="olives", name="Azeitona", price=Decimal("1.25")),
                ],
            ),
        ],
    )


@pytest.fixture
def kibe():
    return ProductOut(id="kibe", name="Kibe Frito", price=Decimal("5.50"))


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def storage(redis_client):
    return LocalStorage(client=redis_client)


@pytest.fixture
def store_config(storage):
    return StoreConfigHolder(storage)


@pytest.fixture
def product_client(esfiha, kibe):
    return FakeProductClient(esfiha, kibe)


@pytest.fixture
def payment_client():
    return FakePaymentClient()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def payment_methods(db):
    methods = {
        "pix": PaymentMethodModel(name="PIX", type="pix", config={"instructions": "QR code"}),
        "credit_card": PaymentMethodModel(name="Cartão", type="credit_card", config={"provider": "stripe"}),
        "cash": PaymentMethodModel(name="Dinheiro", type="cash"),
        "disabled": PaymentMethodModel(name="Vale", type="cash", is_active=False),
    }
    db.add_all(methods.values())
    db.commit()
    return methods


@pytest.fixture
def app(db, storage, store_config, product_client, payment_client, notifier):
    app = create_app(
        storage=storage,
        product_client=product_client,
        payment_client=payment_client,
        notifier=notifier,
        store_config=store_config,
    )

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app):
    return TestClient(app)
