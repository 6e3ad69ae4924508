# storefront/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from storefront.api.routers import admin_orders, carts, health, orders, payment_methods, store
from storefront.data.database import Base, engine
from storefront.services.notification_service import NotificationService
from storefront.services.payment_client import PaymentClient
from storefront.services.product_client import ProductClient
from storefront.services.storage import LocalStorage
from storefront.services.store_config import StoreConfigHolder
from storefront.utils.logging import get_logger

# every model has to be imported before create_all
import storefront.data.models  # noqa: F401

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    logger.info("Database tables ready")
    yield


def create_app(
    storage: LocalStorage | None = None,
    product_client: ProductClient | None = None,
    payment_client: PaymentClient | None = None,
    notifier: NotificationService | None = None,
    store_config: StoreConfigHolder | None = None,
) -> FastAPI:
    app = FastAPI(
        title="Storefront",
        version="1.0.0",
        lifespan=lifespan,
    )

    # one instance of each collaborator per process
    app.state.storage = storage or LocalStorage()
    app.state.store_config = store_config or StoreConfigHolder(app.state.storage)
    app.state.product_client = product_client or ProductClient()
    app.state.payment_client = payment_client or PaymentClient()
    app.state.notifier = notifier or NotificationService()

    # Include routers
    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(admin_orders.router)
    app.include_router(payment_methods.router)
    app.include_router(payment_methods.admin_router)
    app.include_router(store.router)

    return app


if __name__ == "__main__":
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
