# storefront/catalog_service/main.py
from contextlib import asynccontextmanager
from typing import List

from fastapi import APIRouter, Depends, FastAPI, Query
from sqlalchemy.orm import Session

from storefront.api.deps import require_admin
from storefront.api.errors import http_errors
from storefront.data.database import Base, engine, get_db
from storefront.domain.schemas import CategoryIn, CategoryOut, ProductIn, ProductOut
from storefront.services.catalog_service import CatalogService

import storefront.data.models  # noqa: F401

router = APIRouter(tags=["catalog"])
admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def get_service(db: Session):
    return CatalogService(db)


@router.get("/products", response_model=List[ProductOut])
def list_products(category_id: str | None = Query(None), db: Session = Depends(get_db)):
    return get_service(db).list_products(category_id=category_id)


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: str, db: Session = Depends(get_db)):
    with http_errors():
        return get_service(db).get_product(product_id)


@router.get("/categories", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return get_service(db).list_categories()


@admin_router.get("/products", response_model=List[ProductOut])
def list_all_products(category_id: str | None = Query(None), db: Session = Depends(get_db)):
    return get_service(db).list_products(category_id=category_id, include_inactive=True)


@admin_router.post("/products", response_model=ProductOut, status_code=201)
def create_product(payload: ProductIn, db: Session = Depends(get_db)):
    with http_errors():
        return get_service(db).create_product(payload)


@admin_router.put("/products/{product_id}", response_model=ProductOut)
def update_product(product_id: str, payload: ProductIn, db: Session = Depends(get_db)):
    with http_errors():
        return get_service(db).update_product(product_id, payload)


@admin_router.delete("/products/{product_id}", status_code=204)
def delete_product(product_id: str, db: Session = Depends(get_db)):
    with http_errors():
        get_service(db).delete_product(product_id)


@admin_router.post("/categories", response_model=CategoryOut, status_code=201)
def create_category(payload: CategoryIn, db: Session = Depends(get_db)):
    return get_service(db).create_category(payload)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Catalog Service", version="1.0.0", lifespan=lifespan)
    app.include_router(router)
    app.include_router(admin_router)
    return app


app = create_app()
