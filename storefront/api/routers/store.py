# storefront/api/routers/store.py
from fastapi import APIRouter, Depends, Request

from storefront.api.deps import require_admin
from storefront.api.errors import http_errors
from storefront.domain.schemas import StoreConfig, StoreConfigPatch

router = APIRouter(tags=["store"])


@router.get("/store", response_model=StoreConfig)
def get_store(request: Request):
    return request.app.state.store_config.get()


@router.patch("/admin/store", response_model=StoreConfig, dependencies=[Depends(require_admin)])
def update_store(payload: StoreConfigPatch, request: Request):
    with http_errors():
        return request.app.state.store_config.update(payload)


@router.post("/admin/store/refresh", response_model=StoreConfig, dependencies=[Depends(require_admin)])
def refresh_store(request: Request):
    return request.app.state.store_config.refresh()
