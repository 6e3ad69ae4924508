#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends

from storefront.api.deps import get_cart_service, get_session_id
from storefront.api.errors import http_errors
from storefront.domain.schemas import CartItemIn, CartOut, QuantityIn
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(
    session_id: str = Depends(get_session_id),
    svc: CartService = Depends(get_cart_service),
):
    with http_errors():
        return svc.get_cart(session_id)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: CartItemIn,
    session_id: str = Depends(get_session_id),
    svc: CartService = Depends(get_cart_service),
):
    with http_errors():
        return svc.add_item(
            session_id=session_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
            selected_options=payload.selected_options,
        )


@router.patch("/items/{line_id}", response_model=CartOut)
def update_quantity(
    line_id: str,
    payload: QuantityIn,
    session_id: str = Depends(get_session_id),
    svc: CartService = Depends(get_cart_service),
):
    with http_errors():
        return svc.update_quantity(session_id, line_id, payload.quantity)


@router.delete("/items/{line_id}", response_model=CartOut)
def remove_item(
    line_id: str,
    session_id: str = Depends(get_session_id),
    svc: CartService = Depends(get_cart_service),
):
    with http_errors():
        return svc.remove_item(session_id, line_id)


@router.delete("", response_model=CartOut)
def clear_cart(
    session_id: str = Depends(get_session_id),
    svc: CartService = Depends(get_cart_service),
):
    with http_errors():
        return svc.clear(session_id)


@router.post("/refresh-prices", response_model=CartOut)
def refresh_prices(
    session_id: str = Depends(get_session_id),
    svc: CartService = Depends(get_cart_service),
):
    with http_errors():
        return svc.refresh_prices(session_id)
