# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Header

from storefront.api.deps import (
    get_cart_service,
    get_current_user,
    get_order_service,
    get_session_id,
)
from storefront.api.errors import http_errors
from storefront.domain.schemas import (
    CardConfirmIn,
    CheckoutIn,
    CurrentUser,
    OrderOut,
    PaymentIntentOut,
    PaymentResultOut,
    PixCodeOut,
)
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def _finish_checkout(result: dict, session_id: str | None, carts: CartService) -> dict:
    #the order service only signals completion, emptying the cart is up to us
    if result["completed"] and session_id:
        carts.clear(session_id)
    return result


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    payload: CheckoutIn,
    session_id: str = Depends(get_session_id),
    user: CurrentUser = Depends(get_current_user),
    carts: CartService = Depends(get_cart_service),
    svc: OrderService = Depends(get_order_service),
):
    """
    Turns the session cart into an order in payment state pending.
    The cart is left untouched until a payment confirmation succeeds.
    """
    with http_errors():
        snapshot = carts.open(session_id).snapshot()
        order_id = svc.create_order(
            snapshot,
            delivery_address=payload.delivery_address,
            notes=payload.notes,
            payment_method_id=payload.payment_method_id,
            user=user,
        )
        return svc.get_order(order_id, user)


@router.get("", response_model=List[OrderOut])
def list_my_orders(
    user: CurrentUser = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_orders_for_user(user)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    with http_errors():
        return svc.get_order(order_id, user)


@router.post("/{order_id}/payment-intent", response_model=PaymentIntentOut)
def create_payment_intent(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    with http_errors():
        return svc.create_payment_intent(order_id, user)


@router.post("/{order_id}/pix", response_model=PixCodeOut)
def generate_pix_code(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    with http_errors():
        return svc.generate_pix_code(order_id, user)


@router.post("/{order_id}/confirm/pix", response_model=PaymentResultOut)
def confirm_pix(
    order_id: int,
    x_session_id: str | None = Header(None),
    user: CurrentUser = Depends(get_current_user),
    carts: CartService = Depends(get_cart_service),
    svc: OrderService = Depends(get_order_service),
):
    with http_errors():
        result = svc.confirm_pix_payment(order_id, user)
        return _finish_checkout(result, x_session_id, carts)


@router.post("/{order_id}/confirm/card", response_model=PaymentResultOut)
def confirm_card(
    order_id: int,
    payload: CardConfirmIn,
    x_session_id: str | None = Header(None),
    user: CurrentUser = Depends(get_current_user),
    carts: CartService = Depends(get_cart_service),
    svc: OrderService = Depends(get_order_service),
):
    with http_errors():
        result = svc.confirm_credit_card_payment(order_id, payload.payment_intent_id, user)
        return _finish_checkout(result, x_session_id, carts)


@router.post("/{order_id}/confirm/cash", response_model=PaymentResultOut)
def confirm_cash(
    order_id: int,
    x_session_id: str | None = Header(None),
    user: CurrentUser = Depends(get_current_user),
    carts: CartService = Depends(get_cart_service),
    svc: OrderService = Depends(get_order_service),
):
    with http_errors():
        result = svc.confirm_cash_payment(order_id, user)
        return _finish_checkout(result, x_session_id, carts)


@router.post("/{order_id}/cancel-payment", response_model=OrderOut)
def cancel_payment(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    with http_errors():
        return svc.cancel_payment(order_id, user)
