# storefront/api/routers/admin_orders.py
from typing import List

from fastapi import APIRouter, Depends, Query

from storefront.api.deps import get_order_service, require_admin
from storefront.api.errors import http_errors
from storefront.domain.schemas import FulfillmentStatusIn, ItemCorrectionIn, OrderOut
from storefront.domain.status import FulfillmentStatus
from storefront.services.order_service import OrderService

router = APIRouter(
    prefix="/admin/orders",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=List[OrderOut])
def list_orders(
    status: FulfillmentStatus | None = Query(None),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_orders(status)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: int,
    payload: FulfillmentStatusIn,
    svc: OrderService = Depends(get_order_service),
):
    with http_errors():
        return svc.update_fulfillment_status(order_id, payload.status)


@router.post("/{order_id}/refund", response_model=OrderOut)
def refund(order_id: int, svc: OrderService = Depends(get_order_service)):
    with http_errors():
        return svc.refund_payment(order_id)


@router.patch("/{order_id}/items/{item_id}", response_model=OrderOut)
def correct_item(
    order_id: int,
    item_id: int,
    payload: ItemCorrectionIn,
    svc: OrderService = Depends(get_order_service),
):
    with http_errors():
        return svc.correct_item_quantity(order_id, item_id, payload.quantity)


@router.post("/{order_id}/retotal", response_model=OrderOut)
def retotal(order_id: int, svc: OrderService = Depends(get_order_service)):
    with http_errors():
        return svc.retotal(order_id)
