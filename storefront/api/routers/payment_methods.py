# storefront/api/routers/payment_methods.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import require_admin
from storefront.api.errors import http_errors
from storefront.data.database import get_db
from storefront.domain.schemas import PaymentMethodIn, PaymentMethodOut
from storefront.services.payment_method_service import PaymentMethodService

router = APIRouter(prefix="/payment-methods", tags=["payments"])
admin_router = APIRouter(
    prefix="/admin/payment-methods",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


def get_service(db: Session):
    return PaymentMethodService(db)


@router.get("", response_model=List[PaymentMethodOut])
def list_active(db: Session = Depends(get_db)):
    """Methods offered at checkout."""
    return get_service(db).list_active()


@admin_router.get("", response_model=List[PaymentMethodOut])
def list_all(db: Session = Depends(get_db)):
    return get_service(db).list_all()


@admin_router.post("", response_model=PaymentMethodOut, status_code=201)
def create(payload: PaymentMethodIn, db: Session = Depends(get_db)):
    return get_service(db).create(payload)


@admin_router.patch("/{method_id}/toggle", response_model=PaymentMethodOut)
def toggle(method_id: str, db: Session = Depends(get_db)):
    with http_errors():
        return get_service(db).toggle_active(method_id)
