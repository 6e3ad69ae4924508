# storefront/api/deps.py
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.schemas import CurrentUser
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService


def get_current_user(
    x_user_id: str | None = Header(None),
    x_user_role: str = Header("customer"),
) -> CurrentUser:
    """Identity is resolved upstream by the auth gateway and forwarded in headers."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return CurrentUser(id=x_user_id, role=x_user_role)


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return user


def get_session_id(x_session_id: str | None = Header(None)) -> str:
    if not x_session_id:
        raise HTTPException(status_code=400, detail="Missing X-Session-Id header")
    return x_session_id


def get_cart_service(request: Request) -> CartService:
    state = request.app.state
    return CartService(
        storage=state.storage,
        product_client=state.product_client,
        store_config=state.store_config,
    )


def get_order_service(request: Request, db: Session = Depends(get_db)) -> OrderService:
    state = request.app.state
    return OrderService(
        db=db,
        store_config=state.store_config,
        payment_client=state.payment_client,
        notifier=state.notifier,
    )
