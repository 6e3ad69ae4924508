# storefront/services/order_service.py
import binascii
import unicodedata
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain import pricing
from storefront.domain.cart import CartSnapshot
from storefront.domain.errors import (
    ExternalServiceError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from storefront.domain.schemas import CurrentUser
from storefront.domain.status import (
    FulfillmentStatus,
    PaymentMethodType,
    PaymentStatus,
    can_move_fulfillment,
    can_move_payment,
    display_for,
)
from storefront.repos.order_repo import OrderRepo
from storefront.repos.payment_method_repo import PaymentMethodRepo
from storefront.services.notification_service import NotificationService
from storefront.services.payment_client import PaymentClient
from storefront.services.store_config import StoreConfigHolder
from storefront.utils.logging import get_logger
from storefront.utils.settings import PIX_CITY, PIX_KEY

logger = get_logger(__name__)


def _emv(field_id: str, value: str) -> str:
    return f"{field_id}{len(value):02d}{value}"


def _emv_text(value: str, limit: int) -> str:
    #EMV text fields are plain upper-case ASCII
    ascii_only = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return ascii_only.upper()[:limit]


def build_pix_payload(key: str, merchant_name: str, city: str, amount: Decimal, reference: str) -> str:
    """PIX copy-paste (EMV BR Code) payload for a fixed amount."""
    payload = "".join(
        [
            _emv("00", "01"),
            _emv("26", _emv("00", "BR.GOV.BCB.PIX") + _emv("01", key)),
            _emv("52", "0000"),
            _emv("53", "986"),
            _emv("54", f"{pricing.money(amount):.2f}"),
            _emv("58", "BR"),
            _emv("59", _emv_text(merchant_name, 25)),
            _emv("60", _emv_text(city, 15)),
            _emv("62", _emv("05", _emv_text(reference, 25))),
            "6304",
        ]
    )
    crc = binascii.crc_hqx(payload.encode("ascii"), 0xFFFF)
    return f"{payload}{crc:04X}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class OrderService:
    """
    Materializes a cart snapshot into an order and drives its payment and
    fulfillment status afterwards.

    The service never clears the cart. Confirmation calls return
    ``completed=True`` and the caller decides what to do with the cart.
    """

    def __init__(
        self,
        db: Session,
        store_config: StoreConfigHolder,
        payment_client: PaymentClient | None = None,
        notifier: NotificationService | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.payment_methods = PaymentMethodRepo(db)
        self.store_config = store_config
        self.payment_client = payment_client or PaymentClient()
        self.notifier = notifier or NotificationService()

    # =====================================================
    # CHECKOUT
    # =====================================================
    def create_order(
        self,
        snapshot: CartSnapshot,
        delivery_address: str,
        notes: str | None,
        payment_method_id: str | None,
        user: CurrentUser,
    ) -> int:
        """
        Use Case: checkout.

        1. validates the snapshot, address and payment method
        2. copies the delivery fee from store settings
        3. writes header + lines in a single transaction
        Returns the new order id.
        """
        if snapshot.is_empty:
            raise ValidationError("Cannot place an order with an empty cart", field="items")

        if not (delivery_address or "").strip():
            raise ValidationError("Delivery address is required", field="delivery_address")

        if not payment_method_id:
            raise ValidationError("Select a payment method", field="payment_method_id")

        method = self.payment_methods.get(payment_method_id)
        if method is None or not method.is_active:
            raise ValidationError("Selected payment method is not available", field="payment_method_id")

        for line in snapshot.items:
            missing = line.missing_required_options()
            if missing:
                raise ValidationError(
                    f"{line.name}: required option(s) without a choice: {', '.join(missing)}",
                    field="items",
                )

        #re-read so a fee changed by another process is picked up
        delivery_fee = pricing.money(self.store_config.refresh().delivery_fee)
        subtotal = pricing.money(snapshot.subtotal)

        order = OrderModel(
            user_id=user.id,
            payment_method_id=method.id,
            payment_status=PaymentStatus.PENDING.value,
            status=FulfillmentStatus.PENDING.value,
            payment_details={},
            delivery_address=delivery_address.strip(),
            notes=(notes or "").strip() or None,
            delivery_fee=delivery_fee,
            subtotal=subtotal,
            total=subtotal + delivery_fee,
        )
        items = [
            OrderItemModel(
                product_id=line.product_id,
                name=line.name,
                quantity=line.quantity,
                base_price=line.base_price,
                unit_price=line.unit_price,
                line_total=line.line_total,
                selected_options=[
                    {
                        "optionId": option_id,
                        "variationIds": list(variation_ids),
                        "variationPrices": {v: str(line.variation_prices[v]) for v in variation_ids},
                    }
                    for option_id, variation_ids in line.selected_options.items()
                ],
            )
            for line in snapshot.items
        ]

        try:
            created = self.repo.create_order(order, items)
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Order insert failed for user {user.id}: {e}")
            raise ExternalServiceError("database", "could not create order") from e

        logger.info(
            f"Order {created.id} created for user {user.id}: "
            f"{len(items)} line(s), subtotal {subtotal}, fee {delivery_fee}, total {created.total}"
        )
        self._notify("order_created", user.id, created.id)
        return created.id

    # =====================================================
    # QUERIES
    # =====================================================
    def get_order(self, order_id: int, user: CurrentUser) -> Dict[str, Any]:
        return self.to_view(self._load(order_id, user))

    def list_orders_for_user(self, user: CurrentUser) -> list[Dict[str, Any]]:
        return [self.to_view(o) for o in self.repo.list_orders(user_id=user.id)]

    def list_orders(self, status: FulfillmentStatus | None = None) -> list[Dict[str, Any]]:
        return [
            self.to_view(o)
            for o in self.repo.list_orders(status=status.value if status else None)
        ]

    # =====================================================
    # PAYMENT
    # =====================================================
    def create_payment_intent(self, order_id: int, user: CurrentUser) -> Dict[str, Any]:
        order = self._load(order_id, user)
        self._require_method(order, PaymentMethodType.CREDIT_CARD)
        self._require_unpaid(order)

        #amount always comes from the stored order, never from the client
        intent_id, client_secret = self.payment_client.create_payment_intent(order.total, order.id)

        order.payment_details = {
            **(order.payment_details or {}),
            "payment_type": PaymentMethodType.CREDIT_CARD.value,
            "payment_intent": intent_id,
            "created_at": _now_iso(),
        }
        self._save(order)

        return {
            "order_id": order.id,
            "payment_intent_id": intent_id,
            "client_secret": client_secret,
            "amount": order.total,
        }

    def generate_pix_code(self, order_id: int, user: CurrentUser) -> Dict[str, Any]:
        order = self._load(order_id, user)
        self._require_method(order, PaymentMethodType.PIX)
        self._require_unpaid(order)

        pix_code = build_pix_payload(
            key=PIX_KEY,
            merchant_name=self.store_config.get().name,
            city=PIX_CITY,
            amount=order.total,
            reference=f"PEDIDO{order.id}",
        )

        order.payment_details = {
            **(order.payment_details or {}),
            "payment_type": PaymentMethodType.PIX.value,
            "pix_code": pix_code,
            "generated_at": _now_iso(),
        }
        self._save(order)
        return {"order_id": order.id, "pix_code": pix_code, "amount": order.total}

    def confirm_pix_payment(self, order_id: int, user: CurrentUser) -> Dict[str, Any]:
        order = self._load(order_id, user)
        self._require_method(order, PaymentMethodType.PIX)

        self._move_payment(order, PaymentStatus.PAID)
        order.payment_details = {
            **(order.payment_details or {}),
            "payment_type": PaymentMethodType.PIX.value,
            "confirmed_at": _now_iso(),
        }
        self._save(order)

        logger.info(f"PIX payment confirmed for order {order.id}")
        self._notify("payment_confirmed", order.user_id, order.id, order.payment_status)
        return {"order": self.to_view(order), "completed": True}

    def confirm_credit_card_payment(
        self, order_id: int, payment_intent_id: str, user: CurrentUser
    ) -> Dict[str, Any]:
        """
        Checks the intent with the payment provider. A provider error marks
        the payment failed and is re-raised, the buyer may try again.
        """
        order = self._load(order_id, user)
        self._require_method(order, PaymentMethodType.CREDIT_CARD)

        #only the intent issued for this order by create_payment_intent is accepted
        expected = (order.payment_details or {}).get("payment_intent")
        if not expected or expected != payment_intent_id:
            raise ValidationError("Payment intent does not belong to this order", field="payment_intent_id")

        # a failed attempt may be retried, anything else must still be pending
        self._require_unpaid(order)

        try:
            succeeded = self.payment_client.confirm_payment(payment_intent_id, order.id, order.total)
        except ExternalServiceError:
            self._move_payment(order, PaymentStatus.FAILED)
            order.payment_details = {**(order.payment_details or {}), "failed_at": _now_iso()}
            self._save(order)
            raise

        if not succeeded:
            self._move_payment(order, PaymentStatus.FAILED)
            order.payment_details = {**(order.payment_details or {}), "failed_at": _now_iso()}
            self._save(order)
            logger.info(f"Card payment for order {order.id} did not succeed")
            return {"order": self.to_view(order), "completed": False}

        self._move_payment(order, PaymentStatus.PAID)
        if can_move_fulfillment(FulfillmentStatus(order.status), FulfillmentStatus.PROCESSING):
            order.status = FulfillmentStatus.PROCESSING.value
        order.payment_details = {
            **(order.payment_details or {}),
            "payment_type": PaymentMethodType.CREDIT_CARD.value,
            "payment_intent": payment_intent_id,
            "confirmed_at": _now_iso(),
        }
        self._save(order)

        logger.info(f"Card payment confirmed for order {order.id}")
        self._notify("payment_confirmed", order.user_id, order.id, order.payment_status)
        return {"order": self.to_view(order), "completed": True}

    def confirm_cash_payment(self, order_id: int, user: CurrentUser) -> Dict[str, Any]:
        """Cash is paid on delivery: the payment stays pending."""
        order = self._load(order_id, user)
        self._require_method(order, PaymentMethodType.CASH)

        self._move_payment(order, PaymentStatus.PENDING)
        order.payment_details = {
            **(order.payment_details or {}),
            "payment_type": PaymentMethodType.CASH.value,
            "amount": str(order.total),
            "confirmed_at": _now_iso(),
        }
        self._save(order)

        logger.info(f"Cash on delivery confirmed for order {order.id}")
        self._notify("payment_confirmed", order.user_id, order.id, order.payment_status)
        return {"order": self.to_view(order), "completed": True}

    def cancel_payment(self, order_id: int, user: CurrentUser) -> Dict[str, Any]:
        order = self._load(order_id, user)
        self._move_payment(order, PaymentStatus.FAILED)
        order.payment_details = {**(order.payment_details or {}), "cancelled_at": _now_iso()}
        self._save(order)
        logger.info(f"Payment for order {order.id} cancelled by {user.id}")
        return self.to_view(order)

    def refund_payment(self, order_id: int) -> Dict[str, Any]:
        order = self._get(order_id)
        self._move_payment(order, PaymentStatus.REFUNDED)
        order.payment_details = {**(order.payment_details or {}), "refunded_at": _now_iso()}
        self._save(order)
        logger.info(f"Order {order.id} marked as refunded")
        return self.to_view(order)

    # =====================================================
    # BACK OFFICE
    # =====================================================
    def update_fulfillment_status(self, order_id: int, status: FulfillmentStatus) -> Dict[str, Any]:
        order = self._get(order_id)
        current = FulfillmentStatus(order.status)

        if current == status:
            return self.to_view(order)

        if not can_move_fulfillment(current, status):
            raise InvalidTransitionError(
                f"Order {order.id} cannot go from {current.value} to {status.value}", field="status"
            )

        order.status = status.value
        self._save(order)

        logger.info(f"Order {order.id} fulfillment {current.value} -> {status.value}")
        self._notify("fulfillment_changed", order.user_id, order.id, order.status)
        return self.to_view(order)

    def correct_item_quantity(self, order_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1", field="quantity")

        order = self._get(order_id)
        self._require_unpaid(order)

        item = self.repo.get_item(order_id, item_id)
        if item is None:
            raise NotFoundError(f"Order {order_id} has no item {item_id}")

        item.quantity = quantity
        item.line_total = pricing.money(Decimal(item.unit_price) * quantity)
        logger.info(f"Order {order.id} item {item.id} corrected to quantity {quantity}")
        return self.retotal(order_id)

    def retotal(self, order_id: int) -> Dict[str, Any]:
        """Recompute subtotal/total from the stored lines. Only before payment."""
        order = self._get(order_id)
        self._require_unpaid(order)

        subtotal = sum((Decimal(i.line_total) for i in order.items), Decimal("0.00"))
        order.subtotal = pricing.money(subtotal)
        #the fee stays the one captured at checkout
        order.total = pricing.money(subtotal + Decimal(order.delivery_fee))
        self._save(order)

        logger.info(f"Order {order.id} re-totalled: {order.total}")
        return self.to_view(order)

    # =====================================================
    # helpers
    # =====================================================
    def to_view(self, order: OrderModel) -> Dict[str, Any]:
        payment_status = PaymentStatus(order.payment_status)
        fulfillment_status = FulfillmentStatus(order.status)

        return {
            "id": order.id,
            "user_id": order.user_id,
            "payment_method_id": order.payment_method_id,
            "payment_status": {"value": payment_status.value, **display_for(payment_status)._asdict()},
            "fulfillment_status": {"value": fulfillment_status.value, **display_for(fulfillment_status)._asdict()},
            "delivery_address": order.delivery_address,
            "notes": order.notes,
            "delivery_fee": order.delivery_fee,
            "subtotal": order.subtotal,
            "total": order.total,
            "payment_details": order.payment_details or {},
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "name": i.name,
                    "quantity": i.quantity,
                    "base_price": i.base_price,
                    "unit_price": i.unit_price,
                    "line_total": i.line_total,
                    "selected_options": i.selected_options,
                }
                for i in order.items
            ],
            "created_at": order.created_at,
            "updated_at": order.updated_at,
        }

    def _get(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError(f"Order {order_id} does not exist")
        return order

    def _load(self, order_id: int, user: CurrentUser) -> OrderModel:
        order = self._get(order_id)
        if order.user_id != user.id and not user.is_admin:
            raise PermissionError("No access to this order")
        return order

    def _require_method(self, order: OrderModel, expected: PaymentMethodType) -> None:
        method = self.payment_methods.get(order.payment_method_id)
        if method is None or method.type != expected.value:
            raise ValidationError(
                f"Order {order.id} is not paid with {expected.value}", field="payment_method_id"
            )

    def _require_unpaid(self, order: OrderModel) -> None:
        if order.payment_status not in (PaymentStatus.PENDING.value, PaymentStatus.FAILED.value):
            raise InvalidTransitionError(
                f"Order {order.id} payment is already {order.payment_status}", field="payment_status"
            )

    def _move_payment(self, order: OrderModel, new: PaymentStatus) -> None:
        current = PaymentStatus(order.payment_status)
        if not can_move_payment(current, new):
            raise InvalidTransitionError(
                f"Order {order.id} payment cannot go from {current.value} to {new.value}",
                field="payment_status",
            )
        if FulfillmentStatus(order.status) is FulfillmentStatus.CANCELLED and new is not PaymentStatus.REFUNDED:
            raise InvalidTransitionError(f"Order {order.id} is cancelled", field="status")
        order.payment_status = new.value

    def _save(self, order: OrderModel) -> OrderModel:
        try:
            return self.repo.save(order)
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Could not save order {order.id}: {e}")
            raise ExternalServiceError("database", f"could not update order {order.id}") from e

    def _notify(self, event: str, *args) -> None:
        try:
            getattr(self.notifier, event)(*args)
        except Exception as e:
            logger.warning(f"Notification {event} for {args} not queued: {e}")
