# storefront/services/payment_client.py
from decimal import Decimal

import stripe

from storefront.domain.errors import ExternalServiceError, ValidationError
from storefront.utils.settings import PAYMENT_CURRENCY, STRIPE_SECRET_KEY
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _to_cents(amount) -> int:
    return int((Decimal(amount) * 100).to_integral_value())


class PaymentClient:
    """
    Thin wrapper over the Stripe PaymentIntent API.
    Nothing here is retried: a failed confirmation is retried by the buyer.
    """

    def __init__(self, api_key: str | None = None, currency: str | None = None):
        self.api_key = api_key or STRIPE_SECRET_KEY
        self.currency = currency or PAYMENT_CURRENCY

    def create_payment_intent(self, amount: Decimal, order_id: int) -> tuple[str, str]:
        """Returns (payment_intent_id, client_secret)."""
        cents = _to_cents(amount)
        logger.info(f"Creating payment intent of {cents} {self.currency} for order {order_id}")
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=cents,
                currency=self.currency,
                metadata={"order_id": str(order_id)},
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe refused payment intent for order {order_id}: {e}")
            raise ExternalServiceError("payments", str(e)) from e

        return intent.id, intent.client_secret

    def confirm_payment(self, payment_intent_id: str, order_id: int, amount: Decimal) -> bool:
        """
        True when the intent has succeeded on the provider side.
        The intent must have been created for this order and for its amount.
        """
        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.error(f"Could not retrieve payment intent {payment_intent_id}: {e}")
            raise ExternalServiceError("payments", str(e)) from e

        metadata = intent.metadata or {}
        if metadata.get("order_id") != str(order_id) or intent.amount != _to_cents(amount):
            logger.warning(
                f"Payment intent {payment_intent_id} (order {metadata.get('order_id')}, "
                f"{intent.amount}) does not match order {order_id}"
            )
            raise ValidationError("Payment intent does not belong to this order", field="payment_intent_id")

        logger.info(f"Payment intent {payment_intent_id} status: {intent.status}")
        return intent.status == "succeeded"
