# storefront/domain/status.py
from enum import Enum
from typing import NamedTuple


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class FulfillmentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DELIVERING = "delivering"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethodType(str, Enum):
    PIX = "pix"
    CREDIT_CARD = "credit_card"
    CASH = "cash"


class StatusDisplay(NamedTuple):
    label: str
    color: str


#one source of labels for admin and customer views
#keyed by enum class first, payment and fulfillment share the "pending" value
STATUS_DISPLAY: dict[type, dict[str, StatusDisplay]] = {
    PaymentStatus: {
        "pending": StatusDisplay("Aguardando pagamento", "bg-purple-500"),
        "paid": StatusDisplay("Pago", "bg-green-500"),
        "failed": StatusDisplay("Pagamento falhou", "bg-red-500"),
        "refunded": StatusDisplay("Reembolsado", "bg-gray-500"),
    },
    FulfillmentStatus: {
        "pending": StatusDisplay("Pendente", "bg-yellow-500"),
        "processing": StatusDisplay("Em preparação", "bg-amber-500"),
        "delivering": StatusDisplay("Em entrega", "bg-blue-500"),
        "delivered": StatusDisplay("Entregue", "bg-green-500"),
        "cancelled": StatusDisplay("Cancelado", "bg-red-500"),
    },
    PaymentMethodType: {
        "pix": StatusDisplay("PIX", "bg-teal-500"),
        "credit_card": StatusDisplay("Cartão de Crédito", "bg-indigo-500"),
        "cash": StatusDisplay("Dinheiro", "bg-lime-500"),
    },
}

UNKNOWN_DISPLAY = StatusDisplay("Desconhecido", "bg-gray-500")


def display_for(status: Enum) -> StatusDisplay:
    return STATUS_DISPLAY.get(type(status), {}).get(status.value, UNKNOWN_DISPLAY)


# fulfillment moves forward only, cancelled is reachable from anything not delivered
_FULFILLMENT_ORDER = [
    FulfillmentStatus.PENDING,
    FulfillmentStatus.PROCESSING,
    FulfillmentStatus.DELIVERING,
    FulfillmentStatus.DELIVERED,
]

TERMINAL_FULFILLMENT = frozenset({FulfillmentStatus.DELIVERED, FulfillmentStatus.CANCELLED})

PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.PENDING}),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.PENDING}),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED: frozenset(),
}


def can_move_fulfillment(current: FulfillmentStatus, new: FulfillmentStatus) -> bool:
    if current in TERMINAL_FULFILLMENT:
        return False
    if new is FulfillmentStatus.CANCELLED:
        return True
    return _FULFILLMENT_ORDER.index(new) > _FULFILLMENT_ORDER.index(current)


def can_move_payment(current: PaymentStatus, new: PaymentStatus) -> bool:
    return new in PAYMENT_TRANSITIONS[current]
