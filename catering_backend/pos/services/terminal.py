"""
PATH: pos/services/terminal.py

POS TERMINAL CONTEXT

Everything the cashier's screen holds between requests:
- the cart
- selected customer and payment method
- whether the payment dialog is open
- the current QRIS attempt (if any)
- the last receipt

The QRIS attempt lives here (not in a local variable of the request that
created it) so confirmation that arrives later, by operator poll or by the
webhook observed on the next terminal read, always acts on the current state.

QRIS attempt states:
    INIT -> CHARGE_REQUESTED -> AWAITING_PAYMENT -> CONFIRMED | CANCELLED | FAILED
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import Decimal

from django.utils import timezone

from pos.services.cart import Cart
from pos.services.exceptions import InvalidPaymentMethodError, PaymentPendingError

PAYMENT_CASH = "cash"
PAYMENT_QRIS = "qris"
PAYMENT_OTHER = "other"

PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_QRIS, PAYMENT_OTHER)

QRIS_INIT = "INIT"
QRIS_CHARGE_REQUESTED = "CHARGE_REQUESTED"
QRIS_AWAITING_PAYMENT = "AWAITING_PAYMENT"
QRIS_CONFIRMED = "CONFIRMED"
QRIS_CANCELLED = "CANCELLED"
QRIS_FAILED = "FAILED"

QRIS_FINAL_STATES = {QRIS_CONFIRMED, QRIS_CANCELLED, QRIS_FAILED}


def normalize_payment_method(method: str | None) -> str:
    m = (method or PAYMENT_CASH).strip().lower()
    if m not in PAYMENT_METHODS:
        raise InvalidPaymentMethodError(f"Unsupported payment method: {m}")
    return m


@dataclass
class QrisAttempt:
    gateway_order_id: str
    amount: str
    state: str = QRIS_INIT
    order_id: str | None = None
    order_number: str | None = None
    invoice_id: str | None = None
    qr_code_url: str | None = None
    message: str = ""
    created_at: str = field(default_factory=lambda: timezone.now().isoformat())

    @property
    def is_pending(self) -> bool:
        return self.state == QRIS_AWAITING_PAYMENT

    @property
    def amount_decimal(self) -> Decimal:
        return Decimal(self.amount)

    def transition(self, state: str, message: str = "") -> None:
        if self.state in QRIS_FINAL_STATES:
            return
        self.state = state
        self.message = message

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict | None) -> "QrisAttempt | None":
        if not data:
            return None
        return cls(**data)


class PosTerminal:
    def __init__(
        self,
        *,
        cart: Cart | None = None,
        customer_id: str | None = None,
        payment_method: str = PAYMENT_CASH,
        checkout_dialog_open: bool = False,
        qris: QrisAttempt | None = None,
        last_receipt: dict | None = None,
    ):
        self.cart = cart or Cart()
        self.customer_id = customer_id
        self.payment_method = payment_method
        self.checkout_dialog_open = checkout_dialog_open
        self.qris = qris
        self.last_receipt = last_receipt

    @property
    def has_pending_qris(self) -> bool:
        return self.qris is not None and self.qris.is_pending

    def select_customer(self, customer_id) -> None:
        self.customer_id = str(customer_id) if customer_id else None

    def set_payment_method(self, method: str) -> None:
        self.payment_method = normalize_payment_method(method)

    def ensure_not_pending(self) -> None:
        if self.has_pending_qris:
            raise PaymentPendingError(
                "A QRIS payment is still awaiting confirmation. Check its status or cancel it first."
            )

    def dismiss_payment_dialog(self) -> None:
        self.ensure_not_pending()
        self.checkout_dialog_open = False

    def reset_after_sale(self, receipt: dict, *, reset_customer: bool = False) -> None:
        self.cart.clear()
        self.checkout_dialog_open = False
        self.payment_method = PAYMENT_CASH
        self.last_receipt = receipt
        if reset_customer:
            self.customer_id = None

    def to_dict(self) -> dict:
        return {
            "cart": self.cart.to_dict(),
            "customer_id": self.customer_id,
            "payment_method": self.payment_method,
            "checkout_dialog_open": self.checkout_dialog_open,
            "qris": self.qris.to_dict() if self.qris else None,
            "last_receipt": self.last_receipt,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "PosTerminal":
        data = data or {}
        return cls(
            cart=Cart.from_dict(data.get("cart")),
            customer_id=data.get("customer_id"),
            payment_method=data.get("payment_method") or PAYMENT_CASH,
            checkout_dialog_open=bool(data.get("checkout_dialog_open")),
            qris=QrisAttempt.from_dict(data.get("qris")),
            last_receipt=data.get("last_receipt"),
        )
