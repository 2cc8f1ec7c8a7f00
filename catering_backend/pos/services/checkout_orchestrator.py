# pos/services/checkout_orchestrator.py

"""
CHECKOUT ORCHESTRATOR (APPLICATION SERVICE)

Purpose:
- Turn the operator's terminal cart into Order -> OrderItems -> Invoice
  (-> Payment for cash / other).
- Hand QRIS checkouts to the QRIS coordinator.

Preconditions (checked in this order, first failure wins, nothing written):
1) the operator has an open register session
2) the cart is not empty
3) a customer is resolved (terminal selection, else the walk-in customer)
A QRIS attempt still awaiting payment blocks any new checkout; that check
runs after the register gate.

Hard rules:
- All records of one sale are written in one DB transaction; a failure
  leaves no partial order behind.
- The register gate is re-checked inside that transaction (row lock).
- Money values are computed server-side from the cart snapshot; tax is 0.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.utils import timezone

from billing.models import Invoice, Payment
from cash_register.services.register_service import get_open_session
from catalog.models import MenuItem
from catalog.services.customers import resolve_customer
from orders.models import Order, OrderItem
from orders.services.numbering import generate_invoice_number, generate_order_number
from pos.services.exceptions import (
    EmptyCartError,
    MenuUnavailableError,
    NoCustomerError,
    RegisterClosedError,
)
from pos.services.terminal import (
    PAYMENT_OTHER,
    PAYMENT_QRIS,
    PosTerminal,
    normalize_payment_method,
)

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

POS_ORDER_NOTES = "Transaksi PoS"
POS_INVOICE_NOTES = "Invoice PoS"


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CheckoutContext:
    session: object
    customer: object


@dataclass(frozen=True)
class CheckoutResult:
    payment_method: str
    order: Order
    invoice: Invoice
    receipt: dict | None = None
    qris: dict | None = None


# ============================================================
# PRECONDITIONS
# ============================================================


def check_preconditions(*, user, terminal: PosTerminal) -> CheckoutContext:
    session = get_open_session(user)
    if session is None:
        raise RegisterClosedError(
            "Cash register is not open. Open it from the Cash Register menu first."
        )

    terminal.ensure_not_pending()

    if terminal.cart.is_empty:
        raise EmptyCartError("Cart is empty")

    customer = resolve_customer(terminal.customer_id)
    if customer is None:
        raise NoCustomerError(
            "PoS customer is not available. Create the walk-in customer first."
        )

    return CheckoutContext(session=session, customer=customer)


def require_open_session_locked(user):
    session = get_open_session(user, for_update=True)
    if session is None:
        raise RegisterClosedError("Cash register was closed before the sale was saved")
    return session


# ============================================================
# RECORD CREATION (shared with the QRIS path)
# ============================================================


def create_pos_order_records(
    *,
    user,
    session,
    customer,
    cart,
    order_status: str,
    payment_type: str,
    paid: bool,
    invoice_status: str,
    gateway_order_id: str | None = None,
) -> tuple[Order, Invoice]:
    """
    Write Order + OrderItems + Invoice. Must run inside a transaction.
    """
    lines = cart.lines
    menu_ids = [line.item.menu_id for line in lines]
    menus = {str(menu.id): menu for menu in MenuItem.objects.filter(id__in=menu_ids)}
    missing = [line.item.name for line in lines if line.item.menu_id not in menus]
    if missing:
        raise MenuUnavailableError(f"Menu no longer available: {', '.join(missing)}")

    now = timezone.now()
    today = timezone.localdate(now)
    subtotal = cart.subtotal()
    tax = Decimal("0.00")
    total = _money(subtotal + tax)

    order = Order.objects.create(
        order_number=generate_order_number(now),
        customer=customer,
        order_date=now,
        event_date=today,
        status=order_status,
        subtotal=subtotal,
        tax=tax,
        total=total,
        paid_amount=total if paid else Decimal("0.00"),
        payment_type=payment_type,
        notes=POS_ORDER_NOTES,
        cashier=user,
        register_session=session,
    )

    for line in lines:
        OrderItem.objects.create(
            order=order,
            menu=menus[line.item.menu_id],
            quantity=line.quantity,
            unit_price=line.item.unit_price,
        )

    invoice = Invoice.objects.create(
        invoice_number=generate_invoice_number(now),
        order=order,
        invoice_date=today,
        due_date=today,
        amount=total,
        tax_amount=tax,
        total_amount=order.total,
        status=invoice_status,
        gateway_order_id=gateway_order_id,
        paid_at=now if invoice_status == Invoice.STATUS_PAID else None,
        notes=POS_INVOICE_NOTES,
    )

    return order, invoice


# ============================================================
# RECEIPT
# ============================================================


def build_receipt(*, order: Order, invoice: Invoice, payment_method: str) -> dict:
    items = order.items.select_related("menu").all()
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "invoice_number": invoice.invoice_number if invoice else None,
        "date": timezone.localtime(order.order_date).isoformat(),
        "customer_name": order.customer.name,
        "cashier_name": order.cashier.display_name if order.cashier_id else "",
        "lines": [
            {
                "name": item.menu.name,
                "quantity": item.quantity,
                "unit_price": str(_money(item.unit_price)),
                "total": str(_money(item.total)),
            }
            for item in items
        ],
        "total": str(_money(order.total)),
        "payment_method": payment_method,
    }


# ============================================================
# CHECKOUT
# ============================================================


def checkout(*, user, terminal: PosTerminal, payment_method: str | None = None) -> CheckoutResult:
    method = normalize_payment_method(payment_method or terminal.payment_method)
    context = check_preconditions(user=user, terminal=terminal)

    if method == PAYMENT_QRIS:
        from pos.services.qris_coordinator import start_qris_checkout

        return start_qris_checkout(
            user=user,
            terminal=terminal,
            customer=context.customer,
        )

    return _checkout_manual(user=user, terminal=terminal, customer=context.customer, method=method)


def _checkout_manual(*, user, terminal: PosTerminal, customer, method: str) -> CheckoutResult:
    is_other = method == PAYMENT_OTHER

    with transaction.atomic():
        session = require_open_session_locked(user)

        order, invoice = create_pos_order_records(
            user=user,
            session=session,
            customer=customer,
            cart=terminal.cart,
            order_status=Order.STATUS_COMPLETED,
            payment_type=Order.PAYMENT_TRANSFER if is_other else Order.PAYMENT_CASH,
            paid=True,
            invoice_status=Invoice.STATUS_PAID,
        )

        Payment.objects.create(
            order=order,
            invoice=invoice,
            session=session,
            payment_date=order.order_date,
            amount=order.total,
            method=Payment.METHOD_BANK_TRANSFER if is_other else Payment.METHOD_CASH,
            payment_type=Payment.TYPE_FULL,
            reference_number=f"PoS Order {order.order_number}",
            notes=f"Kasir {user.display_name}",
        )

    receipt = build_receipt(order=order, invoice=invoice, payment_method=method)
    terminal.reset_after_sale(receipt)

    logger.info(
        "PoS sale completed",
        extra={
            "order_id": str(order.id),
            "order_number": order.order_number,
            "total": str(order.total),
            "payment_method": method,
            "session_id": str(session.id),
        },
    )

    return CheckoutResult(payment_method=method, order=order, invoice=invoice, receipt=receipt)
