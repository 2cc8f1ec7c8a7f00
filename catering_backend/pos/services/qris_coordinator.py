# pos/services/qris_coordinator.py

"""
QRIS PAYMENT COORDINATOR

Flow:
1) charge the gateway for the cart total (no records yet)
2) pull the QR image URL out of the charge response
3) write Order (confirmed, unpaid) + items + Invoice (sent, gateway_order_id)
   in one transaction; the attempt is now AWAITING_PAYMENT and the cart is kept
4) confirmation arrives either by operator poll (check_payment_status) or by
   the webhook, which this terminal observes on its next read
   (sync_pending_qris)
5) cancel deletes the pending invoice (best effort) and cancels the order;
   the cart stays so the cashier can take another payment method

Hard rules:
- A gateway failure writes nothing and leaves the cart untouched.
- The invoice's paid transition is owned by billing.services.settlement;
  this module only reads it, so poll / webhook / cancel can interleave freely.
- Cancel locks the invoice row; a payment that won the race is confirmed
  instead of cancelled.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from billing.models import Invoice
from gateway.services.midtrans import GatewayError, create_qris_charge, extract_qr_code_url
from orders.models import Order
from orders.services.numbering import generate_gateway_order_id
from orders.services.order_lifecycle import statuses_allowing
from pos.services.checkout_orchestrator import (
    CheckoutResult,
    require_open_session_locked,
    build_receipt,
    create_pos_order_records,
)
from pos.services.exceptions import NoPendingPaymentError
from pos.services.terminal import (
    PAYMENT_QRIS,
    QRIS_AWAITING_PAYMENT,
    QRIS_CANCELLED,
    QRIS_CHARGE_REQUESTED,
    QRIS_CONFIRMED,
    QRIS_FAILED,
    PosTerminal,
    QrisAttempt,
)

logger = logging.getLogger(__name__)

STATUS_PAID = "paid"
STATUS_PENDING = "pending"
STATUS_CANCELLED = "cancelled"


# ============================================================
# START
# ============================================================


def start_qris_checkout(*, user, terminal: PosTerminal, customer) -> CheckoutResult:
    total = terminal.cart.total()
    attempt = QrisAttempt(gateway_order_id=generate_gateway_order_id(), amount=str(total))
    terminal.qris = attempt
    terminal.checkout_dialog_open = True

    attempt.transition(QRIS_CHARGE_REQUESTED)

    try:
        charge = create_qris_charge(
            gateway_order_id=attempt.gateway_order_id,
            gross_amount=total,
            customer_name=customer.name,
            customer_email=customer.email,
        )
        qr_code_url = extract_qr_code_url(charge)
    except GatewayError as exc:
        attempt.transition(QRIS_FAILED, str(exc))
        logger.warning(
            "QRIS charge failed",
            extra={"gateway_order_id": attempt.gateway_order_id, "error": str(exc)},
        )
        raise

    try:
        with transaction.atomic():
            session = require_open_session_locked(user)
            order, invoice = create_pos_order_records(
                user=user,
                session=session,
                customer=customer,
                cart=terminal.cart,
                order_status=Order.STATUS_CONFIRMED,
                payment_type=Order.PAYMENT_QRIS,
                paid=False,
                invoice_status=Invoice.STATUS_SENT,
                gateway_order_id=attempt.gateway_order_id,
            )
    except Exception as exc:
        attempt.transition(QRIS_FAILED, str(exc))
        raise

    attempt.order_id = str(order.id)
    attempt.order_number = order.order_number
    attempt.invoice_id = str(invoice.id)
    attempt.qr_code_url = qr_code_url
    attempt.transition(QRIS_AWAITING_PAYMENT)

    logger.info(
        "QRIS payment awaiting confirmation",
        extra={
            "gateway_order_id": attempt.gateway_order_id,
            "order_id": attempt.order_id,
            "invoice_id": attempt.invoice_id,
            "total": attempt.amount,
        },
    )

    return CheckoutResult(
        payment_method=PAYMENT_QRIS,
        order=order,
        invoice=invoice,
        qris=attempt.to_dict(),
    )


# ============================================================
# CONFIRMATION
# ============================================================


def _confirm(terminal: PosTerminal, invoice: Invoice) -> dict:
    order = Order.objects.select_related("customer", "cashier").get(pk=invoice.order_id)
    receipt = build_receipt(order=order, invoice=invoice, payment_method=PAYMENT_QRIS)

    terminal.qris.transition(QRIS_CONFIRMED)
    terminal.reset_after_sale(receipt, reset_customer=True)

    logger.info(
        "QRIS payment confirmed",
        extra={"gateway_order_id": terminal.qris.gateway_order_id, "order_id": str(order.id)},
    )
    return receipt


def _mark_cancelled(terminal: PosTerminal, message: str) -> None:
    terminal.qris.transition(QRIS_CANCELLED, message)
    terminal.checkout_dialog_open = False


def _pending_attempt(terminal: PosTerminal) -> QrisAttempt:
    if not terminal.has_pending_qris:
        raise NoPendingPaymentError("There is no QRIS payment awaiting confirmation")
    return terminal.qris


def check_payment_status(*, terminal: PosTerminal) -> str:
    """
    Operator poll. Returns "paid", "pending" or "cancelled".
    """
    attempt = _pending_attempt(terminal)
    invoice = Invoice.objects.filter(id=attempt.invoice_id).first()

    if invoice is None or invoice.status == Invoice.STATUS_CANCELLED:
        _mark_cancelled(terminal, "Pending invoice no longer exists")
        return STATUS_CANCELLED

    if invoice.status == Invoice.STATUS_PAID:
        _confirm(terminal, invoice)
        return STATUS_PAID

    return STATUS_PENDING


def sync_pending_qris(terminal: PosTerminal) -> bool:
    """
    Apply a confirmation that happened elsewhere (webhook). Returns True when
    the terminal changed.
    """
    if not terminal.has_pending_qris:
        return False
    return check_payment_status(terminal=terminal) != STATUS_PENDING


# ============================================================
# CANCEL
# ============================================================


def cancel_qris_payment(*, terminal: PosTerminal) -> str:
    """
    Returns "cancelled", or "paid" when the payment arrived first.
    """
    attempt = _pending_attempt(terminal)

    with transaction.atomic():
        invoice = Invoice.objects.select_for_update().filter(id=attempt.invoice_id).first()

        if invoice is not None and invoice.status == Invoice.STATUS_PAID:
            paid_invoice = invoice
        else:
            paid_invoice = None
            Order.objects.filter(
                id=attempt.order_id,
                status__in=statuses_allowing(Order.STATUS_CANCELLED),
            ).update(status=Order.STATUS_CANCELLED, updated_at=timezone.now())

            if invoice is not None:
                try:
                    with transaction.atomic():
                        invoice.delete()
                except DatabaseError:
                    logger.exception(
                        "Failed to delete pending QRIS invoice",
                        extra={"invoice_id": attempt.invoice_id},
                    )

    if paid_invoice is not None:
        _confirm(terminal, paid_invoice)
        return STATUS_PAID

    _mark_cancelled(terminal, "Cancelled by cashier")
    logger.info(
        "QRIS payment cancelled",
        extra={"gateway_order_id": attempt.gateway_order_id, "order_id": attempt.order_id},
    )
    return STATUS_CANCELLED


# ============================================================
# EXPIRY
# ============================================================


def expire_stale_qris(*, now=None, ttl_minutes: int | None = None) -> int:
    """
    Cancel QRIS orders whose invoice stayed unpaid longer than the TTL.

    Invoices are kept (status cancelled) for audit; a terminal still showing
    the attempt sees it as cancelled on its next read.
    """
    now = now or timezone.now()
    if ttl_minutes is None:
        ttl_minutes = int(getattr(settings, "QRIS_PENDING_TTL_MINUTES", 60))
    cutoff = now - timedelta(minutes=ttl_minutes)

    stale_ids = list(
        Invoice.objects.filter(
            gateway_order_id__isnull=False,
            status=Invoice.STATUS_SENT,
            created_at__lt=cutoff,
        ).values_list("id", flat=True)
    )

    expired = 0
    for invoice_id in stale_ids:
        with transaction.atomic():
            invoice = (
                Invoice.objects.select_for_update()
                .filter(id=invoice_id, status=Invoice.STATUS_SENT)
                .first()
            )
            if invoice is None:
                continue

            invoice.status = Invoice.STATUS_CANCELLED
            invoice.notes = f"{invoice.notes} (QRIS expired)".strip()
            invoice.save(update_fields=["status", "notes", "updated_at"])

            Order.objects.filter(
                id=invoice.order_id,
                status__in=statuses_allowing(Order.STATUS_CANCELLED),
            ).update(status=Order.STATUS_CANCELLED, updated_at=now)

        expired += 1
        logger.info(
            "Expired stale QRIS invoice",
            extra={"invoice_id": str(invoice_id), "gateway_order_id": invoice.gateway_order_id},
        )

    return expired
