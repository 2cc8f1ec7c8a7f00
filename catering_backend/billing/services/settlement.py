# billing/services/settlement.py

"""
INVOICE SETTLEMENT (PAID TRANSITION)

Purpose:
- Move a pending QRIS invoice to PAID exactly once, whichever path gets there
  first (gateway webhook, duplicate webhook, cancel racing a late payment).
- Finalize the linked order and record the QRIS Payment row.

Hard rules:
- The transition is a compare-and-set: UPDATE ... WHERE status != 'paid'.
  Only the caller whose update hits a row is the winner.
- Only the winner writes the Payment and touches the order, so there is
  never more than one QRIS Payment per invoice.
- Runs inside one transaction with the invoice row locked.
- The order only moves to COMPLETED where the order lifecycle allows it
  (confirmed, delivered, or cancelled by a late payment); the money is
  recorded either way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from billing.models import Invoice, Payment
from orders.models import Order
from orders.services.order_lifecycle import can_transition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettlementResult:
    invoice: Invoice
    newly_paid: bool


@transaction.atomic
def mark_invoice_paid(
    *,
    invoice_id,
    transaction_id: str = "",
    payload: dict | None = None,
    source: str = "webhook",
) -> SettlementResult:
    invoice = Invoice.objects.select_for_update().get(pk=invoice_id)
    now = timezone.now()

    updated = (
        Invoice.objects.filter(pk=invoice.pk)
        .exclude(status=Invoice.STATUS_PAID)
        .update(
            status=Invoice.STATUS_PAID,
            gateway_transaction_id=str(transaction_id or ""),
            payment_details=payload or {},
            paid_at=now,
            updated_at=now,
        )
    )

    invoice.refresh_from_db()

    if not updated:
        logger.info(
            "Invoice already paid, settlement skipped",
            extra={"invoice_id": str(invoice.id), "source": source},
        )
        return SettlementResult(invoice=invoice, newly_paid=False)

    order = Order.objects.select_for_update().get(pk=invoice.order_id)

    order.paid_amount = order.total
    update_fields = ["paid_amount", "updated_at"]

    if can_transition(from_status=order.status, to_status=Order.STATUS_COMPLETED, on_settlement=True):
        if order.status == Order.STATUS_CANCELLED:
            logger.warning(
                "Payment received for a cancelled order, reinstating it",
                extra={"order_id": str(order.id), "invoice_id": str(invoice.id)},
            )
        order.status = Order.STATUS_COMPLETED
        update_fields.append("status")
    else:
        logger.error(
            "Settled invoice left order status unchanged",
            extra={"order_id": str(order.id), "invoice_id": str(invoice.id), "status": order.status},
        )

    order.save(update_fields=update_fields)

    Payment.objects.create(
        order=order,
        invoice=invoice,
        session=order.register_session,
        payment_date=now,
        amount=invoice.total_amount,
        method=Payment.METHOD_QRIS,
        payment_type=Payment.TYPE_FULL,
        reference_number=str(transaction_id or invoice.gateway_order_id or ""),
        notes=f"QRIS {invoice.gateway_order_id or order.order_number}",
    )

    logger.info(
        "Invoice settled",
        extra={
            "invoice_id": str(invoice.id),
            "order_id": str(order.id),
            "transaction_id": str(transaction_id or ""),
            "source": source,
        },
    )
    return SettlementResult(invoice=invoice, newly_paid=True)
