# gateway/services/notifications.py

"""
WEBHOOK RECONCILER

Turns a verified Midtrans HTTP notification into an invoice settlement.

Rules:
- Success means transaction_status in {settlement, capture} AND
  fraud_status == accept. Everything else is acknowledged and ignored.
- Invoice lookup: gateway_order_id first, then an order whose order_number
  equals the notification order_id.
- Unknown invoices are acknowledged (the gateway must stop retrying).
- The paid transition itself is billing.services.settlement.mark_invoice_paid.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from billing.models import Invoice
from billing.services.settlement import mark_invoice_paid
from orders.models import Order

logger = logging.getLogger(__name__)

SUCCESS_TRANSACTION_STATUSES = {"settlement", "capture"}
ACCEPTED_FRAUD_STATUS = "accept"

OUTCOME_SETTLED = "settled"
OUTCOME_ALREADY_PAID = "already_paid"
OUTCOME_IGNORED = "ignored"
OUTCOME_NOT_FOUND = "not_found"


@dataclass(frozen=True)
class NotificationOutcome:
    outcome: str
    invoice_id: str | None = None

    @property
    def message(self) -> str:
        return {
            OUTCOME_SETTLED: "Payment recorded.",
            OUTCOME_ALREADY_PAID: "Invoice already paid.",
            OUTCOME_IGNORED: "Notification acknowledged, no action taken.",
            OUTCOME_NOT_FOUND: "Invoice not found, but notification acknowledged.",
        }[self.outcome]


def is_successful_payment(payload: dict) -> bool:
    transaction_status = str(payload.get("transaction_status") or "").strip().lower()
    fraud_status = str(payload.get("fraud_status") or "").strip().lower()
    return (
        transaction_status in SUCCESS_TRANSACTION_STATUSES
        and fraud_status == ACCEPTED_FRAUD_STATUS
    )


def find_invoice_for_gateway_order(order_id: str) -> Invoice | None:
    order_id = (order_id or "").strip()
    if not order_id:
        return None

    invoice = Invoice.objects.filter(gateway_order_id=order_id).first()
    if invoice is not None:
        return invoice

    order = Order.objects.filter(order_number=order_id).first()
    if order is None:
        return None

    invoice = Invoice.objects.filter(order=order).order_by("-created_at").first()
    if invoice is not None:
        logger.info(
            "Invoice found via order_number fallback",
            extra={"gateway_order_id": order_id, "invoice_id": str(invoice.id)},
        )
    return invoice


def process_notification(payload: dict) -> NotificationOutcome:
    """
    Apply an already signature-verified notification.
    """
    order_id = str(payload.get("order_id") or "")

    if not is_successful_payment(payload):
        logger.info(
            "Ignoring non-settlement notification",
            extra={
                "gateway_order_id": order_id,
                "transaction_status": payload.get("transaction_status"),
                "fraud_status": payload.get("fraud_status"),
            },
        )
        return NotificationOutcome(OUTCOME_IGNORED)

    invoice = find_invoice_for_gateway_order(order_id)
    if invoice is None:
        logger.warning(
            "Invoice not found for gateway notification",
            extra={"gateway_order_id": order_id},
        )
        return NotificationOutcome(OUTCOME_NOT_FOUND)

    try:
        result = mark_invoice_paid(
            invoice_id=invoice.id,
            transaction_id=str(payload.get("transaction_id") or ""),
            payload=payload,
            source="webhook",
        )
    except Invoice.DoesNotExist:
        # Deleted by a concurrent cancel between lookup and lock.
        logger.warning(
            "Invoice disappeared before settlement",
            extra={"gateway_order_id": order_id, "invoice_id": str(invoice.id)},
        )
        return NotificationOutcome(OUTCOME_NOT_FOUND)

    return NotificationOutcome(
        OUTCOME_SETTLED if result.newly_paid else OUTCOME_ALREADY_PAID,
        invoice_id=str(result.invoice.id),
    )
