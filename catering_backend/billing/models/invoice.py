"""
PATH: billing/models/invoice.py

INVOICE MODEL

Rules:
- One invoice per PoS order.
- gateway_order_id links a QRIS invoice to the payment gateway's order id;
  it is unique when set.
- The transition to PAID happens exactly once (see
  billing/services/settlement.py); payment_details keeps the raw gateway
  notification as the audit payload.
"""

import uuid
from decimal import Decimal

from django.db import models


class Invoice(models.Model):
    STATUS_DRAFT = "draft"
    STATUS_SENT = "sent"
    STATUS_PARTIAL = "partial"
    STATUS_PAID = "paid"
    STATUS_OVERDUE = "overdue"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_SENT, "Sent"),
        (STATUS_PARTIAL, "Partial"),
        (STATUS_PAID, "Paid"),
        (STATUS_OVERDUE, "Overdue"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice_number = models.CharField(max_length=64, unique=True)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="invoices",
    )

    invoice_date = models.DateField()
    due_date = models.DateField()

    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(
        max_length=16,
        choices=STATUS_CHOICES,
        default=STATUS_DRAFT,
        db_index=True,
    )

    gateway_order_id = models.CharField(
        max_length=64,
        unique=True,
        null=True,
        blank=True,
        help_text="Payment gateway order id (QRIS)",
    )
    gateway_transaction_id = models.CharField(max_length=128, blank=True, default="")
    payment_details = models.JSONField(default=dict, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    @property
    def is_paid(self) -> bool:
        return self.status == self.STATUS_PAID

    def __str__(self):
        return f"{self.invoice_number} | {self.status} | {self.total_amount}"
