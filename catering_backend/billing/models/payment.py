# billing/models/payment.py

import uuid
from decimal import Decimal

from django.db import models


class Payment(models.Model):
    """
    Money received (or refunded) against an order / invoice.

    References are weak (SET_NULL): a payment row survives the deletion of
    the invoice it settled. session ties cash payments to the drawer that
    took them, which is what expected cash is computed from.
    """

    METHOD_CASH = "cash"
    METHOD_BANK_TRANSFER = "bank_transfer"
    METHOD_QRIS = "qris"
    METHOD_OTHER = "other"

    METHOD_CHOICES = [
        (METHOD_CASH, "Cash"),
        (METHOD_BANK_TRANSFER, "Bank Transfer"),
        (METHOD_QRIS, "QRIS"),
        (METHOD_OTHER, "Other"),
    ]

    TYPE_FULL = "full_payment"
    TYPE_DOWN_PAYMENT = "down_payment"
    TYPE_INSTALLMENT = "installment"
    TYPE_REFUND = "refund"

    TYPE_CHOICES = [
        (TYPE_FULL, "Full Payment"),
        (TYPE_DOWN_PAYMENT, "Down Payment"),
        (TYPE_INSTALLMENT, "Installment"),
        (TYPE_REFUND, "Refund"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
    )
    invoice = models.ForeignKey(
        "billing.Invoice",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
    )
    session = models.ForeignKey(
        "cash_register.RegisterSession",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
    )

    payment_date = models.DateTimeField()
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    method = models.CharField(max_length=16, choices=METHOD_CHOICES, default=METHOD_CASH)
    payment_type = models.CharField(max_length=16, choices=TYPE_CHOICES, default=TYPE_FULL)

    reference_number = models.CharField(max_length=128, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-payment_date"]

    def __str__(self):
        return f"{self.method} | {self.amount} | {self.reference_number}"
