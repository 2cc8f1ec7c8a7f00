# orders/models/order.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models

User = settings.AUTH_USER_MODEL


class Order(models.Model):
    """
    Catering order (PoS counter sale or event booking).

    PoS rules:
    - Cash / transfer checkouts are written as COMPLETED and fully paid.
    - QRIS checkouts start CONFIRMED with paid_amount 0 and become COMPLETED
      once the gateway confirms settlement (or CANCELLED on cancel/expiry).
    - tax is always 0 on the PoS path.
    """

    STATUS_DRAFT = "draft"
    STATUS_CONFIRMED = "confirmed"
    STATUS_IN_PROGRESS = "in_progress"
    STATUS_DELIVERED = "delivered"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_IN_PROGRESS, "In Progress"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    PAYMENT_CASH = "cash"
    PAYMENT_TRANSFER = "transfer"
    PAYMENT_QRIS = "qris"
    PAYMENT_TEMPO = "tempo"

    PAYMENT_TYPE_CHOICES = [
        (PAYMENT_CASH, "Cash"),
        (PAYMENT_TRANSFER, "Transfer"),
        (PAYMENT_QRIS, "QRIS"),
        (PAYMENT_TEMPO, "Tempo"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_number = models.CharField(max_length=64, unique=True)

    customer = models.ForeignKey(
        "catalog.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
    )

    order_date = models.DateTimeField()
    event_date = models.DateField(null=True, blank=True)

    status = models.CharField(
        max_length=16,
        choices=STATUS_CHOICES,
        default=STATUS_DRAFT,
        db_index=True,
    )

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    payment_type = models.CharField(
        max_length=16,
        choices=PAYMENT_TYPE_CHOICES,
        default=PAYMENT_CASH,
    )

    notes = models.TextField(blank=True, default="")

    cashier = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    register_session = models.ForeignKey(
        "cash_register.RegisterSession",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-order_date"]
        indexes = [
            models.Index(fields=["order_date"], name="order_date_idx"),
        ]

    @property
    def balance_due(self) -> Decimal:
        return (self.total or Decimal("0.00")) - (self.paid_amount or Decimal("0.00"))

    def __str__(self):
        return f"{self.order_number} | {self.status} | {self.total}"
