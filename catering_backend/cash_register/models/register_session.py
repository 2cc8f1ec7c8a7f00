"""
PATH: cash_register/models/register_session.py

REGISTER SESSION MODEL

A cash drawer session: one operator opens the drawer with a counted float,
sells during the shift, and closes it with a counted balance.

Rules:
- At most one OPEN session per operator (database-enforced).
- Closing is irreversible; sessions are never deleted.
- expected_cash is stamped at close time from the session's cash payments.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models

User = settings.AUTH_USER_MODEL


class RegisterSession(models.Model):
    STATUS_OPEN = "open"
    STATUS_CLOSED = "closed"

    STATUS_CHOICES = [
        (STATUS_OPEN, "Open"),
        (STATUS_CLOSED, "Closed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    operator = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name="register_sessions",
        help_text="Cashier who opened the drawer",
    )

    opened_at = models.DateTimeField(auto_now_add=True)
    opening_balance = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    closed_at = models.DateTimeField(null=True, blank=True)
    closing_balance = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    expected_cash = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Opening balance + cash payments, stamped at close",
    )

    status = models.CharField(
        max_length=16,
        choices=STATUS_CHOICES,
        default=STATUS_OPEN,
        db_index=True,
    )

    notes = models.TextField(blank=True, default="")

    closed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="closed_register_sessions",
    )

    class Meta:
        ordering = ["-opened_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["operator"],
                condition=models.Q(status="open"),
                name="one_open_register_session_per_operator",
            )
        ]
        indexes = [
            models.Index(fields=["operator", "status"], name="register_operator_status_idx"),
        ]

    @property
    def is_open(self) -> bool:
        return self.status == self.STATUS_OPEN

    @property
    def variance(self) -> Decimal | None:
        if self.closing_balance is None or self.expected_cash is None:
            return None
        return self.closing_balance - self.expected_cash

    def __str__(self):
        return f"Register {self.operator_id} | {self.status} | {self.opened_at:%Y-%m-%d %H:%M}"
