"""
PATH: pos/models/terminal_state.py

POS TERMINAL STATE

One row per operator holding the serialized terminal: cart lines, customer
and payment method selection, the QRIS attempt and the last receipt.

Rules:
- The row is working state, not a business record; orders, invoices and
  payments are written by the checkout services.
- A pending QRIS attempt (invoice_id / order_id) must survive worker
  restarts and be visible from every process, which is why this lives in
  the database.
"""

import uuid

from django.conf import settings
from django.db import models

User = settings.AUTH_USER_MODEL


class TerminalState(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name="pos_terminal",
    )

    state = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at"]

    def __str__(self):
        return f"Terminal {self.user_id} | {self.updated_at}"
