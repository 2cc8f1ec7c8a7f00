# orders/models/order_item.py

import uuid
from decimal import Decimal

from django.db import models


class OrderItem(models.Model):
    """
    Immutable order line.

    unit_price is the price snapshotted when the item entered the cart;
    total = unit_price * quantity.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    menu = models.ForeignKey(
        "catalog.MenuItem",
        on_delete=models.PROTECT,
        related_name="order_items",
    )

    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Order items are immutable")
        self.total = (self.unit_price or Decimal("0.00")) * int(self.quantity or 0)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.menu_id} x{self.quantity}"
