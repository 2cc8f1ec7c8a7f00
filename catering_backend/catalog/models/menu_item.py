# catalog/models/menu_item.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class MenuItem(models.Model):
    """
    A sellable menu entry (box, pax, portion, ...).

    Price rule:
    - price is the current selling price.
    - The PoS snapshots it into the cart line when the item is added, and the
      snapshot (not the live price) is what lands on the OrderItem.
    """

    UNIT_PORSI = "porsi"
    UNIT_BOX = "box"
    UNIT_PAX = "pax"
    UNIT_PAKET = "paket"
    UNIT_LOYANG = "loyang"
    UNIT_KG = "kg"
    UNIT_LITER = "liter"

    UNIT_CHOICES = [
        (UNIT_PORSI, "Porsi"),
        (UNIT_BOX, "Box"),
        (UNIT_PAX, "Pax"),
        (UNIT_PAKET, "Paket"),
        (UNIT_LOYANG, "Loyang"),
        (UNIT_KG, "Kg"),
        (UNIT_LITER, "Liter"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True, default="")
    sku = models.CharField(max_length=64, blank=True, default="")
    unit = models.CharField(max_length=16, choices=UNIT_CHOICES, default=UNIT_PORSI)

    price = models.DecimalField(max_digits=12, decimal_places=2)
    min_order = models.PositiveIntegerField(default=1)

    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def clean(self):
        if self.price is None or self.price < Decimal("0.00"):
            raise ValidationError({"price": "Price cannot be negative"})

    def __str__(self):
        return f"{self.name} | {self.price}"
