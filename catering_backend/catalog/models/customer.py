# catalog/models/customer.py

import uuid

from django.db import models


class Customer(models.Model):
    """
    Catering customer.

    The PoS sells to a dedicated walk-in record whose name matches
    settings.POS_CUSTOMER_NAME ("Customer PoS" by default).
    """

    TYPE_INDIVIDUAL = "individual"
    TYPE_COMPANY = "company"
    TYPE_GOVERNMENT = "government"
    TYPE_NGO = "ngo"

    TYPE_CHOICES = [
        (TYPE_INDIVIDUAL, "Individual"),
        (TYPE_COMPANY, "Company"),
        (TYPE_GOVERNMENT, "Government"),
        (TYPE_NGO, "NGO"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255, db_index=True)
    phone = models.CharField(max_length=40, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")

    type = models.CharField(max_length=16, choices=TYPE_CHOICES, default=TYPE_INDIVIDUAL)
    company_name = models.CharField(max_length=255, blank=True, default="")

    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name
