# catalog/services/customers.py

"""
CUSTOMER RESOLUTION

The PoS never asks the cashier to pick a customer for walk-in sales.
When the terminal has no explicit selection, checkout falls back to the
shared walk-in record named settings.POS_CUSTOMER_NAME.
"""

from __future__ import annotations

import logging

from django.conf import settings

from catalog.models import Customer

logger = logging.getLogger(__name__)


def pos_customer_name() -> str:
    return (getattr(settings, "POS_CUSTOMER_NAME", "") or "Customer PoS").strip()


def resolve_pos_customer() -> Customer | None:
    """
    Return the walk-in customer, or None when it has not been created yet.
    """
    return (
        Customer.objects.filter(name=pos_customer_name(), is_active=True)
        .order_by("created_at")
        .first()
    )


def resolve_customer(customer_id=None) -> Customer | None:
    """
    Explicit selection wins; an unknown or inactive id falls back to walk-in.
    """
    if customer_id:
        customer = Customer.objects.filter(id=customer_id, is_active=True).first()
        if customer is not None:
            return customer
        logger.warning(
            "Selected customer not found, falling back to walk-in",
            extra={"customer_id": str(customer_id)},
        )

    return resolve_pos_customer()


def ensure_pos_customer() -> tuple[Customer, bool]:
    name = pos_customer_name()
    customer = Customer.objects.filter(name=name).order_by("created_at").first()
    if customer is not None:
        if not customer.is_active:
            customer.is_active = True
            customer.save(update_fields=["is_active", "updated_at"])
        return customer, False

    customer = Customer.objects.create(
        name=name,
        type=Customer.TYPE_INDIVIDUAL,
        notes="Walk-in customer used by the PoS terminal",
    )
    return customer, True
