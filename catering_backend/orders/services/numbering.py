# orders/services/numbering.py

"""
DOCUMENT NUMBERS

Formats:
- Order:          POS<yyyymmdd>-<8 hex>
- Invoice:        INV<yyyymmdd>-<8 hex>
- Gateway order:  QRIS<yyyymmddHHMMSS>-<6 hex>

The random suffix makes collisions negligible; the unique constraints on
order_number / invoice_number / gateway_order_id remain the final guard.
"""

from __future__ import annotations

import secrets

from django.utils import timezone


def _stamp(fmt: str, now=None) -> str:
    now = timezone.localtime(now or timezone.now())
    return now.strftime(fmt)


def generate_order_number(now=None) -> str:
    return f"POS{_stamp('%Y%m%d', now)}-{secrets.token_hex(4).upper()}"


def generate_invoice_number(now=None) -> str:
    return f"INV{_stamp('%Y%m%d', now)}-{secrets.token_hex(4).upper()}"


def generate_gateway_order_id(now=None) -> str:
    return f"QRIS{_stamp('%Y%m%d%H%M%S', now)}-{secrets.token_hex(3).upper()}"
