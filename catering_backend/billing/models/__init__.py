from .invoice import Invoice
from .payment import Payment

__all__ = ["Invoice", "Payment"]
