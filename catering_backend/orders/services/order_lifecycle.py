"""
ORDER LIFECYCLE DOMAIN RULES

Allowed status transitions for Order entities. Services that move an
order's status (QRIS settlement, cancel, expiry) ask these rules first.

DESIGN PRINCIPLES:
- No database writes
- No side effects
- Single source of truth
"""

from orders.models import Order

# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    Order.STATUS_COMPLETED,
    Order.STATUS_CANCELLED,
}

ALLOWED_TRANSITIONS = {
    Order.STATUS_DRAFT: {
        Order.STATUS_CONFIRMED,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_CONFIRMED: {
        Order.STATUS_IN_PROGRESS,
        Order.STATUS_COMPLETED,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_IN_PROGRESS: {
        Order.STATUS_DELIVERED,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_DELIVERED: {
        Order.STATUS_COMPLETED,
    },
}

# A gateway payment confirmed for a cancelled QRIS order reinstates it.
SETTLEMENT_TRANSITIONS = {
    Order.STATUS_CANCELLED: {
        Order.STATUS_COMPLETED,
    },
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str, on_settlement: bool = False) -> bool:
    if on_settlement and to_status in SETTLEMENT_TRANSITIONS.get(from_status, set()):
        return True

    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def statuses_allowing(target_status: str) -> set[str]:
    """
    Source states from which target_status may be reached.
    """
    return {
        from_status
        for from_status, targets in ALLOWED_TRANSITIONS.items()
        if target_status in targets and from_status not in TERMINAL_STATES
    }
