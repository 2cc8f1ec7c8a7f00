# cash_register/services/register_service.py

"""
CASH REGISTER SESSION GATE

Purpose:
- Open / close the cash drawer for an operator.
- Tell the checkout whether a sale may be finalized.

Hard rules:
- One open session per operator. The partial unique constraint on
  RegisterSession is the final authority; the pre-check only produces a
  cleaner error.
- Closing is irreversible and requires notes.
- Only the opener (or a user with register.close_any) may close a session.
- expected_cash = opening_balance + cash taken - cash refunded, counting only
  payments recorded against the session.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.core.paginator import Paginator
from django.db import IntegrityError, transaction
from django.db.models import Q, Sum
from django.utils import timezone

from cash_register.models import RegisterSession
from cash_register.services.exceptions import (
    RegisterAlreadyClosedError,
    RegisterAlreadyOpenError,
    RegisterPermissionError,
)
from permissions.roles import CAP_REGISTER_CLOSE_ANY, has_capability

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
HISTORY_PAGE_SIZE = 10


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    try:
        return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValidationError("Amount must be a valid number") from exc


# ============================================================
# READ
# ============================================================


def get_open_session(operator, *, for_update: bool = False) -> RegisterSession | None:
    if operator is None or not getattr(operator, "pk", None):
        return None

    qs = RegisterSession.objects.filter(
        operator=operator,
        status=RegisterSession.STATUS_OPEN,
    )
    if for_update:
        qs = qs.select_for_update()

    return qs.order_by("-opened_at").first()


def expected_cash(session: RegisterSession) -> Decimal:
    """
    Opening float plus net cash recorded against this session.
    """
    from billing.models import Payment

    cash_qs = Payment.objects.filter(session=session, method=Payment.METHOD_CASH)
    totals = cash_qs.aggregate(
        taken=Sum("amount", filter=~Q(payment_type=Payment.TYPE_REFUND)),
        refunded=Sum("amount", filter=Q(payment_type=Payment.TYPE_REFUND)),
    )

    taken = _money(totals.get("taken"))
    refunded = _money(totals.get("refunded"))

    return _money(session.opening_balance) + taken - refunded


def close_preview(session: RegisterSession, counted=None) -> dict:
    expected = expected_cash(session)
    preview = {
        "session_id": str(session.id),
        "opening_balance": _money(session.opening_balance),
        "expected_cash": expected,
        "counted": None,
        "variance": None,
    }

    if counted not in (None, ""):
        counted_amount = _money(counted)
        preview["counted"] = counted_amount
        preview["variance"] = counted_amount - expected

    return preview


def session_history(operator, *, page: int = 1):
    """
    Paginated sessions of one operator, newest first.
    """
    qs = RegisterSession.objects.filter(operator=operator).order_by("-opened_at")
    return Paginator(qs, HISTORY_PAGE_SIZE).get_page(page)


# ============================================================
# WRITE
# ============================================================


def open_session(operator, opening_balance) -> RegisterSession:
    amount = _money(opening_balance)
    if amount < Decimal("0.00"):
        raise ValidationError({"opening_balance": "Opening balance cannot be negative"})

    try:
        with transaction.atomic():
            if get_open_session(operator, for_update=True) is not None:
                raise RegisterAlreadyOpenError("A register session is already open for this operator")

            session = RegisterSession.objects.create(
                operator=operator,
                opening_balance=amount,
                status=RegisterSession.STATUS_OPEN,
            )
    except IntegrityError as exc:
        # Concurrent open lost the race on the partial unique constraint.
        raise RegisterAlreadyOpenError(
            "A register session is already open for this operator"
        ) from exc

    logger.info(
        "Register session opened",
        extra={
            "session_id": str(session.id),
            "operator_id": str(operator.pk),
            "opening_balance": str(amount),
        },
    )
    return session


@transaction.atomic
def close_session(session: RegisterSession, closing_balance, *, actor, notes: str = "") -> RegisterSession:
    amount = _money(closing_balance)
    if amount < Decimal("0.00"):
        raise ValidationError({"closing_balance": "Closing balance cannot be negative"})

    notes = (notes or "").strip()
    if not notes:
        raise ValidationError({"notes": "Closing notes are required"})

    session = RegisterSession.objects.select_for_update().get(pk=session.pk)

    if session.operator_id != getattr(actor, "pk", None) and not has_capability(
        actor, CAP_REGISTER_CLOSE_ANY
    ):
        raise RegisterPermissionError("Only the operator who opened this register can close it")

    if session.status != RegisterSession.STATUS_OPEN:
        raise RegisterAlreadyClosedError("Register session is already closed")

    session.expected_cash = expected_cash(session)
    session.closing_balance = amount
    session.closed_at = timezone.now()
    session.closed_by = actor
    session.notes = notes
    session.status = RegisterSession.STATUS_CLOSED
    session.save(
        update_fields=[
            "expected_cash",
            "closing_balance",
            "closed_at",
            "closed_by",
            "notes",
            "status",
        ]
    )

    logger.info(
        "Register session closed",
        extra={
            "session_id": str(session.id),
            "closed_by": str(actor.pk),
            "closing_balance": str(amount),
            "expected_cash": str(session.expected_cash),
        },
    )
    return session
