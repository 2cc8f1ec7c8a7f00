# pos/services/terminal_store.py

"""
Terminal persistence, one TerminalState row per operator.

An idle terminal older than POS_TERMINAL_TTL_SECONDS starts fresh on the
next read, unless it still holds a QRIS attempt awaiting payment: that
attempt points at real order / invoice rows and stays until it is
confirmed, cancelled or expired.
"""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from pos.models import TerminalState
from pos.services.terminal import PosTerminal


def _ttl() -> int:
    return int(getattr(settings, "POS_TERMINAL_TTL_SECONDS", 60 * 60 * 12))


def _is_idle(row: TerminalState) -> bool:
    return row.updated_at < timezone.now() - timedelta(seconds=_ttl())


def load_terminal(user) -> PosTerminal:
    row = TerminalState.objects.filter(user=user).first()
    if row is None:
        return PosTerminal.from_dict(None)

    terminal = PosTerminal.from_dict(row.state)
    if _is_idle(row) and not terminal.has_pending_qris:
        return PosTerminal.from_dict(None)
    return terminal


def save_terminal(user, terminal: PosTerminal) -> None:
    TerminalState.objects.update_or_create(
        user=user,
        defaults={"state": terminal.to_dict()},
    )
