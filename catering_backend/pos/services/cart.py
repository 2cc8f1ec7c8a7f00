# pos/services/cart.py

"""
CART ENGINE

Pure in-memory cart for one PoS terminal. No database access, no I/O.

Rules:
- One line per menu item; adding the same menu again bumps its quantity.
- Quantity never drops below 1. Decrementing a line at 1 leaves it at 1;
  only remove_item() drops a line.
- unit_price is the menu price snapshotted when the line was created.
- Tax is always 0 on the PoS, so total == subtotal.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


class CartLineNotFound(LookupError):
    pass


@dataclass(frozen=True)
class MenuSnapshot:
    menu_id: str
    name: str
    unit_price: Decimal

    @classmethod
    def from_menu(cls, menu) -> "MenuSnapshot":
        return cls(menu_id=str(menu.id), name=menu.name, unit_price=_money(menu.price))


@dataclass
class CartLine:
    item: MenuSnapshot
    quantity: int = 1
    line_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def line_total(self) -> Decimal:
        return _money(self.item.unit_price * self.quantity)

    def to_dict(self) -> dict:
        return {
            "line_id": self.line_id,
            "menu_id": self.item.menu_id,
            "name": self.item.name,
            "unit_price": str(self.item.unit_price),
            "quantity": self.quantity,
            "line_total": str(self.line_total),
        }


class Cart:
    def __init__(self, lines: list[CartLine] | None = None):
        self._lines: list[CartLine] = list(lines or [])

    # ---------------- queries ----------------
    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    def subtotal(self) -> Decimal:
        return _money(sum((line.line_total for line in self._lines), Decimal("0.00")))

    def total(self) -> Decimal:
        return self.subtotal()

    def _find(self, line_id: str) -> CartLine | None:
        for line in self._lines:
            if line.line_id == line_id:
                return line
        return None

    # ---------------- mutations ----------------
    def add_item(self, item: MenuSnapshot) -> CartLine:
        for line in self._lines:
            if line.item.menu_id == item.menu_id:
                line.quantity += 1
                return line

        line = CartLine(item=item, quantity=1)
        self._lines.append(line)
        return line

    def change_quantity(self, line_id: str, delta: int) -> CartLine:
        line = self._find(line_id)
        if line is None:
            raise CartLineNotFound(f"Cart line {line_id} not found")

        line.quantity = max(1, line.quantity + int(delta))
        return line

    def remove_item(self, line_id: str) -> None:
        self._lines = [line for line in self._lines if line.line_id != line_id]

    def clear(self) -> None:
        self._lines = []

    # ---------------- serialization ----------------
    def to_dict(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self._lines],
            "item_count": self.item_count,
            "subtotal": str(self.subtotal()),
            "tax": "0.00",
            "total": str(self.total()),
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "Cart":
        lines = []
        for raw in (data or {}).get("lines") or []:
            lines.append(
                CartLine(
                    line_id=raw["line_id"],
                    item=MenuSnapshot(
                        menu_id=raw["menu_id"],
                        name=raw["name"],
                        unit_price=_money(raw["unit_price"]),
                    ),
                    quantity=max(1, int(raw.get("quantity") or 1)),
                )
            )
        return cls(lines)
