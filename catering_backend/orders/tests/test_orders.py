# orders/tests/test_orders.py

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from catalog.models import MenuItem
from catalog.services.customers import ensure_pos_customer
from orders.models import Order, OrderItem
from orders.services.numbering import (
    generate_gateway_order_id,
    generate_invoice_number,
    generate_order_number,
)
from orders.services.order_lifecycle import can_transition, statuses_allowing


class NumberingTests(SimpleTestCase):
    def setUp(self):
        self.now = timezone.make_aware(datetime(2026, 3, 14, 9, 26, 53))

    def test_order_number_format(self):
        self.assertRegex(generate_order_number(self.now), r"^POS20260314-[0-9A-F]{8}$")

    def test_invoice_number_format(self):
        self.assertRegex(generate_invoice_number(self.now), r"^INV20260314-[0-9A-F]{8}$")

    def test_gateway_order_id_format(self):
        self.assertRegex(generate_gateway_order_id(self.now), r"^QRIS20260314092653-[0-9A-F]{6}$")

    def test_numbers_are_distinct(self):
        numbers = {generate_order_number(self.now) for _ in range(50)}
        self.assertEqual(len(numbers), 50)


class OrderLifecycleTests(SimpleTestCase):
    def test_qris_order_can_complete_or_cancel(self):
        self.assertTrue(can_transition(from_status=Order.STATUS_CONFIRMED, to_status=Order.STATUS_COMPLETED))
        self.assertTrue(can_transition(from_status=Order.STATUS_CONFIRMED, to_status=Order.STATUS_CANCELLED))

    def test_terminal_states_are_final(self):
        for state in (Order.STATUS_COMPLETED, Order.STATUS_CANCELLED):
            self.assertFalse(can_transition(from_status=state, to_status=Order.STATUS_CONFIRMED))
        self.assertFalse(can_transition(from_status=Order.STATUS_CANCELLED, to_status=Order.STATUS_COMPLETED))

    def test_settlement_reinstates_cancelled_order(self):
        self.assertTrue(
            can_transition(
                from_status=Order.STATUS_CANCELLED,
                to_status=Order.STATUS_COMPLETED,
                on_settlement=True,
            )
        )
        self.assertFalse(
            can_transition(
                from_status=Order.STATUS_COMPLETED,
                to_status=Order.STATUS_COMPLETED,
                on_settlement=True,
            )
        )
        self.assertFalse(
            can_transition(
                from_status=Order.STATUS_DRAFT,
                to_status=Order.STATUS_COMPLETED,
                on_settlement=True,
            )
        )

    def test_cancellable_statuses(self):
        self.assertEqual(
            statuses_allowing(Order.STATUS_CANCELLED),
            {Order.STATUS_DRAFT, Order.STATUS_CONFIRMED, Order.STATUS_IN_PROGRESS},
        )


class OrderItemTests(TestCase):
    def setUp(self):
        customer, _ = ensure_pos_customer()
        self.menu = MenuItem.objects.create(name="Nasi Box", price=Decimal("25000.00"))
        self.order = Order.objects.create(
            order_number="POS20260314-0000BEEF",
            customer=customer,
            order_date=timezone.now(),
            total=Decimal("75000.00"),
        )

    def test_total_is_computed_on_create(self):
        item = OrderItem.objects.create(
            order=self.order,
            menu=self.menu,
            quantity=3,
            unit_price=Decimal("25000.00"),
        )

        self.assertEqual(item.total, Decimal("75000.00"))

    def test_items_are_immutable(self):
        item = OrderItem.objects.create(
            order=self.order,
            menu=self.menu,
            quantity=1,
            unit_price=Decimal("25000.00"),
        )

        item.quantity = 2
        with self.assertRaises(ValueError):
            item.save()

    def test_balance_due(self):
        self.order.paid_amount = Decimal("25000.00")
        self.assertEqual(self.order.balance_due, Decimal("50000.00"))
