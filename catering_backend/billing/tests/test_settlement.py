# billing/tests/test_settlement.py

"""
SETTLEMENT TESTS

GUARANTEES:
- An invoice becomes PAID exactly once
- Only the winning settlement writes a QRIS Payment
- The order is finalized (paid in full, completed), even after a cancel
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone

from billing.models import Invoice, Payment
from billing.services.settlement import mark_invoice_paid
from cash_register.services.register_service import expected_cash, open_session
from catalog.services.customers import ensure_pos_customer
from orders.models import Order

User = get_user_model()


class MarkInvoicePaidTests(TestCase):
    def setUp(self):
        self.cashier = User.objects.create_user(email="kasir@example.com", password="pass", role="cashier")
        self.session = open_session(self.cashier, Decimal("10000"))
        customer, _ = ensure_pos_customer()

        self.order = Order.objects.create(
            order_number="POS20260101-0000ABCD",
            customer=customer,
            order_date=timezone.now(),
            status=Order.STATUS_CONFIRMED,
            subtotal=Decimal("60000.00"),
            total=Decimal("60000.00"),
            payment_type=Order.PAYMENT_QRIS,
            cashier=self.cashier,
            register_session=self.session,
        )
        self.invoice = Invoice.objects.create(
            invoice_number="INV20260101-0000ABCD",
            order=self.order,
            invoice_date=date(2026, 1, 1),
            due_date=date(2026, 1, 1),
            amount=Decimal("60000.00"),
            total_amount=Decimal("60000.00"),
            status=Invoice.STATUS_SENT,
            gateway_order_id="QRIS20260101120000-ABC123",
        )

    def test_first_settlement_wins(self):
        result = mark_invoice_paid(
            invoice_id=self.invoice.id,
            transaction_id="trx-1",
            payload={"transaction_status": "settlement"},
        )

        self.assertTrue(result.newly_paid)
        self.assertTrue(result.invoice.is_paid)
        self.assertEqual(result.invoice.gateway_transaction_id, "trx-1")
        self.assertEqual(result.invoice.payment_details, {"transaction_status": "settlement"})
        self.assertIsNotNone(result.invoice.paid_at)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_COMPLETED)
        self.assertEqual(self.order.paid_amount, Decimal("60000.00"))
        self.assertEqual(self.order.balance_due, Decimal("0.00"))

        payment = Payment.objects.get()
        self.assertEqual(payment.method, Payment.METHOD_QRIS)
        self.assertEqual(payment.amount, Decimal("60000.00"))
        self.assertEqual(payment.invoice, self.invoice)
        self.assertEqual(payment.session, self.session)
        self.assertEqual(payment.reference_number, "trx-1")

    def test_second_settlement_is_noop(self):
        mark_invoice_paid(invoice_id=self.invoice.id, transaction_id="trx-1")
        first_paid_at = Invoice.objects.get(pk=self.invoice.pk).paid_at

        result = mark_invoice_paid(invoice_id=self.invoice.id, transaction_id="trx-2", source="poll")

        self.assertFalse(result.newly_paid)
        self.assertEqual(result.invoice.gateway_transaction_id, "trx-1")
        self.assertEqual(result.invoice.paid_at, first_paid_at)
        self.assertEqual(Payment.objects.count(), 1)

    def test_late_payment_reinstates_cancelled_order(self):
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_CANCELLED)

        result = mark_invoice_paid(invoice_id=self.invoice.id, transaction_id="trx-late")

        self.assertTrue(result.newly_paid)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_COMPLETED)
        self.assertEqual(Payment.objects.count(), 1)

    def test_order_outside_lifecycle_keeps_status_but_money_is_recorded(self):
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_DRAFT)

        result = mark_invoice_paid(invoice_id=self.invoice.id, transaction_id="trx-1")

        self.assertTrue(result.newly_paid)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_DRAFT)
        self.assertEqual(self.order.paid_amount, Decimal("60000.00"))
        self.assertEqual(Payment.objects.count(), 1)

    def test_reference_falls_back_to_gateway_order_id(self):
        mark_invoice_paid(invoice_id=self.invoice.id)

        self.assertEqual(Payment.objects.get().reference_number, "QRIS20260101120000-ABC123")

    def test_qris_payment_does_not_move_expected_cash(self):
        mark_invoice_paid(invoice_id=self.invoice.id, transaction_id="trx-1")

        self.assertEqual(expected_cash(self.session), Decimal("10000.00"))

    def test_unknown_invoice_raises(self):
        with self.assertRaises(Invoice.DoesNotExist):
            mark_invoice_paid(invoice_id=uuid.uuid4())
