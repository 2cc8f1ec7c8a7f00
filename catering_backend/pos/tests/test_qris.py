# pos/tests/test_qris.py

"""
QRIS PAYMENT FLOW TESTS

The gateway HTTP layer is mocked at the coordinator boundary
(pos.services.qris_coordinator.create_qris_charge); webhook deliveries are
signed with the test server key.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from billing.models import Invoice, Payment
from billing.services.settlement import mark_invoice_paid
from cash_register.services.register_service import close_session, open_session
from catalog.models import Customer, MenuItem
from catalog.services.customers import ensure_pos_customer
from gateway.services.midtrans import GatewayError, compute_notification_signature
from orders.models import Order
from pos.models import TerminalState
from pos.services.terminal_store import load_terminal, save_terminal

User = get_user_model()

SERVER_KEY = "SB-Mid-server-test-key"
MIDTRANS_TEST = {
    "SERVER_KEY": SERVER_KEY,
    "CLIENT_KEY": "SB-Mid-client-test-key",
    "IS_PRODUCTION": False,
    "TIMEOUT": 5,
}

CHARGE_PATH = "pos.services.qris_coordinator.create_qris_charge"
NOTIFICATION_URL = "/api/gateway/midtrans/notification/"


def _charge_response(order_id="ignored"):
    return {
        "status_code": "201",
        "transaction_status": "pending",
        "order_id": order_id,
        "actions": [
            {"name": "generate-qr-code", "method": "GET", "url": "https://qr.example/v1.png"},
            {"name": "generate-qr-code-v2", "method": "GET", "url": "https://qr.example/v2.png"},
        ],
    }


@override_settings(MIDTRANS=MIDTRANS_TEST)
class QrisFlowTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.gateway_client = APIClient()

        self.cashier = User.objects.create_user(email="kasir@example.com", password="pass", role="cashier")
        self.client.force_authenticate(self.cashier)

        self.walk_in, _ = ensure_pos_customer()
        self.rice_box = MenuItem.objects.create(name="Rice Box", price=Decimal("25000.00"))
        self.tea = MenuItem.objects.create(name="Tea", price=Decimal("5000.00"))

        self.session = open_session(self.cashier, Decimal("0.00"))

        for menu, times in ((self.rice_box, 3), (self.tea, 2)):
            for _ in range(times):
                self.client.post("/api/pos/terminal/items/", {"menu_id": str(menu.id)}, format="json")

    # --------------------------------------------------
    # Helpers
    # --------------------------------------------------

    def _start_qris(self):
        with mock.patch(CHARGE_PATH, return_value=_charge_response()) as charge:
            res = self.client.post("/api/pos/checkout/", {"payment_method": "qris"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        return res, charge

    def _notification(self, gateway_order_id, **overrides):
        body = {
            "order_id": gateway_order_id,
            "status_code": "200",
            "gross_amount": "85000.00",
            "transaction_status": "settlement",
            "fraud_status": "accept",
            "transaction_id": "trx-123",
            "payment_type": "qris",
        }
        body.update(overrides)
        body["signature_key"] = compute_notification_signature(
            order_id=body["order_id"],
            status_code=body["status_code"],
            gross_amount=body["gross_amount"],
            server_key=SERVER_KEY,
        )
        return body

    def _deliver(self, body):
        return self.gateway_client.post(NOTIFICATION_URL, body, format="json")

    def _cart_size(self):
        return len(load_terminal(self.cashier).cart.lines)

    # --------------------------------------------------
    # Start
    # --------------------------------------------------

    def test_start_creates_pending_records_and_keeps_cart(self):
        res, charge = self._start_qris()

        qris = res.data["qris"]
        self.assertEqual(qris["state"], "AWAITING_PAYMENT")
        self.assertEqual(qris["qr_code_url"], "https://qr.example/v2.png")
        self.assertRegex(qris["gateway_order_id"], r"^QRIS\d{14}-[0-9A-F]{6}$")

        kwargs = charge.call_args.kwargs
        self.assertEqual(kwargs["gateway_order_id"], qris["gateway_order_id"])
        self.assertEqual(kwargs["gross_amount"], Decimal("85000.00"))
        self.assertEqual(kwargs["customer_name"], "Customer PoS")

        order = Order.objects.get()
        self.assertEqual(order.status, Order.STATUS_CONFIRMED)
        self.assertEqual(order.payment_type, Order.PAYMENT_QRIS)
        self.assertEqual(order.paid_amount, Decimal("0.00"))

        invoice = Invoice.objects.get()
        self.assertEqual(invoice.status, Invoice.STATUS_SENT)
        self.assertEqual(invoice.gateway_order_id, qris["gateway_order_id"])
        self.assertEqual(Payment.objects.count(), 0)

        self.assertEqual(self._cart_size(), 2)
        self.assertTrue(res.data["terminal"]["checkout_dialog_open"])

    def test_gateway_failure_creates_nothing(self):
        with mock.patch(CHARGE_PATH, side_effect=GatewayError("Midtrans URLError: timed out")):
            res = self.client.post("/api/pos/checkout/", {"payment_method": "qris"}, format="json")

        self.assertEqual(res.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(res.data["error"]["code"], "gateway_error")
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(Invoice.objects.count(), 0)
        self.assertEqual(self._cart_size(), 2)
        self.assertEqual(load_terminal(self.cashier).qris.state, "FAILED")

    def test_missing_qr_action_creates_nothing(self):
        with mock.patch(CHARGE_PATH, return_value={"status_code": "201", "actions": []}):
            res = self.client.post("/api/pos/checkout/", {"payment_method": "qris"}, format="json")

        self.assertEqual(res.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(Invoice.objects.count(), 0)

    def test_closed_register_reported_before_pending_attempt(self):
        self._start_qris()
        close_session(self.session, Decimal("0.00"), actor=self.cashier, notes="Closed from another tab")

        res = self.client.post("/api/pos/checkout/", {"payment_method": "cash"}, format="json")

        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"]["code"], "register_closed")
        self.assertEqual(Order.objects.count(), 1)

    def test_pending_attempt_blocks_new_checkout_and_cart_changes(self):
        self._start_qris()

        res = self.client.post("/api/pos/checkout/", {"payment_method": "cash"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"]["code"], "payment_pending")

        res = self.client.post("/api/pos/terminal/clear/")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(self._cart_size(), 2)

    def test_dismiss_refused_while_pending(self):
        self._start_qris()

        res = self.client.post("/api/pos/qris/dismiss/")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"]["code"], "payment_pending")

    # --------------------------------------------------
    # Terminal persistence
    # --------------------------------------------------

    def test_pending_attempt_survives_cache_flush(self):
        self._start_qris()
        cache.clear()

        res = self.client.post("/api/pos/qris/check-status/")

        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(res.data["payment_status"], "pending")
        self.assertEqual(TerminalState.objects.filter(user=self.cashier).count(), 1)

    def test_idle_terminal_keeps_pending_attempt(self):
        self._start_qris()
        TerminalState.objects.filter(user=self.cashier).update(
            updated_at=timezone.now() - timedelta(days=2)
        )

        terminal = load_terminal(self.cashier)

        self.assertTrue(terminal.has_pending_qris)
        self.assertEqual(len(terminal.cart.lines), 2)

    def test_idle_terminal_without_attempt_starts_fresh(self):
        TerminalState.objects.filter(user=self.cashier).update(
            updated_at=timezone.now() - timedelta(days=2)
        )

        self.assertEqual(self._cart_size(), 0)

    # --------------------------------------------------
    # Confirmation
    # --------------------------------------------------

    def test_poll_reports_not_yet_received(self):
        self._start_qris()

        res = self.client.post("/api/pos/qris/check-status/")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["payment_status"], "pending")
        self.assertEqual(res.data["terminal"]["qris"]["state"], "AWAITING_PAYMENT")
        self.assertEqual(self._cart_size(), 2)

    def test_poll_after_payment_confirms_once(self):
        res, _ = self._start_qris()
        mark_invoice_paid(invoice_id=res.data["qris"]["invoice_id"], transaction_id="trx-1", source="test")

        res = self.client.post("/api/pos/qris/check-status/")

        self.assertEqual(res.data["payment_status"], "paid")
        terminal = res.data["terminal"]
        self.assertEqual(terminal["qris"]["state"], "CONFIRMED")
        self.assertEqual(terminal["cart"]["lines"], [])
        self.assertEqual(terminal["payment_method"], "cash")
        self.assertFalse(terminal["checkout_dialog_open"])
        self.assertEqual(terminal["last_receipt"]["total"], "85000.00")
        self.assertEqual(terminal["last_receipt"]["payment_method"], "qris")

        res = self.client.post("/api/pos/qris/check-status/")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"]["code"], "no_pending_payment")

    def test_view_only_read_does_not_apply_confirmation(self):
        res, _ = self._start_qris()
        waiter = User.objects.create_user(email="waiter@example.com", password="pass", role="waiter")
        save_terminal(waiter, load_terminal(self.cashier))
        mark_invoice_paid(invoice_id=res.data["qris"]["invoice_id"], transaction_id="trx-1", source="test")

        viewer = APIClient()
        viewer.force_authenticate(waiter)
        res = viewer.get("/api/pos/terminal/")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertFalse(res.data["synced"])
        self.assertEqual(res.data["terminal"]["qris"]["state"], "AWAITING_PAYMENT")
        self.assertTrue(load_terminal(waiter).has_pending_qris)
        self.assertEqual(len(load_terminal(waiter).cart.lines), 2)

    def test_duplicate_webhooks_settle_once_and_terminal_converges(self):
        res, _ = self._start_qris()
        body = self._notification(res.data["qris"]["gateway_order_id"])

        first = self._deliver(body)
        second = self._deliver(body)

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data["outcome"], "settled")
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(second.data["outcome"], "already_paid")

        invoice = Invoice.objects.get()
        self.assertEqual(invoice.status, Invoice.STATUS_PAID)
        self.assertEqual(invoice.gateway_transaction_id, "trx-123")
        self.assertEqual(invoice.payment_details["transaction_status"], "settlement")

        self.assertEqual(Order.objects.count(), 1)
        order = Order.objects.get()
        self.assertEqual(order.status, Order.STATUS_COMPLETED)
        self.assertEqual(order.paid_amount, Decimal("85000.00"))

        payment = Payment.objects.get()
        self.assertEqual(payment.method, Payment.METHOD_QRIS)
        self.assertEqual(payment.session, self.session)

        # The terminal picks the confirmation up on its next read.
        res = self.client.get("/api/pos/terminal/")
        self.assertTrue(res.data["synced"])
        self.assertEqual(res.data["terminal"]["qris"]["state"], "CONFIRMED")
        self.assertEqual(res.data["terminal"]["cart"]["lines"], [])
        self.assertEqual(res.data["terminal"]["last_receipt"]["order_number"], order.order_number)

    def test_selected_customer_is_reset_after_qris_success(self):
        corporate = Customer.objects.create(name="PT Sinar", email="finance@sinar.example")
        self.client.put("/api/pos/terminal/customer/", {"customer_id": str(corporate.id)}, format="json")

        res, charge = self._start_qris()
        self.assertEqual(charge.call_args.kwargs["customer_email"], "finance@sinar.example")
        self._deliver(self._notification(res.data["qris"]["gateway_order_id"]))

        res = self.client.get("/api/pos/terminal/")
        self.assertIsNone(res.data["terminal"]["customer_id"])
        self.assertEqual(res.data["terminal"]["last_receipt"]["customer_name"], "PT Sinar")

    # --------------------------------------------------
    # Cancel / expiry
    # --------------------------------------------------

    def test_cancel_deletes_invoice_and_preserves_cart(self):
        self._start_qris()

        res = self.client.post("/api/pos/qris/cancel/")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["payment_status"], "cancelled")
        self.assertEqual(res.data["terminal"]["qris"]["state"], "CANCELLED")
        self.assertFalse(res.data["terminal"]["checkout_dialog_open"])
        self.assertEqual(len(res.data["terminal"]["cart"]["lines"]), 2)

        self.assertEqual(Invoice.objects.count(), 0)
        self.assertEqual(Order.objects.get().status, Order.STATUS_CANCELLED)
        self.assertEqual(Payment.objects.count(), 0)

        # The kept cart can be paid another way.
        res = self.client.post("/api/pos/checkout/", {"payment_method": "cash"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(Payment.objects.get().amount, Decimal("85000.00"))

    def test_cancel_after_payment_confirms_instead(self):
        res, _ = self._start_qris()
        self._deliver(self._notification(res.data["qris"]["gateway_order_id"]))

        res = self.client.post("/api/pos/qris/cancel/")

        self.assertEqual(res.data["payment_status"], "paid")
        self.assertEqual(res.data["terminal"]["qris"]["state"], "CONFIRMED")
        self.assertEqual(Invoice.objects.get().status, Invoice.STATUS_PAID)
        self.assertEqual(Order.objects.get().status, Order.STATUS_COMPLETED)
        self.assertEqual(Payment.objects.count(), 1)

    def test_webhook_after_cancel_is_acknowledged(self):
        res, _ = self._start_qris()
        gateway_order_id = res.data["qris"]["gateway_order_id"]
        self.client.post("/api/pos/qris/cancel/")

        res = self._deliver(self._notification(gateway_order_id))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["outcome"], "not_found")
        self.assertEqual(Payment.objects.count(), 0)

    def test_expire_command_cancels_stale_attempts(self):
        self._start_qris()
        Invoice.objects.update(created_at=timezone.now() - timedelta(minutes=90))

        call_command("expire_pending_qris", verbosity=0)

        self.assertEqual(Invoice.objects.get().status, Invoice.STATUS_CANCELLED)
        self.assertEqual(Order.objects.get().status, Order.STATUS_CANCELLED)

        res = self.client.get("/api/pos/terminal/")
        self.assertEqual(res.data["terminal"]["qris"]["state"], "CANCELLED")
        self.assertEqual(len(res.data["terminal"]["cart"]["lines"]), 2)

    def test_payment_after_expiry_reinstates_order(self):
        res, _ = self._start_qris()
        gateway_order_id = res.data["qris"]["gateway_order_id"]
        Invoice.objects.update(created_at=timezone.now() - timedelta(minutes=90))
        call_command("expire_pending_qris", verbosity=0)

        res = self._deliver(self._notification(gateway_order_id))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["outcome"], "settled")
        self.assertEqual(Invoice.objects.get().status, Invoice.STATUS_PAID)
        self.assertEqual(Order.objects.get().status, Order.STATUS_COMPLETED)
        self.assertEqual(Payment.objects.count(), 1)

    def test_expire_command_leaves_fresh_attempts(self):
        self._start_qris()

        call_command("expire_pending_qris", verbosity=0)

        self.assertEqual(Invoice.objects.get().status, Invoice.STATUS_SENT)
