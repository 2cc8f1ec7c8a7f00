# pos/views/terminal.py

"""
POS TERMINAL API VIEWS

Purpose:
- Per-operator terminal state: cart, customer, payment method, QRIS attempt
- Checkout (cash / other / QRIS) and the QRIS poll / cancel / dismiss actions

Hard rules:
- Money is server-owned: unit_price is snapshotted from MenuItem on add.
- The terminal is loaded from its TerminalState row at the start of a request and saved
  back at the end, also when a domain error is returned (a failed QRIS
  attempt must stay visible).
- View-only roles can read the terminal but never change it: their GET
  neither applies QRIS confirmations nor saves the terminal.
"""

from __future__ import annotations

from django.shortcuts import get_object_or_404
from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from cash_register.services.register_service import get_open_session
from catalog.models import Customer, MenuItem
from catalog.services.customers import resolve_customer
from permissions.roles import CAP_POS_SELL, CAP_POS_VIEW, HasCapability, has_capability
from pos.serializers import (
    AddTerminalItemInputSerializer,
    ChangeQuantityInputSerializer,
    CheckoutInputSerializer,
    PaymentMethodInputSerializer,
    SelectCustomerInputSerializer,
    TerminalStateSerializer,
)
from pos.services.cart import MenuSnapshot
from pos.services.checkout_orchestrator import checkout
from pos.services.qris_coordinator import (
    cancel_qris_payment,
    check_payment_status,
    sync_pending_qris,
)
from pos.services.terminal_store import load_terminal, save_terminal
from pos.views.errors import HANDLED_ERRORS, domain_error_response


def terminal_payload(user, terminal) -> dict:
    data = terminal.to_dict()
    customer = resolve_customer(terminal.customer_id)
    data["customer_name"] = customer.name if customer else None
    data["register_open"] = get_open_session(user) is not None
    return data


class TerminalAPIView(APIView):
    """
    Base for terminal endpoints: load -> act -> save -> respond.
    """

    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_POS_SELL

    def run(self, request, action, *, http_status=status.HTTP_200_OK, persist=True):
        terminal = load_terminal(request.user)
        try:
            extra = action(terminal) or {}
        except HANDLED_ERRORS as exc:
            return domain_error_response(exc)
        finally:
            if persist:
                save_terminal(request.user, terminal)

        payload = {"terminal": terminal_payload(request.user, terminal)}
        payload.update(extra)
        return Response(payload, status=http_status)


class TerminalView(TerminalAPIView):
    required_capability = CAP_POS_VIEW

    @extend_schema(
        responses={200: TerminalStateSerializer},
        description=(
            "Terminal state for the caller; for operators who may sell, applies QRIS "
            "confirmations received by webhook"
        ),
    )
    def get(self, request):
        if not has_capability(request.user, CAP_POS_SELL):
            return self.run(request, lambda terminal: {"synced": False}, persist=False)
        return self.run(request, lambda terminal: {"synced": sync_pending_qris(terminal)})


class TerminalItemsView(TerminalAPIView):
    @extend_schema(
        request=AddTerminalItemInputSerializer,
        responses={200: TerminalStateSerializer},
        description="Add one unit of a menu item (increments the existing line)",
    )
    def post(self, request):
        serializer = AddTerminalItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        menu = get_object_or_404(MenuItem, id=serializer.validated_data["menu_id"], is_active=True)

        def action(terminal):
            terminal.ensure_not_pending()
            terminal.cart.add_item(MenuSnapshot.from_menu(menu))

        return self.run(request, action)


class TerminalItemDetailView(TerminalAPIView):
    @extend_schema(
        request=ChangeQuantityInputSerializer,
        responses={200: TerminalStateSerializer},
        description="Change a line quantity by delta (never below 1)",
    )
    def patch(self, request, line_id):
        serializer = ChangeQuantityInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        delta = serializer.validated_data["delta"]

        def action(terminal):
            terminal.ensure_not_pending()
            terminal.cart.change_quantity(line_id, delta)

        return self.run(request, action)

    @extend_schema(
        responses={200: TerminalStateSerializer},
        description="Remove a line from the cart",
    )
    def delete(self, request, line_id):
        def action(terminal):
            terminal.ensure_not_pending()
            terminal.cart.remove_item(line_id)

        return self.run(request, action)


class ClearTerminalCartView(TerminalAPIView):
    @extend_schema(request=None, responses={200: TerminalStateSerializer})
    def post(self, request):
        def action(terminal):
            terminal.ensure_not_pending()
            terminal.cart.clear()

        return self.run(request, action)


class TerminalCustomerView(TerminalAPIView):
    @extend_schema(
        request=SelectCustomerInputSerializer,
        responses={200: TerminalStateSerializer},
        description="Select the customer for the next sale (null = walk-in customer)",
    )
    def put(self, request):
        serializer = SelectCustomerInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        customer_id = serializer.validated_data.get("customer_id")
        if customer_id:
            get_object_or_404(Customer, id=customer_id, is_active=True)

        def action(terminal):
            terminal.ensure_not_pending()
            terminal.select_customer(customer_id)

        return self.run(request, action)


class TerminalPaymentMethodView(TerminalAPIView):
    @extend_schema(
        request=PaymentMethodInputSerializer,
        responses={200: TerminalStateSerializer},
    )
    def put(self, request):
        serializer = PaymentMethodInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        def action(terminal):
            terminal.ensure_not_pending()
            terminal.set_payment_method(serializer.validated_data["payment_method"])

        return self.run(request, action)


class CheckoutView(TerminalAPIView):
    """
    Finalize the terminal cart.

    cash / other: 201 with the receipt, cart cleared.
    qris:         201 with the QR code URL, cart kept until confirmation.
    """

    @extend_schema(
        request=CheckoutInputSerializer,
        responses={201: dict},
        examples=[
            OpenApiExample("Cash", value={"payment_method": "cash"}, request_only=True),
            OpenApiExample("QRIS", value={"payment_method": "qris"}, request_only=True),
        ],
    )
    def post(self, request):
        serializer = CheckoutInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment_method = serializer.validated_data.get("payment_method")

        def action(terminal):
            result = checkout(user=request.user, terminal=terminal, payment_method=payment_method)
            return {
                "payment_method": result.payment_method,
                "order_id": str(result.order.id),
                "order_number": result.order.order_number,
                "invoice_number": result.invoice.invoice_number,
                "receipt": result.receipt,
                "qris": result.qris,
            }

        return self.run(request, action, http_status=status.HTTP_201_CREATED)


class QrisCheckStatusView(TerminalAPIView):
    @extend_schema(
        request=None,
        responses={200: dict},
        description="Operator poll: paid / pending / cancelled",
    )
    def post(self, request):
        def action(terminal):
            payment_status = check_payment_status(terminal=terminal)
            message = {
                "paid": "Payment received.",
                "pending": "Payment not yet received.",
                "cancelled": "Payment attempt is no longer active.",
            }[payment_status]
            return {"payment_status": payment_status, "message": message}

        return self.run(request, action)


class QrisCancelView(TerminalAPIView):
    @extend_schema(
        request=None,
        responses={200: dict},
        description="Cancel the pending QRIS payment (the cart is kept)",
    )
    def post(self, request):
        def action(terminal):
            return {"payment_status": cancel_qris_payment(terminal=terminal)}

        return self.run(request, action)


class QrisDismissView(TerminalAPIView):
    @extend_schema(
        request=None,
        responses={200: TerminalStateSerializer, 409: dict},
        description="Close the payment dialog (refused while a QRIS payment is pending)",
    )
    def post(self, request):
        return self.run(request, lambda terminal: terminal.dismiss_payment_dialog())
