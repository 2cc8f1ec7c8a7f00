# pos/urls.py

from django.urls import path

from pos.views.terminal import (
    CheckoutView,
    ClearTerminalCartView,
    QrisCancelView,
    QrisCheckStatusView,
    QrisDismissView,
    TerminalCustomerView,
    TerminalItemDetailView,
    TerminalItemsView,
    TerminalPaymentMethodView,
    TerminalView,
)

app_name = "pos"

urlpatterns = [
    path("terminal/", TerminalView.as_view(), name="terminal"),
    path("terminal/items/", TerminalItemsView.as_view(), name="terminal-items"),
    path("terminal/items/<str:line_id>/", TerminalItemDetailView.as_view(), name="terminal-item-detail"),
    path("terminal/clear/", ClearTerminalCartView.as_view(), name="terminal-clear"),
    path("terminal/customer/", TerminalCustomerView.as_view(), name="terminal-customer"),
    path("terminal/payment-method/", TerminalPaymentMethodView.as_view(), name="terminal-payment-method"),
    path("checkout/", CheckoutView.as_view(), name="checkout"),
    path("qris/check-status/", QrisCheckStatusView.as_view(), name="qris-check-status"),
    path("qris/cancel/", QrisCancelView.as_view(), name="qris-cancel"),
    path("qris/dismiss/", QrisDismissView.as_view(), name="qris-dismiss"),
]
