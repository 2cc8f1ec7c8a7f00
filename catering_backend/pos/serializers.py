# pos/serializers.py

from rest_framework import serializers

from pos.services.terminal import PAYMENT_METHODS


# =====================================================
# INPUT
# =====================================================

class AddTerminalItemInputSerializer(serializers.Serializer):
    menu_id = serializers.UUIDField()


class ChangeQuantityInputSerializer(serializers.Serializer):
    delta = serializers.IntegerField()


class SelectCustomerInputSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField(required=False, allow_null=True)


class PaymentMethodInputSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=list(PAYMENT_METHODS))


class CheckoutInputSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=list(PAYMENT_METHODS), required=False)


# =====================================================
# OUTPUT (schema only; payloads are built from the terminal)
# =====================================================

class CartLineSerializer(serializers.Serializer):
    line_id = serializers.CharField()
    menu_id = serializers.CharField()
    name = serializers.CharField()
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    quantity = serializers.IntegerField()
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2)


class CartStateSerializer(serializers.Serializer):
    lines = CartLineSerializer(many=True)
    item_count = serializers.IntegerField()
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)
    tax = serializers.DecimalField(max_digits=12, decimal_places=2)
    total = serializers.DecimalField(max_digits=12, decimal_places=2)


class QrisAttemptSerializer(serializers.Serializer):
    gateway_order_id = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    state = serializers.CharField()
    order_id = serializers.CharField(allow_null=True)
    order_number = serializers.CharField(allow_null=True)
    invoice_id = serializers.CharField(allow_null=True)
    qr_code_url = serializers.CharField(allow_null=True)
    message = serializers.CharField(allow_blank=True)
    created_at = serializers.CharField()


class TerminalStateSerializer(serializers.Serializer):
    cart = CartStateSerializer()
    customer_id = serializers.CharField(allow_null=True)
    customer_name = serializers.CharField(allow_null=True)
    payment_method = serializers.CharField()
    checkout_dialog_open = serializers.BooleanField()
    register_open = serializers.BooleanField()
    qris = QrisAttemptSerializer(allow_null=True)
    last_receipt = serializers.DictField(allow_null=True)
