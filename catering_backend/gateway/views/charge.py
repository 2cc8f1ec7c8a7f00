# gateway/views/charge.py

from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema
from rest_framework import serializers, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from gateway.services.midtrans import GatewayError, create_qris_charge
from permissions.roles import CAP_GATEWAY_CHARGE, HasCapability

logger = logging.getLogger(__name__)


class QrisChargeInputSerializer(serializers.Serializer):
    order_id = serializers.CharField(max_length=64)
    total = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=1)
    customer_name = serializers.CharField(max_length=255)
    customer_email = serializers.EmailField(required=False, allow_blank=True, default="")


class MidtransChargeView(APIView):
    """
    Raw QRIS charge for staff tools (the PoS uses the checkout endpoint).
    """

    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_GATEWAY_CHARGE

    @extend_schema(
        request=QrisChargeInputSerializer,
        responses={200: dict, 502: dict},
        description="Create a QRIS charge and return the gateway response",
    )
    def post(self, request):
        serializer = QrisChargeInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            charge = create_qris_charge(
                gateway_order_id=data["order_id"],
                gross_amount=data["total"],
                customer_name=data["customer_name"],
                customer_email=data.get("customer_email", ""),
            )
        except GatewayError as exc:
            logger.warning(
                "Midtrans charge failed",
                extra={"gateway_order_id": data["order_id"], "error": str(exc)},
            )
            return Response(
                {"error": {"code": "gateway_error", "message": str(exc)}},
                status=status.HTTP_502_BAD_GATEWAY,
            )

        return Response(charge, status=status.HTTP_200_OK)
