# gateway/views/notification.py

"""
MIDTRANS HTTP NOTIFICATION (WEBHOOK)

POST /api/gateway/midtrans/notification/   (AllowAny, throttled)

Responses:
- 403 invalid signature (no state change)
- 200 acknowledged (settled, already paid, ignored status, unknown invoice)
- 500 genuine internal failure (the gateway will retry)
"""

from __future__ import annotations

import logging

from django.db import DatabaseError
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.parsers import JSONParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from gateway.services.midtrans import GatewayConfigurationError, verify_notification_signature
from gateway.services.notifications import process_notification

logger = logging.getLogger(__name__)


class WebhookThrottle(AnonRateThrottle):
    scope = "webhook"


class MidtransNotificationView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = [WebhookThrottle]
    parser_classes = [JSONParser]

    @extend_schema(
        request=dict,
        responses={200: dict, 403: dict, 500: dict},
        description="Midtrans payment notification receiver",
    )
    def post(self, request):
        payload = request.data if isinstance(request.data, dict) else {}
        gateway_order_id = str(payload.get("order_id") or "")

        try:
            signature_ok = verify_notification_signature(payload)
        except GatewayConfigurationError:
            logger.exception("Midtrans notification received but gateway is not configured")
            return Response(
                {"error": "Server configuration error"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        if not signature_ok:
            logger.warning(
                "Invalid Midtrans signature",
                extra={"gateway_order_id": gateway_order_id},
            )
            return Response({"error": "Invalid signature"}, status=status.HTTP_403_FORBIDDEN)

        try:
            outcome = process_notification(payload)
        except DatabaseError:
            logger.exception(
                "Failed to process Midtrans notification",
                extra={"gateway_order_id": gateway_order_id},
            )
            return Response(
                {"error": "Internal server error"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return Response(
            {"message": outcome.message, "outcome": outcome.outcome},
            status=status.HTTP_200_OK,
        )
