# pos/views/errors.py

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.response import Response

from gateway.services.midtrans import GatewayError
from pos.services.cart import CartLineNotFound
from pos.services.exceptions import (
    EmptyCartError,
    InvalidPaymentMethodError,
    MenuUnavailableError,
    NoCustomerError,
    NoPendingPaymentError,
    PaymentPendingError,
    RegisterClosedError,
)

# Most specific first.
ERROR_MAP = (
    (RegisterClosedError, "register_closed", status.HTTP_409_CONFLICT),
    (EmptyCartError, "empty_cart", status.HTTP_400_BAD_REQUEST),
    (NoCustomerError, "no_customer", status.HTTP_400_BAD_REQUEST),
    (PaymentPendingError, "payment_pending", status.HTTP_409_CONFLICT),
    (NoPendingPaymentError, "no_pending_payment", status.HTTP_409_CONFLICT),
    (MenuUnavailableError, "menu_unavailable", status.HTTP_400_BAD_REQUEST),
    (InvalidPaymentMethodError, "validation_error", status.HTTP_400_BAD_REQUEST),
    (CartLineNotFound, "line_not_found", status.HTTP_404_NOT_FOUND),
    (GatewayError, "gateway_error", status.HTTP_502_BAD_GATEWAY),
    (DjangoValidationError, "validation_error", status.HTTP_400_BAD_REQUEST),
)

HANDLED_ERRORS = tuple(exc_class for exc_class, _, _ in ERROR_MAP)


def error_response(*, code: str, message: str, http_status: int):
    return Response(
        {"error": {"code": code, "message": message}},
        status=http_status,
    )


def _message(exc) -> str:
    if isinstance(exc, DjangoValidationError):
        return " ".join(exc.messages)
    return str(exc)


def domain_error_response(exc):
    for exc_class, code, http_status in ERROR_MAP:
        if isinstance(exc, exc_class):
            return error_response(code=code, message=_message(exc), http_status=http_status)
    raise exc
