# gateway/services/midtrans.py

"""
MIDTRANS CORE API CLIENT (QRIS)

Purpose:
- Create QRIS charges (POST /v2/charge).
- Pick the QR image URL out of the charge response.
- Verify HTTP notification signatures.

Rules:
- HTTP Basic auth with "<server_key>:" (empty password).
- One request per call, timeout from settings.MIDTRANS["TIMEOUT"], no retries.
- Every failure surfaces as GatewayError; nothing is written by this module.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from django.conf import settings

logger = logging.getLogger(__name__)

SANDBOX_BASE = "https://api.sandbox.midtrans.com"
PRODUCTION_BASE = "https://api.midtrans.com"

QR_ACTION_V2 = "generate-qr-code-v2"
QR_ACTION_V1 = "generate-qr-code"

DEFAULT_CUSTOMER_EMAIL = "noreply@example.com"


class GatewayError(Exception):
    """Base payment gateway exception"""


class GatewayConfigurationError(GatewayError):
    pass


class GatewayResponseError(GatewayError):
    """The gateway answered, but not with something we can use."""


def _midtrans_cfg() -> dict:
    cfg = getattr(settings, "MIDTRANS", {}) or {}
    return cfg if isinstance(cfg, dict) else {}


def _get_server_key() -> str:
    sk = (_midtrans_cfg().get("SERVER_KEY") or "").strip()
    if not sk:
        raise GatewayConfigurationError(
            "MIDTRANS SERVER_KEY is not configured. Expected env MIDTRANS_SERVER_KEY."
        )
    return sk


def api_base_url() -> str:
    return PRODUCTION_BASE if _midtrans_cfg().get("IS_PRODUCTION") else SANDBOX_BASE


def _timeout() -> int:
    return int(_midtrans_cfg().get("TIMEOUT") or 25)


def _gross_amount(amount) -> int:
    """
    IDR has no minor unit on the gateway side: send whole rupiah.
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise GatewayError("gross_amount must be a valid number") from exc

    rupiah = value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    if rupiah <= 0:
        raise GatewayError("gross_amount must be positive")
    return int(rupiah)


def _safe_preview(text: str, limit: int = 800) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


def _auth_header(server_key: str) -> str:
    token = base64.b64encode(f"{server_key}:".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def _request_json(method: str, path: str, *, body: dict | None = None) -> dict[str, Any]:
    sk = _get_server_key()
    url = f"{api_base_url()}{path}"

    data = None
    if body is not None:
        data = json.dumps(body, ensure_ascii=False).encode("utf-8")

    req = Request(
        url,
        data=data,
        headers={
            "Authorization": _auth_header(sk),
            "Content-Type": "application/json",
            "Accept": "application/json",
        },
        method=method,
    )

    try:
        with urlopen(req, timeout=_timeout()) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
    except HTTPError as e:
        raw = e.read().decode("utf-8", errors="replace") if e.fp is not None else ""
        raise GatewayError(f"Midtrans HTTPError: {e.code} {_safe_preview(raw)}") from e
    except URLError as e:
        raise GatewayError(f"Midtrans URLError: {e.reason}") from e
    except TimeoutError as e:
        raise GatewayError("Midtrans request timed out") from e

    try:
        parsed = json.loads(raw)
    except ValueError as e:
        raise GatewayResponseError(f"Midtrans returned non-JSON: {_safe_preview(raw)}") from e

    if not isinstance(parsed, dict):
        raise GatewayResponseError("Midtrans returned an unexpected JSON payload")

    return parsed


# ============================================================
# CHARGE
# ============================================================


def build_qris_charge_payload(
    *, gateway_order_id: str, gross_amount, customer_name: str, customer_email: str = ""
) -> dict:
    return {
        "payment_type": "qris",
        "transaction_details": {
            "order_id": str(gateway_order_id).strip(),
            "gross_amount": _gross_amount(gross_amount),
        },
        "customer_details": {
            "first_name": (customer_name or "").strip() or "Customer",
            "email": (customer_email or "").strip() or DEFAULT_CUSTOMER_EMAIL,
        },
    }


def create_qris_charge(
    *, gateway_order_id: str, gross_amount, customer_name: str, customer_email: str = ""
) -> dict:
    """
    Create a QRIS charge and return the raw gateway response.

    Midtrans answers 200 even for rejected charges; status_code in the body
    tells the truth (201 = pending QR created).
    """
    payload = build_qris_charge_payload(
        gateway_order_id=gateway_order_id,
        gross_amount=gross_amount,
        customer_name=customer_name,
        customer_email=customer_email,
    )

    logger.info(
        "Creating QRIS charge",
        extra={
            "gateway_order_id": payload["transaction_details"]["order_id"],
            "gross_amount": payload["transaction_details"]["gross_amount"],
        },
    )

    response = _request_json("POST", "/v2/charge", body=payload)

    status_code = str(response.get("status_code") or "")
    if status_code and not status_code.startswith("2"):
        messages = response.get("status_message") or response.get("error_messages") or "charge rejected"
        if isinstance(messages, list):
            messages = ", ".join(str(m) for m in messages)
        raise GatewayError(f"Midtrans rejected charge: {status_code} {messages}")

    return response


def extract_qr_code_url(charge_response: dict) -> str:
    """
    Prefer the v2 QR action, fall back to v1.
    """
    actions = (charge_response or {}).get("actions") or []
    by_name = {}
    for action in actions:
        if isinstance(action, dict) and action.get("name") and action.get("url"):
            by_name.setdefault(action["name"], action["url"])

    url = by_name.get(QR_ACTION_V2) or by_name.get(QR_ACTION_V1)
    if not url:
        raise GatewayResponseError("QR code URL not found in gateway response")
    return url


# ============================================================
# NOTIFICATION SIGNATURE
# ============================================================


def compute_notification_signature(
    *, order_id: str, status_code: str, gross_amount: str, server_key: str | None = None
) -> str:
    sk = server_key if server_key is not None else _get_server_key()
    raw = f"{order_id}{status_code}{gross_amount}{sk}"
    return hashlib.sha512(raw.encode("utf-8")).hexdigest()


def verify_notification_signature(payload: dict) -> bool:
    signature = (payload or {}).get("signature_key")
    if not signature:
        return False

    computed = compute_notification_signature(
        order_id=str(payload.get("order_id") or ""),
        status_code=str(payload.get("status_code") or ""),
        gross_amount=str(payload.get("gross_amount") or ""),
    )
    return hmac.compare_digest(computed.encode("ascii"), str(signature).encode("utf-8"))
