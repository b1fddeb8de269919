"""
Hosted checkout helpers (Lemon Squeezy buy links).

The checkout page redirects back to ``/payments/return`` with
``status`` and ``projectId``. That redirect is user-controlled, so the
signed ``order_created`` webhook is the trustworthy confirmation path;
``PAYMENT_TRUST_REDIRECT`` decides whether the redirect alone may activate
a project; it is off in production unless set explicitly.
"""

import hashlib
import hmac
import json
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from codehire.config import settings
from codehire.errors import CodeHireError, ValidationError


class PaymentConfigurationError(CodeHireError):
    status_code = 503
    code = "payments_unavailable"


def build_checkout_url(project_id: int, project_title: Optional[str] = None) -> str:
    """Buy-link URL carrying success/cancel return URLs and the project id."""
    base = settings.LEMON_CHECKOUT_URL
    if not base:
        raise PaymentConfigurationError("Checkout is not configured (LEMON_CHECKOUT_URL is not set).")

    return_url = f"{settings.PUBLIC_BASE_URL.rstrip('/')}/payments/return"
    success = f"{return_url}?{urlencode({'status': 'success', 'projectId': project_id})}"
    cancel = f"{return_url}?{urlencode({'status': 'cancel', 'projectId': project_id})}"

    parts = urlsplit(base)
    query = dict(parse_qsl(parts.query))
    query["checkout[success_url]"] = success
    query["checkout[cancel_url]"] = cancel
    query["checkout[custom][projectId]"] = str(project_id)
    if project_title:
        query["checkout[custom][projectTitle]"] = project_title
    return urlunsplit(parts._replace(query=urlencode(query)))


def sign_payload(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(body: bytes, signature: Optional[str], secret: str) -> bool:
    if not secret or not signature:
        return False
    return hmac.compare_digest(sign_payload(body, secret), signature.strip())


def parse_webhook(body: bytes) -> Dict[str, Any]:
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError("Webhook body is not valid JSON.") from exc
    if not isinstance(payload, dict):
        raise ValidationError("Webhook body must be a JSON object.")
    return payload


def paid_project_id(payload: Dict[str, Any]) -> Optional[int]:
    """Project id from a paid ``order_created`` event, else None."""
    meta = payload.get("meta") or {}
    if meta.get("event_name") != "order_created":
        return None
    attributes = (payload.get("data") or {}).get("attributes") or {}
    if attributes.get("status") != "paid":
        return None
    raw = (meta.get("custom_data") or {}).get("projectId")
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None
