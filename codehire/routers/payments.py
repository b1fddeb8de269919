"""
Payments router — hosted checkout return and signed webhook.

Endpoints:
    GET  /payments/return   → redirect target of the hosted checkout
    POST /payments/webhook  → signed ``order_created`` event from Lemon Squeezy
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import JSONResponse

from codehire.config import settings
from codehire.dependencies import get_lifecycle
from codehire.errors import AuthorizationError, ValidationError
from codehire.models.user import User
from codehire.routers.auth import require_user
from codehire.services.lifecycle import ProjectLifecycle
from codehire.services.payments import paid_project_id, parse_webhook, verify_signature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/return")
async def payment_return(
    status: Optional[str] = Query(None),
    project_id: Optional[int] = Query(None, alias="projectId"),
    current_user: User = Depends(require_user),
    lifecycle: ProjectLifecycle = Depends(get_lifecycle),
):
    """Handle the browser coming back from checkout."""
    if project_id is None:
        raise ValidationError("Missing project identifier.", field="projectId")

    project = await lifecycle.get(project_id)
    if project.owner_id != current_user.id:
        raise AuthorizationError("Only the project owner can confirm its payment.", project_id=project_id)

    if status != "success":
        return {"paid": False, "project_id": project_id, "message": "Payment was canceled or failed."}

    if not settings.PAYMENT_TRUST_REDIRECT:
        # Activation waits for the signed webhook.
        return JSONResponse(
            status_code=202,
            content={
                "paid": project.paid,
                "project_id": project_id,
                "message": "Payment received; your project activates once the payment is confirmed.",
            },
        )

    project = await lifecycle.confirm_payment(project_id)
    return {
        "paid": True,
        "project_id": project_id,
        "status": project.status.value,
        "bidding_end_time": project.bidding_end_time.isoformat() if project.bidding_end_time else None,
        "message": "Payment confirmed. Your project is now active and open for bidding.",
    }


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    x_signature: Optional[str] = Header(None),
    lifecycle: ProjectLifecycle = Depends(get_lifecycle),
):
    """Confirm payment from a signed checkout event. Safe to deliver more than once."""
    body = await request.body()
    if not verify_signature(body, x_signature, settings.LEMON_WEBHOOK_SECRET):
        logger.warning("Rejected payment webhook with missing or invalid signature")
        return JSONResponse(status_code=401, content={"detail": "Invalid signature"})

    project_id = paid_project_id(parse_webhook(body))
    if project_id is None:
        return {"ok": True, "ignored": True}

    project = await lifecycle.confirm_payment(project_id)
    return {"ok": True, "project_id": project.id, "status": project.status.value}
