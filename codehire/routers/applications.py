"""Applications router — an applicant's own bids and the hirer's decision."""

from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from codehire.database import get_db
from codehire.dependencies import get_ledger
from codehire.models.user import User
from codehire.routers.auth import require_user
from codehire.schemas.application import ApplicationOut, DecisionIn, DecisionOut
from codehire.services.ledger import ApplicationLedger
from codehire.services.mailer import send_decision_email

router = APIRouter(prefix="/applications", tags=["applications"])


@router.get("/mine", response_model=List[ApplicationOut])
async def my_applications(
    current_user: User = Depends(require_user),
    ledger: ApplicationLedger = Depends(get_ledger),
):
    """The current user's applications, newest first."""
    return await ledger.list_for_applicant(current_user.id)


@router.post("/{application_id}/decision", response_model=DecisionOut)
async def decide_application(
    application_id: int,
    payload: DecisionIn,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_user),
    ledger: ApplicationLedger = Depends(get_ledger),
    db: AsyncSession = Depends(get_db),
):
    """Accept or reject a pending application on one of the hirer's projects."""
    result = await ledger.decide(application_id, current_user.id, payload.decision)
    application = result.application

    # ── Email copy for the applicant ──
    applicant = await db.get(User, application.applicant_id)
    project = await ledger.projects.get(application.project_id)
    if applicant and applicant.email:
        background_tasks.add_task(
            send_decision_email,
            recipient_email=applicant.email,
            project_title=project.title,
            decision=application.status.value,
            project_id=project.id,
        )

    return DecisionOut(
        application=ApplicationOut.model_validate(application),
        notified=result.notified,
        warning=result.warning,
    )
