"""
Projects router — drafts, listings and bids on a project.

Endpoints:
    POST /projects                        → create a draft (hirers)
    GET  /projects                        → projects open for bidding
    GET  /projects/mine                   → the hirer's own projects
    GET  /projects/{id}                   → one project with derived ``biddable``
    GET  /projects/{id}/checkout          → hosted checkout URL for the draft
    POST /projects/{id}/cancel            → cancel (owner)
    POST /projects/{id}/complete          → mark finished (owner)
    POST /projects/{id}/applications      → submit an application (coders)
    GET  /projects/{id}/applications      → review applications (owner)
"""

from typing import List

from fastapi import APIRouter, Depends, status

from codehire.dependencies import get_clock, get_ledger, get_lifecycle
from codehire.errors import AuthorizationError, InvalidStateError
from codehire.models.project import Project, ProjectStatus
from codehire.models.user import User, UserRole
from codehire.routers.auth import require_role, require_user
from codehire.schemas.application import ApplicationCreate, ApplicationOut
from codehire.schemas.project import CheckoutOut, ProjectCreate, ProjectOut
from codehire.services.ledger import ApplicationLedger
from codehire.services.lifecycle import ProjectLifecycle, is_biddable
from codehire.services.payments import build_checkout_url
from codehire.utils.clock import Clock

router = APIRouter(prefix="/projects", tags=["projects"])


def _project_out(project: Project, clock: Clock) -> ProjectOut:
    out = ProjectOut.model_validate(project)
    return out.model_copy(update={"biddable": is_biddable(project, clock())})


@router.post("", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    current_user: User = Depends(require_role(UserRole.HIRER)),
    lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    clock: Clock = Depends(get_clock),
):
    """Create a draft project; it opens for bids once paid."""
    project_id = await lifecycle.create_draft(
        current_user.id,
        payload.title,
        payload.description,
        required_skills=payload.required_skills,
        hire_preference=payload.hire_preference,
        budget=payload.budget,
        deadline=payload.deadline,
    )
    return _project_out(await lifecycle.get(project_id), clock)


@router.get("", response_model=List[ProjectOut])
async def list_projects(
    lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    clock: Clock = Depends(get_clock),
):
    """Projects currently open for bidding, newest first."""
    projects = await lifecycle.list_biddable(clock())
    return [_project_out(p, clock) for p in projects]


@router.get("/mine", response_model=List[ProjectOut])
async def my_projects(
    current_user: User = Depends(require_user),
    lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    clock: Clock = Depends(get_clock),
):
    projects = await lifecycle.list_for_owner(current_user.id)
    return [_project_out(p, clock) for p in projects]


@router.get("/{project_id}", response_model=ProjectOut)
async def get_project(
    project_id: int,
    current_user: User = Depends(require_user),
    lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    clock: Clock = Depends(get_clock),
):
    project = await lifecycle.get(project_id)
    if project.status == ProjectStatus.DRAFT and project.owner_id != current_user.id:
        raise AuthorizationError("This project is not published yet.", project_id=project_id)
    return _project_out(project, clock)


@router.get("/{project_id}/checkout", response_model=CheckoutOut)
async def checkout(
    project_id: int,
    current_user: User = Depends(require_user),
    lifecycle: ProjectLifecycle = Depends(get_lifecycle),
):
    """Hosted checkout link that activates the project once paid."""
    project = await lifecycle.get(project_id)
    if project.owner_id != current_user.id:
        raise AuthorizationError("Only the project owner can pay for it.", project_id=project_id)
    if project.paid or project.status not in (ProjectStatus.DRAFT, ProjectStatus.OPEN):
        raise InvalidStateError("This project does not need payment.", project_id=project_id)
    return CheckoutOut(project_id=project.id, checkout_url=build_checkout_url(project.id, project.title))


@router.post("/{project_id}/cancel", response_model=ProjectOut)
async def cancel_project(
    project_id: int,
    current_user: User = Depends(require_user),
    lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    clock: Clock = Depends(get_clock),
):
    return _project_out(await lifecycle.cancel(project_id, current_user.id), clock)


@router.post("/{project_id}/complete", response_model=ProjectOut)
async def complete_project(
    project_id: int,
    current_user: User = Depends(require_user),
    lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    clock: Clock = Depends(get_clock),
):
    return _project_out(await lifecycle.complete(project_id, current_user.id), clock)


# ── Applications on a project ──

@router.post(
    "/{project_id}/applications",
    response_model=ApplicationOut,
    status_code=status.HTTP_201_CREATED,
)
async def apply_to_project(
    project_id: int,
    payload: ApplicationCreate,
    current_user: User = Depends(require_role(UserRole.CODER)),
    ledger: ApplicationLedger = Depends(get_ledger),
):
    """Submit a bid as an individual coder or on behalf of an owned team."""
    application_id = await ledger.submit(
        project_id,
        current_user.id,
        applicant_kind=payload.applicant_kind,
        team_id=payload.team_id,
        bid_amount=payload.bid_amount,
        experience_years=payload.experience_years,
        message=payload.message or "",
    )
    return await ledger.get(application_id)


@router.get("/{project_id}/applications", response_model=List[ApplicationOut])
async def project_applications(
    project_id: int,
    current_user: User = Depends(require_user),
    ledger: ApplicationLedger = Depends(get_ledger),
):
    """Applications for the hirer's project, newest first."""
    return await ledger.list_for_project_as(project_id, current_user.id)
