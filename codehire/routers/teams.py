"""
Teams router — create a team, browse teams, manage membership.

Endpoints:
    POST   /teams                          → create a team (coders, one per owner)
    GET    /teams                          → all teams
    GET    /teams/mine                     → the team the current user owns
    GET    /teams/{id}                     → team with its members
    POST   /teams/{id}/members             → add a member (owner)
    DELETE /teams/{id}/members/{user_id}   → remove a member, or leave
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status

from codehire.dependencies import get_teams
from codehire.models.team import Team
from codehire.models.user import User, UserRole
from codehire.routers.auth import require_role, require_user
from codehire.schemas.team import MemberAdd, TeamCreate, TeamDetailOut, TeamMemberOut, TeamOut
from codehire.services.teams import TeamService

router = APIRouter(prefix="/teams", tags=["teams"])


async def _detail(teams: TeamService, team: Team) -> TeamDetailOut:
    rows = await teams.members(team.id)
    return TeamDetailOut(
        **TeamOut.model_validate(team).model_dump(),
        members=[
            TeamMemberOut(user_id=user.id, full_name=user.full_name, role=member.role)
            for member, user in rows
        ],
    )


@router.post("", response_model=TeamDetailOut, status_code=status.HTTP_201_CREATED)
async def create_team(
    payload: TeamCreate,
    current_user: User = Depends(require_role(UserRole.CODER)),
    teams: TeamService = Depends(get_teams),
):
    """Create a team owned by the current coder."""
    team = await teams.create_team(
        current_user.id,
        payload.name,
        description=payload.description,
        logo_url=payload.logo_url,
    )
    return await _detail(teams, team)


@router.get("", response_model=List[TeamOut])
async def list_teams(teams: TeamService = Depends(get_teams)):
    return await teams.list_teams()


@router.get("/mine", response_model=Optional[TeamDetailOut])
async def my_team(
    current_user: User = Depends(require_user),
    teams: TeamService = Depends(get_teams),
):
    """The team owned by the current user, or null."""
    team = await teams.owned_by(current_user.id)
    if team is None:
        return None
    return await _detail(teams, team)


@router.get("/{team_id}", response_model=TeamDetailOut)
async def get_team(team_id: int, teams: TeamService = Depends(get_teams)):
    return await _detail(teams, await teams.get(team_id))


@router.post("/{team_id}/members", response_model=TeamDetailOut, status_code=status.HTTP_201_CREATED)
async def add_member(
    team_id: int,
    payload: MemberAdd,
    current_user: User = Depends(require_user),
    teams: TeamService = Depends(get_teams),
):
    await teams.add_member(team_id, current_user.id, payload.user_id)
    return await _detail(teams, await teams.get(team_id))


@router.delete("/{team_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    team_id: int,
    user_id: int,
    current_user: User = Depends(require_user),
    teams: TeamService = Depends(get_teams),
):
    await teams.remove_member(team_id, current_user.id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
