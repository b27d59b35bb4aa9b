"""
Team roster lookup for registration form auto-fill
"""
from fastapi import APIRouter, Depends, Response
from typing import Dict, List

from hackportal.api.deps import get_portal, no_cache
from hackportal.core.exceptions import TeamNotFoundError
from hackportal.services.container import PortalServices

router = APIRouter(prefix="/teams", tags=["Teams"])


@router.get("", response_model=List[Dict[str, str]])
async def list_teams(
    response: Response,
    portal: PortalServices = Depends(get_portal)
):
    no_cache(response)
    return [team.to_dict() for team in await portal.teams.all()]


@router.get("/{team_number}", response_model=Dict[str, str])
async def get_team(
    team_number: str,
    response: Response,
    portal: PortalServices = Depends(get_portal)
):
    no_cache(response)
    team = await portal.teams.get(team_number)
    if team is None:
        raise TeamNotFoundError(team_number)
    return team.to_dict()
