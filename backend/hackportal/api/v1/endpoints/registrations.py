"""
Registration endpoints: the allocation protocol over HTTP
"""
from fastapi import APIRouter, Depends, Response
from typing import List

from hackportal.api.deps import get_portal, no_cache
from hackportal.core.exceptions import (
    DuplicateTeamError,
    MissingFieldsError,
    PortalError,
    ProblemFullError,
    ProblemStatementNotFoundError,
    RegistrationNotFoundError,
)
from hackportal.schemas.events import EventType
from hackportal.schemas.registration import (
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    RegistrationView,
)
from hackportal.services.allocation_engine import RejectionReason
from hackportal.services.container import PortalServices

router = APIRouter(tags=["Registrations"])


def rejection_error(reason: RejectionReason, team_number: str, problem_statement_id: str) -> PortalError:
    """HTTP-facing error for an allocation rejection"""
    if reason == RejectionReason.DUPLICATE_TEAM:
        return DuplicateTeamError(team_number)
    if reason == RejectionReason.UNKNOWN_PROBLEM:
        return ProblemStatementNotFoundError(problem_statement_id)
    return ProblemFullError(problem_statement_id)


@router.post("/register", response_model=RegisterResponse)
async def register_team(
    payload: RegisterRequest,
    portal: PortalServices = Depends(get_portal)
):
    """
    Register a team for a problem statement.

    Returns 409 when the team number is taken or the problem is full, and
    404 when the problem statement does not exist.
    """
    missing = payload.missing_fields()
    if missing:
        raise MissingFieldsError(missing)

    result = await portal.engine.register(
        payload.teamNumber,
        payload.teamName,
        payload.teamLeader,
        payload.problemStatementId,
    )
    if not result.ok:
        raise rejection_error(result.rejection, payload.teamNumber.strip(), payload.problemStatementId.strip())

    registration = {
        **result.registration.to_document(),
        "problemStatement": result.problem_statement.to_document(),
    }
    await portal.broadcaster.broadcast_snapshot(
        EventType.REGISTRATION, portal.projector, newRegistration=registration
    )
    return RegisterResponse(registration=registration)


@router.delete("/registration/{team_number}", response_model=MessageResponse)
async def delete_registration(
    team_number: str,
    portal: PortalServices = Depends(get_portal)
):
    """Remove a team's registration (admin)"""
    removed = await portal.engine.release(team_number)
    if not removed:
        raise RegistrationNotFoundError(team_number)

    await portal.broadcaster.broadcast_snapshot(
        EventType.REGISTRATION_DELETE, portal.projector, teamNumber=team_number.strip()
    )
    return MessageResponse(message="Registration deleted successfully")


@router.get("/registrations", response_model=List[RegistrationView])
async def list_registrations(
    response: Response,
    portal: PortalServices = Depends(get_portal)
):
    """All registrations joined with their problem statement"""
    no_cache(response)
    return await portal.projector.list_registrations()


@router.get("/registrations/problem/{problem_statement_id}", response_model=List[RegistrationView])
async def list_registrations_for_problem(
    problem_statement_id: str,
    response: Response,
    portal: PortalServices = Depends(get_portal)
):
    """Registrations for one problem statement"""
    no_cache(response)
    return await portal.projector.list_registrations_for(problem_statement_id)
