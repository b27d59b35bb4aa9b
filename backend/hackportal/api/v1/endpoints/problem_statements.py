"""
Problem statement catalog endpoints
"""
from fastapi import APIRouter, Depends, Response, status
from typing import List

from hackportal.api.deps import get_portal, no_cache
from hackportal.core.exceptions import ProblemStatementNotFoundError
from hackportal.schemas.events import EventType
from hackportal.schemas.problem_statement import (
    ImportResult,
    ProblemStatementCreate,
    ProblemStatementCreated,
    ProblemStatementDeleted,
    ProblemStatementImport,
    ProblemStatementUpdate,
    ProblemStatementView,
)
from hackportal.schemas.registration import MessageResponse
from hackportal.services.container import PortalServices

router = APIRouter(prefix="/problem-statements", tags=["Problem Statements"])


@router.get("", response_model=List[ProblemStatementView])
async def list_problem_statements(
    response: Response,
    portal: PortalServices = Depends(get_portal)
):
    """All problem statements with live selectedCount / isAvailable"""
    no_cache(response)
    return await portal.projector.list_problem_statements()


@router.post("", response_model=ProblemStatementCreated, status_code=status.HTTP_201_CREATED)
async def create_problem_statement(
    payload: ProblemStatementCreate,
    portal: PortalServices = Depends(get_portal)
):
    """Create a problem statement (admin). 409 if the id already exists."""
    statement = await portal.catalog.create(payload.model_dump(exclude_none=True))
    await portal.broadcaster.broadcast_snapshot(
        EventType.PROBLEM_STATEMENT_CREATE, portal.projector, problemStatementId=statement.id
    )
    return ProblemStatementCreated(id=statement.id)


@router.post("/import", response_model=ImportResult)
async def import_problem_statements(
    payload: ProblemStatementImport,
    portal: PortalServices = Depends(get_portal)
):
    """Bulk import; entries whose id already exists are left untouched"""
    imported = await portal.catalog.bulk_import(payload.problemStatements)
    if imported:
        await portal.broadcaster.broadcast_snapshot(
            EventType.PROBLEM_STATEMENTS_IMPORT, portal.projector, imported=imported
        )
    return ImportResult(message=f"Imported {imported} problem statements", imported=imported)


@router.put("/{problem_statement_id}", response_model=MessageResponse)
async def update_problem_statement(
    problem_statement_id: str,
    payload: ProblemStatementUpdate,
    portal: PortalServices = Depends(get_portal)
):
    """Partially update a problem statement (admin)"""
    changed = await portal.catalog.update(problem_statement_id, payload.model_dump(exclude_unset=True))
    if not changed:
        raise ProblemStatementNotFoundError(problem_statement_id)

    await portal.broadcaster.broadcast_snapshot(
        EventType.PROBLEM_STATEMENT_UPDATE, portal.projector, problemStatementId=problem_statement_id
    )
    return MessageResponse(message="Problem statement updated successfully")


@router.delete("/{problem_statement_id}", response_model=ProblemStatementDeleted)
async def delete_problem_statement(
    problem_statement_id: str,
    portal: PortalServices = Depends(get_portal)
):
    """Delete a problem statement and every registration for it (admin)"""
    deleted, cascaded = await portal.catalog.delete(problem_statement_id)
    if not deleted:
        raise ProblemStatementNotFoundError(problem_statement_id)

    await portal.broadcaster.broadcast_snapshot(
        EventType.PROBLEM_STATEMENT_DELETE, portal.projector,
        problemStatementId=problem_statement_id, deletedRegistrations=cascaded
    )
    return ProblemStatementDeleted(deletedRegistrations=cascaded)
