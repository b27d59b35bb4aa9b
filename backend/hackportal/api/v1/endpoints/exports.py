"""
Data export endpoints (CSV / JSON attachments)
"""
import json

from fastapi import APIRouter, Depends
from fastapi.responses import Response, StreamingResponse

from hackportal.api.deps import get_portal
from hackportal.services import exports
from hackportal.services.container import PortalServices

router = APIRouter(prefix="/export", tags=["Exports"])


def _csv_attachment(content: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


def _json_attachment(payload, filename: str) -> Response:
    return Response(
        content=json.dumps(payload, indent=2, ensure_ascii=False),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("/registrations/csv")
async def export_registrations_csv(portal: PortalServices = Depends(get_portal)):
    registrations = await portal.projector.list_registrations()
    return _csv_attachment(exports.registrations_csv(registrations), "registrations.csv")


@router.get("/problem-statements/csv")
async def export_problem_statements_csv(portal: PortalServices = Depends(get_portal)):
    statements = await portal.projector.list_problem_statements()
    return _csv_attachment(exports.problem_statements_csv(statements), "problem-statements.csv")


@router.get("/all/json")
async def export_all_json(portal: PortalServices = Depends(get_portal)):
    return _json_attachment(await exports.export_all(portal.projector), "hackathon-data.json")


@router.get("/registrations/json")
async def export_registrations_json(portal: PortalServices = Depends(get_portal)):
    registrations = await portal.projector.list_registrations()
    return _json_attachment([r.model_dump() for r in registrations], "registrations.json")


@router.get("/problem-statements/json")
async def export_problem_statements_json(portal: PortalServices = Depends(get_portal)):
    statements = await portal.projector.list_problem_statements()
    return _json_attachment([s.model_dump() for s in statements], "problem-statements.json")
