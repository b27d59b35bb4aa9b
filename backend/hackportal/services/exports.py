"""
Data exports (CSV / JSON) built from the read model.
"""

import csv
import io
import json
from typing import Any, Dict, List

from hackportal.schemas.problem_statement import ProblemStatementView
from hackportal.schemas.registration import RegistrationView
from hackportal.services.read_model import ReadModelProjector
from hackportal.store.records import utc_now_iso

REGISTRATION_COLUMNS = [
    "team_number",
    "team_name",
    "team_leader",
    "problem_title",
    "problem_category",
    "problem_difficulty",
    "registration_date_time",
]

PROBLEM_STATEMENT_COLUMNS = [
    "id",
    "title",
    "description",
    "max_selections",
    "selected_count",
    "is_available",
    "category",
    "difficulty",
    "technologies",
]


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return value


def registrations_csv(registrations: List[RegistrationView]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(REGISTRATION_COLUMNS)
    for view in registrations:
        row = view.model_dump()
        writer.writerow([_cell(row[column]) for column in REGISTRATION_COLUMNS])
    return output.getvalue()


def problem_statements_csv(statements: List[ProblemStatementView]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(PROBLEM_STATEMENT_COLUMNS)
    for view in statements:
        writer.writerow([
            view.id,
            view.title,
            view.description,
            view.maxSelections,
            view.selectedCount,
            view.isAvailable,
            _cell(view.category),
            _cell(view.difficulty),
            _cell(view.technologies),
        ])
    return output.getvalue()


def summarize(statements: List[ProblemStatementView], registrations: List[RegistrationView]) -> Dict[str, int]:
    available = sum(1 for s in statements if s.isAvailable)
    return {
        "totalProblems": len(statements),
        "totalRegistrations": len(registrations),
        "availableProblems": available,
        "fullProblems": len(statements) - available,
    }


async def export_all(projector: ReadModelProjector) -> Dict[str, Any]:
    """Catalog, ledger and summary from a single snapshot"""
    snapshot = await projector.snapshot()
    statements = [ProblemStatementView(**p) for p in snapshot["problems"]]
    registrations = [RegistrationView(**r) for r in snapshot["registrations"]]
    return {
        "exportDate": utc_now_iso(),
        "problemStatements": snapshot["problems"],
        "registrations": snapshot["registrations"],
        "summary": summarize(statements, registrations),
    }
