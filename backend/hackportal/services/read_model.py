"""
Read-Model Projector
====================

Derives the views clients see from one store snapshot: problem statements
with live selectedCount / isAvailable, and registrations joined with their
problem statement. Nothing here is cached; every call recomputes.
"""

from collections import Counter
from typing import Any, Dict, List

from hackportal.schemas.problem_statement import ProblemStatementView
from hackportal.schemas.registration import RegistrationView
from hackportal.store.base import PortalStore, bounded
from hackportal.store.records import ProblemStatement, Registration


def project_problem_statements(
    statements: List[ProblemStatement],
    registrations: List[Registration],
) -> List[ProblemStatementView]:
    counts = Counter(r.problem_statement_id for r in registrations)
    views = []
    for statement in statements:
        selected = counts.get(statement.id, 0)
        views.append(ProblemStatementView(
            id=statement.id,
            title=statement.title,
            description=statement.description,
            maxSelections=statement.max_selections,
            category=statement.category,
            difficulty=statement.difficulty,
            technologies=list(statement.technologies),
            selectedCount=selected,
            isAvailable=selected < statement.max_selections,
        ))
    return views


def project_registrations(
    statements: List[ProblemStatement],
    registrations: List[Registration],
) -> List[RegistrationView]:
    """Join each registration to its statement; orphans keep empty problem fields"""
    by_id = {s.id: s for s in statements}
    views = []
    for registration in registrations:
        statement = by_id.get(registration.problem_statement_id)
        views.append(RegistrationView(
            team_number=registration.team_number,
            team_name=registration.team_name,
            team_leader=registration.team_leader,
            problem_statement_id=registration.problem_statement_id,
            problem_title=statement.title if statement else "",
            problem_category=statement.category if statement else None,
            problem_difficulty=statement.difficulty if statement else None,
            registration_date_time=registration.registration_date_time,
        ))
    return views


class ReadModelProjector:
    def __init__(self, store: PortalStore, timeout_seconds: float = 10.0):
        self.store = store
        self.timeout_seconds = timeout_seconds

    async def _snapshot(self):
        return await bounded(self.store.snapshot(), "snapshot", self.timeout_seconds)

    async def list_problem_statements(self) -> List[ProblemStatementView]:
        statements, registrations = await self._snapshot()
        return project_problem_statements(statements, registrations)

    async def list_registrations(self) -> List[RegistrationView]:
        statements, registrations = await self._snapshot()
        return project_registrations(statements, registrations)

    async def list_registrations_for(self, problem_statement_id: str) -> List[RegistrationView]:
        statements, registrations = await self._snapshot()
        matching = [r for r in registrations if r.problem_statement_id == problem_statement_id]
        return project_registrations(statements, matching)

    async def snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        """Full refreshed view for broadcasts and exports"""
        statements, registrations = await self._snapshot()
        return {
            "registrations": [v.model_dump() for v in project_registrations(statements, registrations)],
            "problems": [v.model_dump() for v in project_problem_statements(statements, registrations)],
        }
