"""
Plain records shared by every store backend.

The stores hand these back instead of ORM rows or raw dicts so the services
never depend on which backend is configured.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def utc_now_iso() -> str:
    """Current instant as ISO-8601 UTC with millisecond precision and a Z suffix"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def clamp_max_selections(value: Any) -> int:
    """Coerce a raw maxSelections value to an int >= 1"""
    if isinstance(value, bool):
        return 1
    if isinstance(value, (int, float)):
        parsed = int(value)
    else:
        try:
            parsed = int(str(value).strip())
        except (TypeError, ValueError):
            try:
                parsed = int(float(str(value).strip()))
            except (TypeError, ValueError):
                parsed = 0
    return max(1, parsed)


def normalize_technologies(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item) for item in value]


def _optional_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


@dataclass
class ProblemStatement:
    """Catalog entry; selected count and availability are never stored"""
    id: str
    title: str
    description: str = ""
    max_selections: int = 1
    category: Optional[str] = None
    difficulty: Optional[str] = None
    technologies: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProblemStatement":
        """Build from camelCase or snake_case input, applying the catalog coercions"""
        raw_max = data.get("maxSelections", data.get("max_selections"))
        return cls(
            id=str(data.get("id", "")).strip(),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            max_selections=clamp_max_selections(raw_max),
            category=_optional_text(data.get("category")),
            difficulty=_optional_text(data.get("difficulty")),
            technologies=normalize_technologies(data.get("technologies")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "maxSelections": self.max_selections,
            "category": self.category,
            "difficulty": self.difficulty,
            "technologies": list(self.technologies),
        }


# Fields an admin update may touch, keyed by every accepted spelling
UPDATABLE_FIELDS = {
    "title": "title",
    "description": "description",
    "maxSelections": "max_selections",
    "max_selections": "max_selections",
    "category": "category",
    "difficulty": "difficulty",
    "technologies": "technologies",
}


def normalize_updates(updates: Dict[str, Any]) -> Dict[str, Any]:
    """Reduce a partial update to known snake_case fields with coercions applied"""
    normalized: Dict[str, Any] = {}
    for key, value in updates.items():
        attr = UPDATABLE_FIELDS.get(key)
        if attr is None:
            continue
        if attr == "max_selections":
            value = clamp_max_selections(value)
        elif attr == "technologies":
            value = normalize_technologies(value)
        elif attr in ("category", "difficulty"):
            value = _optional_text(value)
        elif value is None:
            continue
        else:
            value = str(value)
        normalized[attr] = value
    return normalized


@dataclass
class Registration:
    """Ledger entry, keyed by team number"""
    team_number: str
    team_name: str
    team_leader: str
    problem_statement_id: str
    registration_date_time: str = field(default_factory=utc_now_iso)

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "Registration":
        return cls(
            team_number=str(data["teamNumber"]).strip(),
            team_name=data.get("teamName") or "",
            team_leader=data.get("teamLeader") or "",
            problem_statement_id=data["problemStatementId"],
            registration_date_time=data.get("registrationDateTime") or utc_now_iso(),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "teamNumber": self.team_number,
            "teamName": self.team_name,
            "teamLeader": self.team_leader,
            "problemStatementId": self.problem_statement_id,
            "registrationDateTime": self.registration_date_time,
        }

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
