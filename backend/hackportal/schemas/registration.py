from pydantic import BaseModel, ConfigDict, field_validator
from typing import Any, Dict, Optional

REQUIRED_REGISTRATION_FIELDS = ("teamNumber", "teamName", "teamLeader", "problemStatementId")


class RegisterRequest(BaseModel):
    """Registration payload; blank or missing fields are reported as a 400 by the endpoint"""
    teamNumber: Optional[str] = None
    teamName: Optional[str] = None
    teamLeader: Optional[str] = None
    problemStatementId: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("teamNumber", "teamName", "teamLeader", "problemStatementId", mode="before")
    @classmethod
    def coerce_scalar(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        if isinstance(v, (str, int, float)) and not isinstance(v, bool):
            return str(v)
        return None

    def missing_fields(self) -> list:
        return [
            name for name in REQUIRED_REGISTRATION_FIELDS
            if not (getattr(self, name) or "").strip()
        ]


class RegistrationView(BaseModel):
    """Registration joined with its problem statement"""
    team_number: str
    team_name: str
    team_leader: str
    problem_statement_id: str
    problem_title: str = ""
    problem_category: Optional[str] = None
    problem_difficulty: Optional[str] = None
    registration_date_time: str


class RegisterResponse(BaseModel):
    message: str = "Registration successful!"
    registration: Dict[str, Any]


class MessageResponse(BaseModel):
    message: str
