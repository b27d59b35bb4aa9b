from hackportal.schemas.events import EventFrame, EventType
from hackportal.schemas.problem_statement import (
    ImportResult,
    ProblemStatementCreate,
    ProblemStatementCreated,
    ProblemStatementDeleted,
    ProblemStatementImport,
    ProblemStatementUpdate,
    ProblemStatementView,
)
from hackportal.schemas.registration import (
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    RegistrationView,
)

__all__ = [
    "EventFrame",
    "EventType",
    "ImportResult",
    "MessageResponse",
    "ProblemStatementCreate",
    "ProblemStatementCreated",
    "ProblemStatementDeleted",
    "ProblemStatementImport",
    "ProblemStatementUpdate",
    "ProblemStatementView",
    "RegisterRequest",
    "RegisterResponse",
    "RegistrationView",
]
