"""
Custom Exceptions for the Registration Portal
=============================================

Use these instead of generic Exception so the API layer can map every
failure to a distinguishable status code and message.

Usage:
    from hackportal.core.exceptions import ProblemStatementNotFoundError

    if not statement:
        raise ProblemStatementNotFoundError(problem_statement_id)

Expected registration rejections (duplicate team, full problem, unknown
problem) are NOT raised by the allocation engine; they come back as values
and are converted to the matching exception only at the HTTP boundary.
"""

from typing import Optional, Any, Dict


class PortalError(Exception):
    """Base exception for all portal errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(PortalError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class MissingFieldsError(ValidationError):
    """One or more required fields are absent or blank"""

    def __init__(self, fields: list):
        super().__init__(f"Missing required fields: {', '.join(fields)}")
        self.code = "MISSING_FIELDS"
        self.details = {"fields": list(fields)}


# ============================================
# Resource Errors (404-type)
# ============================================

class NotFoundError(PortalError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"{resource_type} '{resource_id}' not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class ProblemStatementNotFoundError(NotFoundError):
    """Problem statement does not exist"""

    def __init__(self, problem_statement_id: str):
        super().__init__("Problem statement", problem_statement_id, "Problem statement not found.")
        self.details["reason"] = "UnknownProblem"


class RegistrationNotFoundError(NotFoundError):
    """No registration for this team number"""

    def __init__(self, team_number: str):
        super().__init__("Registration", team_number, "Registration not found")


class TeamNotFoundError(NotFoundError):
    """Team number missing from the team directory"""

    def __init__(self, team_number: str):
        super().__init__("Team", team_number, "Team not found")


# ============================================
# Conflict Errors (409-type)
# ============================================

class ConflictError(PortalError):
    """Business rule violation - retrying the same input will fail again"""

    status_code = 409

    def __init__(self, message: str, code: str = "CONFLICT", reason: Optional[str] = None):
        details = {"reason": reason} if reason else {}
        super().__init__(message, code=code, details=details)


class DuplicateTeamError(ConflictError):
    """Team number already holds a registration"""

    def __init__(self, team_number: str):
        super().__init__("Team number already registered.", code="DUPLICATE_TEAM", reason="DuplicateTeam")
        self.details["team_number"] = team_number


class ProblemFullError(ConflictError):
    """Problem statement reached its maximum selections"""

    def __init__(self, problem_statement_id: str):
        super().__init__("Problem statement is full.", code="PROBLEM_FULL", reason="ProblemFull")
        self.details["problem_statement_id"] = problem_statement_id


class ProblemStatementExistsError(ConflictError):
    """A problem statement with this id already exists"""

    def __init__(self, problem_statement_id: str):
        super().__init__(
            f"Problem statement '{problem_statement_id}' already exists",
            code="ALREADY_EXISTS",
            reason="AlreadyExists"
        )
        self.details["problem_statement_id"] = problem_statement_id


# ============================================
# Storage Errors (5xx-type)
# ============================================

class StoreError(PortalError):
    """Storage backend failure"""

    status_code = 500

    def __init__(self, message: str, code: str = "STORE_ERROR"):
        super().__init__(message, code=code)


class StoreUnavailableError(StoreError):
    """Backend cannot be reached"""

    status_code = 503

    def __init__(self, message: str = "Storage backend unavailable"):
        super().__init__(message, code="STORE_UNAVAILABLE")


class StoreTimeoutError(StoreError):
    """Store operation exceeded its time budget"""

    status_code = 503

    def __init__(self, operation: str, timeout_seconds: float):
        super().__init__(
            f"Store operation '{operation}' timed out after {timeout_seconds}s",
            code="STORE_TIMEOUT"
        )
        self.details = {"operation": operation, "timeout_seconds": timeout_seconds}


class TransactionConflictError(StoreError):
    """Concurrent transaction conflict (serialization failure, deadlock, lock contention)"""

    def __init__(self, message: str = "Transaction conflict"):
        super().__init__(message, code="TRANSACTION_CONFLICT")


class DuplicateKeyError(PortalError):
    """Insert rejected by a uniqueness constraint in the store"""

    status_code = 409

    def __init__(self, collection: str, key: str):
        super().__init__(
            f"Duplicate key '{key}' in {collection}",
            code="DUPLICATE_KEY",
            details={"collection": collection, "key": key}
        )
        self.collection = collection
        self.key = key


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: PortalError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "error": error.message,
        "code": error.code,
        "details": error.details
    }
