# Re-export all models for convenient imports
from hackportal.models.problem_statement import ProblemStatementRecord
from hackportal.models.registration import RegistrationRecord

__all__ = [
    "ProblemStatementRecord",
    "RegistrationRecord",
]
