"""Error taxonomy for the survey core."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Category of a survey failure."""

    NOT_FOUND = "not_found"
    PRECONDITION = "precondition"
    VALIDATION = "validation"
    COLLABORATOR = "collaborator"


class SurveyError(Exception):
    """Base exception for survey operations."""

    kind = ErrorKind.PRECONDITION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProgressNotFoundError(SurveyError):
    """No progress record exists for the user."""

    kind = ErrorKind.NOT_FOUND


class PhaseOrderError(SurveyError):
    """A phase transition was requested out of order."""

    kind = ErrorKind.PRECONDITION


class SurveyValidationError(SurveyError):
    """Submitted data failed validation."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class RepositoryError(SurveyError):
    """A storage collaborator failed."""

    kind = ErrorKind.COLLABORATOR


class ConcurrentUpdateError(RepositoryError):
    """Progress changed in storage after it was loaded."""


class ResultNotFoundError(SurveyError):
    """No stored result exists for the user."""

    kind = ErrorKind.NOT_FOUND
