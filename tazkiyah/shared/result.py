"""Success/failure values returned across the survey core boundary."""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from tazkiyah.survey.errors import SurveyError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True

    @property
    def is_err(self) -> bool:
        return False


@dataclass(frozen=True)
class Err:
    """Failed outcome carrying the error that stopped the operation."""

    error: SurveyError

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def is_err(self) -> bool:
        return True

    @property
    def message(self) -> str:
        return self.error.message


Result = Union[Ok[Any], Err]
