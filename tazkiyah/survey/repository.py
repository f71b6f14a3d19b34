"""Persistence port used by the survey use cases."""

from abc import ABC, abstractmethod
from typing import List, Optional

from tazkiyah.survey.progress import SurveyProgress
from tazkiyah.survey.responses import SurveyResponse
from tazkiyah.survey.results import SurveyResult


class SurveyRepository(ABC):
    """Storage capabilities the survey flow depends on.

    Implementations raise :class:`~tazkiyah.survey.errors.RepositoryError`
    for storage failures. ``save_progress`` must reject a write whose
    ``revision`` no longer matches the stored one by raising
    :class:`~tazkiyah.survey.errors.ConcurrentUpdateError`.
    """

    @abstractmethod
    def get_progress(self, user_id: str) -> Optional[SurveyProgress]:
        """Return the user's progress, or None for a first-time user."""

    @abstractmethod
    def save_progress(self, progress: SurveyProgress) -> SurveyProgress:
        """Insert or update progress, bumping its revision."""

    @abstractmethod
    def save_responses(self, responses: List[SurveyResponse]) -> List[SurveyResponse]:
        """Upsert responses keyed by user and question."""

    @abstractmethod
    def get_responses(self, user_id: str) -> List[SurveyResponse]:
        """All stored responses for the user."""

    @abstractmethod
    def get_result(self, user_id: str) -> Optional[SurveyResult]:
        """The user's stored result, if any."""

    @abstractmethod
    def save_result(self, result: SurveyResult) -> SurveyResult:
        """Insert or replace the user's result."""

    @abstractmethod
    def delete_survey_data(self, user_id: str) -> None:
        """Remove the user's responses and result."""
