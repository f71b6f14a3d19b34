"""Likert answers recorded for individual survey questions."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from tazkiyah.shared.clock import from_iso, to_iso, utc_now
from tazkiyah.survey.diseases import LIKERT_MAX, LIKERT_MIN, NOTE_MAX_LENGTH
from tazkiyah.survey.errors import SurveyValidationError


@dataclass(frozen=True)
class SurveyResponse:
    """One user's answer to one question, unique per user and question."""

    user_id: str
    question_id: str
    score: int
    phase_number: int
    note: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def create(
        cls,
        user_id: str,
        phase_number: int,
        question_id: str,
        score: int,
        note: Optional[str] = None,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> "SurveyResponse":
        """Validate and build a response.

        Raises:
            SurveyValidationError: If the phase, score, question id or note
                is out of bounds
        """
        if phase_number < 1 or phase_number > 3:
            raise SurveyValidationError(
                "Phase number must be between 1 and 3", field="phase_number"
            )
        if score < LIKERT_MIN or score > LIKERT_MAX:
            raise SurveyValidationError(
                f"Score must be between {LIKERT_MIN} and {LIKERT_MAX}", field="score"
            )
        if not question_id:
            raise SurveyValidationError("Question ID is required", field="question_id")
        if note and len(note) > NOTE_MAX_LENGTH:
            raise SurveyValidationError(
                f"Note cannot exceed {NOTE_MAX_LENGTH} characters", field="note"
            )

        kwargs = {}
        if id is not None:
            kwargs["id"] = id
        if created_at is not None:
            kwargs["created_at"] = created_at

        return cls(
            user_id=user_id,
            question_id=question_id,
            score=score,
            phase_number=phase_number,
            note=note,
            **kwargs,
        )

    def to_dto(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "phaseNumber": self.phase_number,
            "questionId": self.question_id,
            "score": self.score,
            "note": self.note,
            "createdAt": to_iso(self.created_at),
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "SurveyResponse":
        return cls.create(
            id=record["id"],
            user_id=record["user_id"],
            phase_number=record["phase_number"],
            question_id=record["question_id"],
            score=record["score"],
            note=record.get("note"),
            created_at=from_iso(record["created_at"]),
        )
