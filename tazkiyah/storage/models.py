"""Database models for survey storage using SQLModel."""

from typing import Optional

from sqlmodel import Field, SQLModel, UniqueConstraint


class SurveyProgressRecord(SQLModel, table=True):
    """Per-user progress row. Dates are ISO-8601 strings."""

    __tablename__ = "survey_progress"

    user_id: str = Field(primary_key=True)
    current_phase: int = Field(default=0, ge=0, le=4)
    phase1_completed: bool = False
    phase2_completed: bool = False
    reflection_completed: bool = False
    results_generated: bool = False
    started_at: str
    last_updated: str
    revision: int = Field(default=0)  # bumped on every successful write


class SurveyResponseRecord(SQLModel, table=True):
    """One Likert answer, unique per user and question."""

    __tablename__ = "survey_responses"

    id: str = Field(primary_key=True)  # UUID
    user_id: str = Field(index=True)
    question_id: str
    phase_number: int
    score: int = Field(ge=1, le=5)
    note: Optional[str] = None
    created_at: str

    __table_args__ = (UniqueConstraint("user_id", "question_id"),)


class SurveyResultRecord(SQLModel, table=True):
    """Derived survey result, one per user."""

    __tablename__ = "survey_results"

    id: str = Field(primary_key=True)  # UUID
    user_id: str = Field(unique=True, index=True)
    result_json: str  # JSON-encoded result DTO
    generated_at: str
    updated_at: str
