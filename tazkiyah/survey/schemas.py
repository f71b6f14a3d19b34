"""Request schemas for survey submissions."""

from typing import ClassVar, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from tazkiyah.survey.diseases import (
    LIKERT_MAX,
    LIKERT_MIN,
    NOTE_MAX_LENGTH,
    Disease,
)

QuestionResponse = Tuple[str, int, Optional[str]]


def _score(alias: str, label: str):
    return Field(
        ..., ge=LIKERT_MIN, le=LIKERT_MAX, alias=alias, description=f"{label} Likert score"
    )


def _note(alias: str):
    return Field(None, max_length=NOTE_MAX_LENGTH, alias=alias, description="Optional note")


class PhaseRequest(BaseModel):
    """Likert answers for one survey phase, keyed by camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)

    # Disease -> attribute prefix, in canonical order
    diseases: ClassVar[Tuple[Tuple[Disease, str], ...]] = ()

    def to_question_responses(self) -> List[QuestionResponse]:
        """Convert to (question_id, score, note) triples in canonical order."""
        return [
            (
                disease.value,
                getattr(self, f"{prefix}_score"),
                getattr(self, f"{prefix}_note"),
            )
            for disease, prefix in self.diseases
        ]


class Phase1Request(PhaseRequest):
    """Phase 1 answers: envy, arrogance, self-deception and lust."""

    diseases: ClassVar[Tuple[Tuple[Disease, str], ...]] = (
        (Disease.ENVY, "envy"),
        (Disease.ARROGANCE, "arrogance"),
        (Disease.SELF_DECEPTION, "self_deception"),
        (Disease.LUST, "lust"),
    )

    envy_score: int = _score("envyScore", "Envy")
    envy_note: Optional[str] = _note("envyNote")
    arrogance_score: int = _score("arroganceScore", "Arrogance")
    arrogance_note: Optional[str] = _note("arroganceNote")
    self_deception_score: int = _score("selfDeceptionScore", "Self-deception")
    self_deception_note: Optional[str] = _note("selfDeceptionNote")
    lust_score: int = _score("lustScore", "Lust")
    lust_note: Optional[str] = _note("lustNote")


class Phase2Request(PhaseRequest):
    """Phase 2 answers for the remaining seven diseases."""

    diseases: ClassVar[Tuple[Tuple[Disease, str], ...]] = (
        (Disease.ANGER, "anger"),
        (Disease.MALICE, "malice"),
        (Disease.BACKBITING, "backbiting"),
        (Disease.SUSPICION, "suspicion"),
        (Disease.LOVE_OF_DUNYA, "love_of_dunya"),
        (Disease.LAZINESS, "laziness"),
        (Disease.DESPAIR, "despair"),
    )

    anger_score: int = _score("angerScore", "Anger")
    anger_note: Optional[str] = _note("angerNote")
    malice_score: int = _score("maliceScore", "Malice")
    malice_note: Optional[str] = _note("maliceNote")
    backbiting_score: int = _score("backbitingScore", "Backbiting")
    backbiting_note: Optional[str] = _note("backbitingNote")
    suspicion_score: int = _score("suspicionScore", "Suspicion")
    suspicion_note: Optional[str] = _note("suspicionNote")
    love_of_dunya_score: int = _score("loveOfDunyaScore", "Love of dunya")
    love_of_dunya_note: Optional[str] = _note("loveOfDunyaNote")
    laziness_score: int = _score("lazinessScore", "Laziness")
    laziness_note: Optional[str] = _note("lazinessNote")
    despair_score: int = _score("despairScore", "Despair")
    despair_note: Optional[str] = _note("despairNote")


class ReflectionRequest(BaseModel):
    """Free-text reflection answers.

    Length bounds are left to the reflection validator so its messages
    reach the caller unchanged.
    """

    model_config = ConfigDict(populate_by_name=True)

    strongest_struggle: str = Field(..., alias="strongestStruggle")
    daily_habit: str = Field(..., alias="dailyHabit")
