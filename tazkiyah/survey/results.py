"""Result derivation: reflection validation, categorization and SurveyResult."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from tazkiyah.shared.clock import from_iso, to_iso, utc_now
from tazkiyah.survey.diseases import (
    CANONICAL_ORDER,
    DISEASE_LABELS,
    REFLECTION_MAX_LENGTH,
    REFLECTION_MIN_LENGTH,
    Disease,
)
from tazkiyah.survey.errors import SurveyValidationError

CRITICAL_MIN_SCORE = 4
MODERATE_SCORE = 3


# Reflection validation


@dataclass(frozen=True)
class ReflectionAnswers:
    """Free-text answers given in the Reflection phase."""

    strongest_struggle: str
    daily_habit: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "strongestStruggle": self.strongest_struggle,
            "dailyHabit": self.daily_habit,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, str]) -> "ReflectionAnswers":
        return cls(
            strongest_struggle=data["strongestStruggle"],
            daily_habit=data["dailyHabit"],
        )


def _validate_reflection_field(text: Optional[str], label: str, field_name: str) -> None:
    # Minimum is checked on trimmed text, maximum on the raw text
    if not text or len(text.strip()) < REFLECTION_MIN_LENGTH:
        raise SurveyValidationError(
            f"{label} response must be at least {REFLECTION_MIN_LENGTH} characters",
            field=field_name,
        )
    if len(text) > REFLECTION_MAX_LENGTH:
        raise SurveyValidationError(
            f"{label} response cannot exceed {REFLECTION_MAX_LENGTH} characters",
            field=field_name,
        )


def validate_reflection(strongest_struggle: Optional[str], daily_habit: Optional[str]) -> None:
    """Check both reflection answers, raising on the first violation found.

    Strongest-struggle checks run before daily-habit checks. Lengths of
    exactly 10 and exactly 500 characters are accepted.

    Raises:
        SurveyValidationError: With ``field`` naming the offending answer
    """
    _validate_reflection_field(strongest_struggle, "Strongest struggle", "strongestStruggle")
    _validate_reflection_field(daily_habit, "Daily habit", "dailyHabit")


# Disease categorization


@dataclass(frozen=True)
class DiseaseCategories:
    """Disjoint partition of the disease keys by severity."""

    critical: List[Disease]
    moderate: List[Disease]
    strengths: List[Disease]

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "critical": [d.value for d in self.critical],
            "moderate": [d.value for d in self.moderate],
            "strengths": [d.value for d in self.strengths],
        }


def categorize_diseases(disease_scores: Mapping[Disease, int]) -> DiseaseCategories:
    """Bucket each scored disease as critical (4-5), moderate (3) or strength (1-2).

    Buckets follow the canonical disease order, whatever the mapping order.
    """
    critical, moderate, strengths = [], [], []
    for disease in CANONICAL_ORDER:
        if disease not in disease_scores:
            continue
        score = disease_scores[disease]
        if score >= CRITICAL_MIN_SCORE:
            critical.append(disease)
        elif score == MODERATE_SCORE:
            moderate.append(disease)
        else:
            strengths.append(disease)
    return DiseaseCategories(critical=critical, moderate=moderate, strengths=strengths)


def normalize_disease_scores(
    disease_scores: Mapping[Union[Disease, str], int],
) -> Dict[Disease, int]:
    """Key scores by :class:`Disease` and require all eleven dimensions.

    Raises:
        SurveyValidationError: If a key is unknown or any dimension is missing
    """
    normalized: Dict[Disease, int] = {}
    for key, score in disease_scores.items():
        try:
            disease = Disease(key)
        except ValueError:
            raise SurveyValidationError(
                f"Unknown disease: {key}", field="diseaseScores"
            ) from None
        normalized[disease] = score

    missing = [d.value for d in CANONICAL_ORDER if d not in normalized]
    if missing:
        raise SurveyValidationError(
            f"Missing scores for diseases: {', '.join(missing)}", field="diseaseScores"
        )

    return {disease: normalized[disease] for disease in CANONICAL_ORDER}


# Habits and plan


@dataclass(frozen=True)
class PersonalizedHabit:
    """Structured habit recommendation persisted with a result."""

    id: str
    title: str
    description: str
    frequency: str  # "daily" | "weekly" | "bi-weekly"
    target_disease: Disease
    difficulty_level: str  # "easy" | "moderate" | "challenging"
    estimated_duration: str
    islamic_content_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "frequency": self.frequency,
            "targetDisease": self.target_disease.value,
            "difficultyLevel": self.difficulty_level,
            "estimatedDuration": self.estimated_duration,
            "islamicContentIds": list(self.islamic_content_ids),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PersonalizedHabit":
        return cls(
            id=data["id"],
            title=data["title"],
            description=data["description"],
            frequency=data["frequency"],
            target_disease=Disease(data["targetDisease"]),
            difficulty_level=data["difficultyLevel"],
            estimated_duration=data["estimatedDuration"],
            islamic_content_ids=list(data.get("islamicContentIds", [])),
        )


@dataclass(frozen=True)
class Practice:
    name: str
    type: str  # "dhikr" | "dua" | "reflection" | "behavioral" | "study"
    description: str
    frequency: str
    islamic_content_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "frequency": self.frequency,
            "islamicContentIds": list(self.islamic_content_ids),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Practice":
        return cls(
            name=data["name"],
            type=data["type"],
            description=data["description"],
            frequency=data["frequency"],
            islamic_content_ids=list(data.get("islamicContentIds", [])),
        )


@dataclass(frozen=True)
class TazkiyahPhase:
    phase_number: int
    title: str
    description: str
    target_diseases: List[Disease]
    duration: str
    practices: List[Practice]
    checkpoints: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phaseNumber": self.phase_number,
            "title": self.title,
            "description": self.description,
            "targetDiseases": [d.value for d in self.target_diseases],
            "duration": self.duration,
            "practices": [p.to_dict() for p in self.practices],
            "checkpoints": list(self.checkpoints),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TazkiyahPhase":
        return cls(
            phase_number=data["phaseNumber"],
            title=data["title"],
            description=data["description"],
            target_diseases=[Disease(d) for d in data["targetDiseases"]],
            duration=data["duration"],
            practices=[Practice.from_dict(p) for p in data["practices"]],
            checkpoints=list(data["checkpoints"]),
        )


@dataclass(frozen=True)
class PlanMilestone:
    id: str
    title: str
    description: str
    target_date: datetime
    completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "targetDate": to_iso(self.target_date),
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlanMilestone":
        return cls(
            id=data["id"],
            title=data["title"],
            description=data["description"],
            target_date=from_iso(data["targetDate"]),
            completed=data.get("completed", False),
        )


@dataclass(frozen=True)
class TazkiyahPlan:
    """Improvement plan keyed by the critical diseases."""

    critical_diseases: List[Disease]
    plan_type: str = "takhliyah"
    phases: List[TazkiyahPhase] = field(default_factory=list)
    expected_duration: str = ""
    milestones: List[PlanMilestone] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "criticalDiseases": [d.value for d in self.critical_diseases],
            "planType": self.plan_type,
            "phases": [p.to_dict() for p in self.phases],
            "expectedDuration": self.expected_duration,
            "milestones": [m.to_dict() for m in self.milestones],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TazkiyahPlan":
        return cls(
            critical_diseases=[Disease(d) for d in data["criticalDiseases"]],
            plan_type=data.get("planType", "takhliyah"),
            phases=[TazkiyahPhase.from_dict(p) for p in data.get("phases", [])],
            expected_duration=data.get("expectedDuration", ""),
            milestones=[PlanMilestone.from_dict(m) for m in data.get("milestones", [])],
        )


# Survey result


class SurveyResult:
    """Derived outcome of a completed reflection.

    Built only through :meth:`create`, which validates everything before
    constructing, so an invalid input never yields a partial result.
    ``critical_diseases`` is computed once at construction;
    :meth:`get_categorized_diseases` recomputes from the stored scores.
    """

    def __init__(
        self,
        id: str,
        user_id: str,
        disease_scores: Dict[Disease, int],
        critical_diseases: List[Disease],
        reflection_answers: ReflectionAnswers,
        personalized_habits: List[PersonalizedHabit],
        tazkiyah_plan: TazkiyahPlan,
        generated_at: datetime,
        updated_at: datetime,
    ):
        self._id = id
        self._user_id = user_id
        self._disease_scores = disease_scores
        self._critical_diseases = critical_diseases
        self._reflection_answers = reflection_answers
        self._personalized_habits = personalized_habits
        self._tazkiyah_plan = tazkiyah_plan
        self._generated_at = generated_at
        self._updated_at = updated_at

    @classmethod
    def create(
        cls,
        user_id: str,
        disease_scores: Mapping[Union[Disease, str], int],
        reflection_answers: ReflectionAnswers,
        personalized_habits: Optional[List[PersonalizedHabit]] = None,
        tazkiyah_plan: Optional[TazkiyahPlan] = None,
        id: Optional[str] = None,
        generated_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> "SurveyResult":
        """Validate inputs and build a result.

        Raises:
            SurveyValidationError: If a reflection answer is out of bounds,
                a disease score is missing or unknown, or two habits share
                an id
        """
        validate_reflection(
            reflection_answers.strongest_struggle, reflection_answers.daily_habit
        )
        scores = normalize_disease_scores(disease_scores)

        habits = list(personalized_habits or [])
        habit_ids = [habit.id for habit in habits]
        if len(habit_ids) != len(set(habit_ids)):
            raise SurveyValidationError(
                "Habit with this ID already exists", field="personalizedHabits"
            )

        critical = categorize_diseases(scores).critical
        now = utc_now()

        return cls(
            id=id or str(uuid.uuid4()),
            user_id=user_id,
            disease_scores=scores,
            critical_diseases=critical,
            reflection_answers=reflection_answers,
            personalized_habits=habits,
            tazkiyah_plan=tazkiyah_plan or TazkiyahPlan(critical_diseases=list(critical)),
            generated_at=generated_at or now,
            updated_at=updated_at or now,
        )

    @property
    def id(self) -> str:
        return self._id

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def disease_scores(self) -> Dict[Disease, int]:
        return dict(self._disease_scores)

    @property
    def critical_diseases(self) -> List[Disease]:
        return list(self._critical_diseases)

    @property
    def moderate_diseases(self) -> List[Disease]:
        return categorize_diseases(self._disease_scores).moderate

    @property
    def strengths(self) -> List[Disease]:
        return categorize_diseases(self._disease_scores).strengths

    @property
    def reflection_answers(self) -> ReflectionAnswers:
        return self._reflection_answers

    @property
    def personalized_habits(self) -> List[PersonalizedHabit]:
        return list(self._personalized_habits)

    @property
    def tazkiyah_plan(self) -> TazkiyahPlan:
        return self._tazkiyah_plan

    @property
    def generated_at(self) -> datetime:
        return self._generated_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def radar_chart_data(self) -> Dict[str, Any]:
        return {
            "labels": [DISEASE_LABELS[d] for d in CANONICAL_ORDER],
            "datasets": [
                {
                    "label": "Spiritual Assessment",
                    "data": [self._disease_scores[d] for d in CANONICAL_ORDER],
                }
            ],
        }

    def add_personalized_habit(self, habit: PersonalizedHabit) -> None:
        if any(existing.id == habit.id for existing in self._personalized_habits):
            raise SurveyValidationError(
                "Habit with this ID already exists", field="personalizedHabits"
            )
        self._personalized_habits.append(habit)
        self._updated_at = utc_now()

    def attach_tazkiyah_plan(self, plan: TazkiyahPlan) -> None:
        self._tazkiyah_plan = plan
        self._updated_at = utc_now()

    def get_categorized_diseases(self) -> DiseaseCategories:
        return categorize_diseases(self._disease_scores)

    def get_score_for_disease(self, disease: Union[Disease, str]) -> Optional[int]:
        return self._disease_scores.get(Disease(disease))

    def to_dto(self) -> Dict[str, Any]:
        return {
            "id": self._id,
            "userId": self._user_id,
            "diseaseScores": {d.value: s for d, s in self._disease_scores.items()},
            "categorizedDiseases": self.get_categorized_diseases().to_dict(),
            "criticalDiseases": [d.value for d in self._critical_diseases],
            "reflectionAnswers": self._reflection_answers.to_dict(),
            "personalizedHabits": [h.to_dict() for h in self._personalized_habits],
            "tazkiyahPlan": self._tazkiyah_plan.to_dict(),
            "radarChartData": self.radar_chart_data,
            "generatedAt": to_iso(self._generated_at),
            "updatedAt": to_iso(self._updated_at),
        }

    @classmethod
    def from_dto(cls, data: Mapping[str, Any]) -> "SurveyResult":
        return cls.create(
            id=data["id"],
            user_id=data["userId"],
            disease_scores=data["diseaseScores"],
            reflection_answers=ReflectionAnswers.from_dict(data["reflectionAnswers"]),
            personalized_habits=[
                PersonalizedHabit.from_dict(h) for h in data.get("personalizedHabits", [])
            ],
            tazkiyah_plan=TazkiyahPlan.from_dict(data["tazkiyahPlan"]),
            generated_at=from_iso(data["generatedAt"]),
            updated_at=from_iso(data["updatedAt"]),
        )
