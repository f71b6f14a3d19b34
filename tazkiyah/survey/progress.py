"""Per-user survey progression through the five ordered phases."""

from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, Optional

from tazkiyah.shared.clock import from_iso, to_iso, utc_now
from tazkiyah.survey.errors import PhaseOrderError, SurveyValidationError


class SurveyPhase(IntEnum):
    """Ordered survey stages."""

    WELCOME = 0
    PHASE1 = 1
    PHASE2 = 2
    REFLECTION = 3
    RESULTS = 4


class SurveyProgress:
    """State machine owning one user's progression through the survey.

    ``current_phase`` moves forward one step per transition and the four
    completion flags only flip from False to True, except through
    :meth:`reset`. Every transition checks all of its preconditions before
    touching any field, so a rejected call leaves the instance unchanged.
    """

    def __init__(
        self,
        user_id: str,
        current_phase: int,
        phase1_completed: bool,
        phase2_completed: bool,
        reflection_completed: bool,
        results_generated: bool,
        started_at: datetime,
        last_updated: datetime,
        revision: int = 0,
    ):
        self._user_id = user_id
        self._current_phase = SurveyPhase(current_phase)
        self._phase1_completed = phase1_completed
        self._phase2_completed = phase2_completed
        self._reflection_completed = reflection_completed
        self._results_generated = results_generated
        self._started_at = started_at
        self._last_updated = last_updated
        # Storage revision this instance was loaded at, used for lost-update checks
        self.revision = revision

    @classmethod
    def create(
        cls,
        user_id: str,
        current_phase: int = 0,
        phase1_completed: bool = False,
        phase2_completed: bool = False,
        reflection_completed: bool = False,
        results_generated: bool = False,
        started_at: Optional[datetime] = None,
        last_updated: Optional[datetime] = None,
        revision: int = 0,
    ) -> "SurveyProgress":
        """Build a progress record, rejecting phases outside [0, 4]."""
        if not user_id:
            raise SurveyValidationError("User ID is required", field="user_id")
        if current_phase < SurveyPhase.WELCOME or current_phase > SurveyPhase.RESULTS:
            raise SurveyValidationError(
                "Current phase must be between 0 and 4", field="current_phase"
            )

        now = utc_now()
        return cls(
            user_id=user_id,
            current_phase=current_phase,
            phase1_completed=phase1_completed,
            phase2_completed=phase2_completed,
            reflection_completed=reflection_completed,
            results_generated=results_generated,
            started_at=started_at or now,
            last_updated=last_updated or now,
            revision=revision,
        )

    @classmethod
    def create_new(cls, user_id: str) -> "SurveyProgress":
        """Progress for a user at their first survey interaction."""
        return cls.create(user_id=user_id, current_phase=SurveyPhase.WELCOME)

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def current_phase(self) -> SurveyPhase:
        return self._current_phase

    @property
    def phase1_completed(self) -> bool:
        return self._phase1_completed

    @property
    def phase2_completed(self) -> bool:
        return self._phase2_completed

    @property
    def reflection_completed(self) -> bool:
        return self._reflection_completed

    @property
    def results_generated(self) -> bool:
        return self._results_generated

    @property
    def started_at(self) -> datetime:
        return self._started_at

    @property
    def last_updated(self) -> datetime:
        return self._last_updated

    @property
    def is_completed(self) -> bool:
        return self._results_generated

    @property
    def progress_percentage(self) -> int:
        """25 points per completed phase, counted in phase order."""
        percentage = 0
        for completed in (
            self._phase1_completed,
            self._phase2_completed,
            self._reflection_completed,
            self._results_generated,
        ):
            if not completed:
                break
            percentage += 25
        return percentage

    def _touch(self) -> None:
        self._last_updated = utc_now()

    def advance_to_phase1(self) -> None:
        if self._current_phase != SurveyPhase.WELCOME:
            raise PhaseOrderError("Can only advance to Phase 1 from welcome phase")
        self._current_phase = SurveyPhase.PHASE1
        self._touch()

    def complete_phase1(self) -> None:
        if self._current_phase != SurveyPhase.PHASE1:
            raise PhaseOrderError("Must be in Phase 1 to complete it")
        if self._phase1_completed:
            raise PhaseOrderError("Phase 1 is already completed")
        self._phase1_completed = True
        self._current_phase = SurveyPhase.PHASE2
        self._touch()

    def complete_phase2(self) -> None:
        if self._current_phase != SurveyPhase.PHASE2:
            raise PhaseOrderError("Must be in Phase 2 to complete it")
        if not self._phase1_completed:
            raise PhaseOrderError("Phase 1 must be completed before Phase 2")
        if self._phase2_completed:
            raise PhaseOrderError("Phase 2 is already completed")
        self._phase2_completed = True
        self._current_phase = SurveyPhase.REFLECTION
        self._touch()

    def complete_reflection(self) -> None:
        if self._current_phase != SurveyPhase.REFLECTION:
            raise PhaseOrderError("Must be in reflection phase to complete it")
        if not self._phase2_completed:
            raise PhaseOrderError("Phase 2 must be completed before reflection")
        if self._reflection_completed:
            raise PhaseOrderError("Reflection is already completed")
        self._reflection_completed = True
        self._current_phase = SurveyPhase.RESULTS
        self._touch()

    def generate_results(self) -> None:
        if self._current_phase != SurveyPhase.RESULTS:
            raise PhaseOrderError("Must be in results phase to generate results")
        if not self._reflection_completed:
            raise PhaseOrderError(
                "Reflection must be completed before generating results"
            )
        if self._results_generated:
            raise PhaseOrderError("Results are already generated")
        self._results_generated = True
        self._touch()

    def can_advance_to_phase(self, target_phase: int) -> bool:
        """Whether every prerequisite for entering ``target_phase`` is met."""
        if target_phase == SurveyPhase.PHASE1:
            return self._current_phase == SurveyPhase.WELCOME
        if target_phase == SurveyPhase.PHASE2:
            return self._current_phase >= SurveyPhase.PHASE1 and self._phase1_completed
        if target_phase == SurveyPhase.REFLECTION:
            return self._current_phase >= SurveyPhase.PHASE2 and self._phase2_completed
        if target_phase == SurveyPhase.RESULTS:
            return (
                self._current_phase >= SurveyPhase.REFLECTION
                and self._reflection_completed
            )
        return False

    def get_next_available_phase(self) -> SurveyPhase:
        """Phase the user should be routed to next, capped at Results."""
        if not self._phase1_completed:
            return SurveyPhase.PHASE1
        if not self._phase2_completed:
            return SurveyPhase.PHASE2
        if not self._reflection_completed:
            return SurveyPhase.REFLECTION
        return SurveyPhase.RESULTS

    def reset(self) -> None:
        """Re-initialize for a retake: Welcome phase, no flags, new start time."""
        now = utc_now()
        self._current_phase = SurveyPhase.WELCOME
        self._phase1_completed = False
        self._phase2_completed = False
        self._reflection_completed = False
        self._results_generated = False
        self._started_at = now
        self._last_updated = now

    def to_dto(self) -> Dict[str, Any]:
        return {
            "userId": self._user_id,
            "currentPhase": int(self._current_phase),
            "phase1Completed": self._phase1_completed,
            "phase2Completed": self._phase2_completed,
            "reflectionCompleted": self._reflection_completed,
            "resultsGenerated": self._results_generated,
            "isCompleted": self.is_completed,
            "progressPercentage": self.progress_percentage,
            "nextAvailablePhase": int(self.get_next_available_phase()),
            "startedAt": to_iso(self._started_at),
            "lastUpdated": to_iso(self._last_updated),
        }

    def to_record(self) -> Dict[str, Any]:
        """Storage form: plain fields with ISO-8601 dates."""
        return {
            "user_id": self._user_id,
            "current_phase": int(self._current_phase),
            "phase1_completed": self._phase1_completed,
            "phase2_completed": self._phase2_completed,
            "reflection_completed": self._reflection_completed,
            "results_generated": self._results_generated,
            "started_at": to_iso(self._started_at),
            "last_updated": to_iso(self._last_updated),
            "revision": self.revision,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "SurveyProgress":
        return cls.create(
            user_id=record["user_id"],
            current_phase=record["current_phase"],
            phase1_completed=record["phase1_completed"],
            phase2_completed=record["phase2_completed"],
            reflection_completed=record["reflection_completed"],
            results_generated=record["results_generated"],
            started_at=from_iso(record["started_at"]),
            last_updated=from_iso(record["last_updated"]),
            revision=record.get("revision", 0),
        )

    def __repr__(self) -> str:
        return (
            f"SurveyProgress(user_id={self._user_id!r}, "
            f"current_phase={int(self._current_phase)}, "
            f"progress={self.progress_percentage}%)"
        )
