"""Use cases orchestrating survey submissions against a repository.

Each use case loads the user's progress, checks phase gating, delegates to
the domain objects and persists what changed. Failures are returned as
:class:`~tazkiyah.shared.result.Err` values; nothing raised by the domain
or the repository escapes ``execute``.
"""

import logging
from typing import Any, Dict, List, Optional

from tazkiyah.config.logging_config import get_survey_logger, log_performance
from tazkiyah.shared.result import Err, Ok, Result
from tazkiyah.survey.diseases import Disease
from tazkiyah.survey.errors import (
    ConcurrentUpdateError,
    ErrorKind,
    PhaseOrderError,
    ProgressNotFoundError,
    RepositoryError,
    ResultNotFoundError,
    SurveyError,
)
from tazkiyah.survey.guidance import (
    build_personalized_habits,
    build_reflection_preview,
    build_tazkiyah_plan,
)
from tazkiyah.survey.progress import SurveyPhase, SurveyProgress
from tazkiyah.survey.repository import SurveyRepository
from tazkiyah.survey.responses import SurveyResponse
from tazkiyah.survey.results import (
    ReflectionAnswers,
    SurveyResult,
    normalize_disease_scores,
    validate_reflection,
)
from tazkiyah.survey.schemas import (
    Phase1Request,
    Phase2Request,
    PhaseRequest,
    ReflectionRequest,
)

logger = get_survey_logger(__name__)


class SurveyUseCase:
    """Shared repository access with fixed failure messages."""

    def __init__(self, repository: SurveyRepository):
        """Initialize the use case.

        Args:
            repository: Storage collaborator for progress, responses and results
        """
        self.repository = repository

    def _load_progress(self, user_id: str) -> Optional[SurveyProgress]:
        try:
            return self.repository.get_progress(user_id)
        except RepositoryError as e:
            logger.error(f"Progress lookup failed for {user_id}: {e}")
            raise RepositoryError("Failed to get survey progress") from e

    def _require_progress(self, user_id: str) -> SurveyProgress:
        progress = self._load_progress(user_id)
        if progress is None:
            raise ProgressNotFoundError(
                "Survey progress not found. Please start from Phase 1"
            )
        return progress

    def _persist_progress(
        self, progress: SurveyProgress, message: str = "Failed to update survey progress"
    ) -> None:
        try:
            self.repository.save_progress(progress)
        except ConcurrentUpdateError:
            raise
        except RepositoryError as e:
            logger.error(f"Progress write failed for {progress.user_id}: {e}")
            raise RepositoryError(message) from e

    def _save_phase_responses(
        self, user_id: str, phase: SurveyPhase, request: PhaseRequest
    ) -> List[SurveyResponse]:
        responses = [
            SurveyResponse.create(
                user_id=user_id,
                phase_number=int(phase),
                question_id=question_id,
                score=score,
                note=note,
            )
            for question_id, score, note in request.to_question_responses()
        ]
        try:
            return self.repository.save_responses(responses)
        except RepositoryError as e:
            logger.error(f"Saving Phase {int(phase)} responses failed for {user_id}: {e}")
            raise RepositoryError(f"Failed to save Phase {int(phase)} responses") from e

    @staticmethod
    def _fail(error: SurveyError, user_id: str) -> Err:
        level = logging.ERROR if error.kind == ErrorKind.COLLABORATOR else logging.WARNING
        logger.log_user_action(f"Request rejected: {error.message}", user_id, level=level)
        return Err(error)


class ValidateSurveyProgressUseCase(SurveyUseCase):
    """Phase access checks and first-contact progress creation."""

    def _get_or_create(self, user_id: str) -> SurveyProgress:
        progress = self._load_progress(user_id)
        if progress is not None:
            return progress

        progress = SurveyProgress.create_new(user_id)
        self._persist_progress(progress, "Failed to initialize survey progress")
        logger.log_user_action("Survey progress initialized", user_id, phase=0)
        return progress

    @staticmethod
    def _summary(progress: SurveyProgress) -> Dict[str, Any]:
        return {
            "canAccess": True,
            "currentPhase": int(progress.current_phase),
            "nextAvailablePhase": int(progress.get_next_available_phase()),
            "progress": progress.to_dto(),
        }

    @log_performance("validate_survey_progress")
    def execute(self, user_id: str, target_phase: int) -> Result:
        """Decide whether the user may open ``target_phase``.

        Returns:
            Ok with ``canAccess``, ``currentPhase``, ``nextAvailablePhase``,
            ``redirectToPhase``, ``message`` and ``progress``
        """
        try:
            progress = self._get_or_create(user_id)
        except SurveyError as e:
            return self._fail(e, user_id)

        can_access, redirect_to, message = self._check_access(progress, target_phase)
        if not can_access:
            logger.log_user_action(
                f"Access to phase {target_phase} denied: {message}", user_id,
                phase=int(progress.current_phase),
            )

        return Ok(
            {
                "canAccess": can_access,
                "currentPhase": int(progress.current_phase),
                "nextAvailablePhase": int(progress.get_next_available_phase()),
                "redirectToPhase": redirect_to,
                "message": message,
                "progress": progress.to_dto(),
            }
        )

    @staticmethod
    def _check_access(progress: SurveyProgress, target_phase: int):
        next_phase = int(progress.get_next_available_phase())

        if target_phase == SurveyPhase.WELCOME:
            return True, None, None

        if target_phase == SurveyPhase.PHASE1:
            if not progress.phase1_completed:
                return True, None, None
            return (
                False,
                next_phase,
                "Phase 1 has already been completed. Redirecting to next available phase.",
            )

        if target_phase == SurveyPhase.PHASE2:
            if not progress.phase1_completed:
                return False, next_phase, "Phase 1 must be completed before accessing Phase 2"
            if progress.phase2_completed:
                return (
                    False,
                    next_phase,
                    "Phase 2 has already been completed. Redirecting to next available phase.",
                )
            return True, None, None

        if target_phase == SurveyPhase.REFLECTION:
            if not (progress.phase1_completed and progress.phase2_completed):
                return (
                    False,
                    next_phase,
                    "Both Phase 1 and Phase 2 must be completed before accessing the reflection phase",
                )
            if progress.reflection_completed:
                return (
                    False,
                    next_phase,
                    "Reflection has already been completed. Redirecting to next available phase.",
                )
            return True, None, None

        if target_phase == SurveyPhase.RESULTS:
            if not (
                progress.phase1_completed
                and progress.phase2_completed
                and progress.reflection_completed
            ):
                return (
                    False,
                    next_phase,
                    "All previous phases must be completed before accessing results",
                )
            message = "Survey has been completed" if progress.results_generated else None
            return True, None, message

        return False, next_phase, "Invalid phase requested"

    @log_performance("get_current_progress")
    def get_current_progress(self, user_id: str) -> Result:
        """Current progress, created and persisted on first contact."""
        try:
            progress = self._get_or_create(user_id)
        except SurveyError as e:
            return self._fail(e, user_id)
        return Ok(self._summary(progress))

    @log_performance("advance_to_next_phase")
    def advance_to_next_phase(self, user_id: str) -> Result:
        """Move a user from Welcome into Phase 1; no-op in any later phase."""
        try:
            progress = self._load_progress(user_id)
            if progress is None:
                raise ProgressNotFoundError("Survey progress not found")

            if progress.current_phase == SurveyPhase.WELCOME:
                progress.advance_to_phase1()
                self._persist_progress(progress)
                logger.log_user_action("Advanced to Phase 1", user_id, phase=1)
        except SurveyError as e:
            return self._fail(e, user_id)

        return Ok(self._summary(progress))


class SubmitPhase1UseCase(SurveyUseCase):
    """Record Phase 1 answers and move the user on to Phase 2."""

    @log_performance("submit_phase1")
    def execute(self, user_id: str, request: Phase1Request) -> Result:
        """Save Phase 1 responses and complete the phase.

        First-time users get a new progress record started at Phase 1.

        Returns:
            Ok with ``saved``, ``progress`` and ``nextPhaseAvailable``
        """
        try:
            progress = self._load_progress(user_id)
            if progress is None:
                progress = SurveyProgress.create_new(user_id)
                progress.advance_to_phase1()
            else:
                if progress.current_phase > SurveyPhase.PHASE1 and progress.phase1_completed:
                    raise PhaseOrderError("Phase 1 has already been completed")
                if progress.current_phase < SurveyPhase.PHASE1:
                    progress.advance_to_phase1()

            self._save_phase_responses(user_id, SurveyPhase.PHASE1, request)
            progress.complete_phase1()
            self._persist_progress(progress)
        except SurveyError as e:
            return self._fail(e, user_id)

        logger.log_user_action("Phase 1 completed", user_id, phase=1)
        return Ok(
            {"saved": True, "progress": progress.to_dto(), "nextPhaseAvailable": True}
        )


class SubmitPhase2UseCase(SurveyUseCase):
    """Record Phase 2 answers and open the Reflection phase."""

    @log_performance("submit_phase2")
    def execute(self, user_id: str, request: Phase2Request) -> Result:
        try:
            progress = self._require_progress(user_id)

            if not progress.phase1_completed:
                raise PhaseOrderError("Phase 1 must be completed before Phase 2")
            if progress.current_phase < SurveyPhase.PHASE2:
                raise PhaseOrderError("Cannot submit Phase 2: not in Phase 2")
            if progress.phase2_completed:
                raise PhaseOrderError("Phase 2 has already been completed")

            self._save_phase_responses(user_id, SurveyPhase.PHASE2, request)
            progress.complete_phase2()
            self._persist_progress(progress)
        except SurveyError as e:
            return self._fail(e, user_id)

        logger.log_user_action("Phase 2 completed", user_id, phase=2)
        return Ok(
            {"saved": True, "progress": progress.to_dto(), "nextPhaseAvailable": True}
        )


class SubmitReflectionUseCase(SurveyUseCase):
    """Validate the reflection, derive the result and open the Results phase."""

    def _load_disease_scores(self, user_id: str) -> Dict[Disease, int]:
        try:
            responses = self.repository.get_responses(user_id)
        except RepositoryError as e:
            logger.error(f"Loading responses failed for {user_id}: {e}")
            raise RepositoryError(
                "Failed to get survey responses for preview generation"
            ) from e

        scores = {
            r.question_id: r.score
            for r in responses
            if r.phase_number in (SurveyPhase.PHASE1, SurveyPhase.PHASE2)
        }
        return normalize_disease_scores(scores)

    @log_performance("submit_reflection")
    def execute(self, user_id: str, request: ReflectionRequest) -> Result:
        """Submit reflection answers.

        Gating runs before any validation or storage access. The result is
        persisted before progress, so a failed result write never advances
        the user.

        Returns:
            Ok with ``saved``, ``preview``, ``progress`` and ``resultsAvailable``
        """
        try:
            progress = self._require_progress(user_id)

            if not progress.phase1_completed:
                raise PhaseOrderError("Phase 1 must be completed before reflection")
            if not progress.phase2_completed:
                raise PhaseOrderError("Phase 2 must be completed before reflection")
            if progress.current_phase < SurveyPhase.REFLECTION:
                raise PhaseOrderError("Cannot submit reflection: not in reflection phase")
            if progress.reflection_completed:
                raise PhaseOrderError("Reflection has already been completed")

            validate_reflection(request.strongest_struggle, request.daily_habit)
            reflection = ReflectionAnswers(
                strongest_struggle=request.strongest_struggle,
                daily_habit=request.daily_habit,
            )

            disease_scores = self._load_disease_scores(user_id)
            result = SurveyResult.create(
                user_id=user_id,
                disease_scores=disease_scores,
                reflection_answers=reflection,
            )
            preview = build_reflection_preview(disease_scores, reflection)

            try:
                self.repository.save_result(result)
            except RepositoryError as e:
                logger.error(f"Saving result failed for {user_id}: {e}")
                raise RepositoryError("Failed to save survey result") from e

            progress.complete_reflection()
            self._persist_progress(progress)
        except SurveyError as e:
            return self._fail(e, user_id)

        logger.log_user_action(
            f"Reflection completed with {len(result.critical_diseases)} critical diseases",
            user_id,
            phase=3,
        )
        return Ok(
            {
                "saved": True,
                "preview": preview,
                "progress": progress.to_dto(),
                "resultsAvailable": True,
            }
        )


class GenerateResultsUseCase(SurveyUseCase):
    """Attach structured habits and a plan to the result and finish the survey."""

    def _load_result(self, user_id: str) -> SurveyResult:
        try:
            result = self.repository.get_result(user_id)
        except RepositoryError as e:
            logger.error(f"Result lookup failed for {user_id}: {e}")
            raise RepositoryError("Failed to get survey result") from e
        if result is None:
            raise ResultNotFoundError("Survey result not found")
        return result

    @log_performance("generate_results")
    def execute(self, user_id: str) -> Result:
        """Generate the full results once; later calls return the stored result.

        Returns:
            Ok with ``results`` and ``progress`` DTOs
        """
        try:
            progress = self._load_progress(user_id)
            if progress is None:
                raise ProgressNotFoundError("Survey progress not found")
            if not progress.reflection_completed:
                raise PhaseOrderError(
                    "Survey must be completed before generating results"
                )

            result = self._load_result(user_id)
            if progress.results_generated:
                logger.debug(f"Results already generated for {user_id}")
                return Ok({"results": result.to_dto(), "progress": progress.to_dto()})

            scores = result.disease_scores
            existing_ids = {habit.id for habit in result.personalized_habits}
            for habit in build_personalized_habits(scores, result.reflection_answers):
                if habit.id not in existing_ids:
                    result.add_personalized_habit(habit)
            result.attach_tazkiyah_plan(build_tazkiyah_plan(scores, result.generated_at))

            try:
                self.repository.save_result(result)
            except RepositoryError as e:
                logger.error(f"Saving generated result failed for {user_id}: {e}")
                raise RepositoryError("Failed to save generated results") from e

            progress.generate_results()
            self._persist_progress(progress)
        except SurveyError as e:
            return self._fail(e, user_id)

        logger.log_user_action(
            f"Results generated with {len(result.personalized_habits)} habits",
            user_id,
            phase=4,
        )
        return Ok({"results": result.to_dto(), "progress": progress.to_dto()})


class ResetSurveyUseCase(SurveyUseCase):
    """Start the survey over, discarding stored answers and results."""

    @log_performance("reset_survey")
    def execute(self, user_id: str) -> Result:
        try:
            progress = self._load_progress(user_id)
            if progress is None:
                raise ProgressNotFoundError("Survey progress not found")

            # Progress must be back at welcome before any answers are removed
            progress.reset()
            self._persist_progress(progress)

            try:
                self.repository.delete_survey_data(user_id)
            except RepositoryError as e:
                logger.error(f"Deleting survey data failed for {user_id}: {e}")
                raise RepositoryError("Failed to delete survey data") from e
        except SurveyError as e:
            return self._fail(e, user_id)

        logger.log_user_action("Survey reset for retake", user_id, phase=0)
        return Ok({"progress": progress.to_dto()})
