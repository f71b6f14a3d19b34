"""Tests for the survey progress state machine."""

import pytest

from tazkiyah.survey.errors import ErrorKind, PhaseOrderError, SurveyValidationError
from tazkiyah.survey.progress import SurveyPhase, SurveyProgress


def _snapshot(progress: SurveyProgress):
    return (
        progress.current_phase,
        progress.phase1_completed,
        progress.phase2_completed,
        progress.reflection_completed,
        progress.results_generated,
        progress.last_updated,
    )


def _run_full_sequence(progress: SurveyProgress):
    phases, percentages = [], []
    for step in (
        progress.advance_to_phase1,
        progress.complete_phase1,
        progress.complete_phase2,
        progress.complete_reflection,
        progress.generate_results,
    ):
        step()
        phases.append(int(progress.current_phase))
        percentages.append(progress.progress_percentage)
    return phases, percentages


@pytest.fixture
def progress():
    """Fresh progress for a first-time user."""
    return SurveyProgress.create_new("user-1")


class TestSurveyProgressCreation:
    """Test cases for creating progress records."""

    def test_create_new_starts_at_welcome(self, progress):
        assert progress.user_id == "user-1"
        assert progress.current_phase == SurveyPhase.WELCOME
        assert not progress.phase1_completed
        assert not progress.phase2_completed
        assert not progress.reflection_completed
        assert not progress.results_generated
        assert progress.progress_percentage == 0
        assert not progress.is_completed
        assert progress.revision == 0

    @pytest.mark.parametrize("phase", [-1, 5])
    def test_create_rejects_phase_out_of_range(self, phase):
        with pytest.raises(SurveyValidationError) as exc_info:
            SurveyProgress.create(user_id="user-1", current_phase=phase)

        assert exc_info.value.message == "Current phase must be between 0 and 4"
        assert exc_info.value.kind == ErrorKind.VALIDATION

    def test_create_requires_user_id(self):
        with pytest.raises(SurveyValidationError):
            SurveyProgress.create(user_id="")


class TestSurveyProgressTransitions:
    """Test cases for legal and illegal phase transitions."""

    def test_full_sequence_advances_in_lockstep(self, progress):
        phases, percentages = _run_full_sequence(progress)

        assert phases == [1, 2, 3, 4, 4]
        assert percentages == [0, 25, 50, 75, 100]
        assert progress.is_completed

    def test_entering_phase1_does_not_complete_it(self, progress):
        progress.advance_to_phase1()

        assert progress.current_phase == SurveyPhase.PHASE1
        assert not progress.phase1_completed

    def test_advance_to_phase1_only_from_welcome(self, progress):
        progress.advance_to_phase1()

        with pytest.raises(PhaseOrderError) as exc_info:
            progress.advance_to_phase1()

        assert exc_info.value.message == "Can only advance to Phase 1 from welcome phase"

    @pytest.mark.parametrize(
        "operation,message",
        [
            ("complete_phase1", "Must be in Phase 1 to complete it"),
            ("complete_phase2", "Must be in Phase 2 to complete it"),
            ("complete_reflection", "Must be in reflection phase to complete it"),
            ("generate_results", "Must be in results phase to generate results"),
        ],
    )
    def test_completion_before_phase_fails_without_changes(
        self, progress, operation, message
    ):
        before = _snapshot(progress)

        with pytest.raises(PhaseOrderError) as exc_info:
            getattr(progress, operation)()

        assert exc_info.value.message == message
        assert exc_info.value.kind == ErrorKind.PRECONDITION
        assert _snapshot(progress) == before

    def test_complete_phase2_checks_phase1_after_phase(self):
        progress = SurveyProgress.create(user_id="user-1", current_phase=2)

        with pytest.raises(PhaseOrderError) as exc_info:
            progress.complete_phase2()

        assert exc_info.value.message == "Phase 1 must be completed before Phase 2"

    def test_complete_phase2_already_completed(self):
        progress = SurveyProgress.create(
            user_id="user-1", current_phase=2, phase1_completed=True, phase2_completed=True
        )

        with pytest.raises(PhaseOrderError) as exc_info:
            progress.complete_phase2()

        assert exc_info.value.message == "Phase 2 is already completed"

    def test_complete_reflection_requires_phase2(self):
        progress = SurveyProgress.create(
            user_id="user-1", current_phase=3, phase1_completed=True
        )

        with pytest.raises(PhaseOrderError) as exc_info:
            progress.complete_reflection()

        assert exc_info.value.message == "Phase 2 must be completed before reflection"

    def test_generate_results_twice_fails(self, progress):
        _run_full_sequence(progress)
        before = _snapshot(progress)

        with pytest.raises(PhaseOrderError) as exc_info:
            progress.generate_results()

        assert exc_info.value.message == "Results are already generated"
        assert _snapshot(progress) == before


class TestSurveyProgressQueries:
    """Test cases for the read-only progress helpers."""

    def test_can_advance_to_phase(self, progress):
        assert progress.can_advance_to_phase(1)
        assert not progress.can_advance_to_phase(2)

        progress.advance_to_phase1()
        progress.complete_phase1()

        assert not progress.can_advance_to_phase(1)
        assert progress.can_advance_to_phase(2)
        assert not progress.can_advance_to_phase(3)
        assert not progress.can_advance_to_phase(7)

    def test_next_available_phase_caps_at_results(self, progress):
        assert progress.get_next_available_phase() == SurveyPhase.PHASE1

        _run_full_sequence(progress)

        assert progress.get_next_available_phase() == SurveyPhase.RESULTS

    def test_percentage_counts_flags_in_order(self):
        progress = SurveyProgress.create(
            user_id="user-1", current_phase=3, phase2_completed=True
        )

        assert progress.progress_percentage == 0

    def test_to_dto_uses_camel_case_keys(self, progress):
        dto = progress.to_dto()

        assert set(dto) == {
            "userId",
            "currentPhase",
            "phase1Completed",
            "phase2Completed",
            "reflectionCompleted",
            "resultsGenerated",
            "isCompleted",
            "progressPercentage",
            "nextAvailablePhase",
            "startedAt",
            "lastUpdated",
        }
        assert dto["nextAvailablePhase"] == 1
        assert dto["startedAt"].endswith("+00:00")


class TestSurveyProgressReset:
    """Test cases for retaking the survey."""

    def test_reset_returns_to_initial_state(self, progress):
        _run_full_sequence(progress)

        progress.reset()

        assert progress.user_id == "user-1"
        assert progress.current_phase == SurveyPhase.WELCOME
        assert progress.progress_percentage == 0
        assert not progress.is_completed

    def test_reset_then_full_sequence_matches_fresh_instance(self, progress):
        _run_full_sequence(progress)
        progress.reset()
        replayed = _run_full_sequence(progress)

        fresh = SurveyProgress.create_new("user-1")
        expected = _run_full_sequence(fresh)

        assert replayed == expected
        assert progress.to_dto()["currentPhase"] == fresh.to_dto()["currentPhase"]
        assert _snapshot(progress)[:5] == _snapshot(fresh)[:5]

    def test_record_round_trip(self, progress):
        progress.advance_to_phase1()
        progress.revision = 3

        restored = SurveyProgress.from_record(progress.to_record())

        assert restored.to_dto() == progress.to_dto()
        assert restored.revision == 3
