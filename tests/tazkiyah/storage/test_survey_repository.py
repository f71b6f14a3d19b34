"""Tests for the SQLite survey repository."""

import json
import tempfile
from pathlib import Path

import pytest
from sqlalchemy import event
from sqlmodel import select

from tazkiyah.config.config import Config
from tazkiyah.storage.database import DatabaseService
from tazkiyah.storage.models import SurveyResultRecord
from tazkiyah.storage.survey_repository import SqlSurveyRepository
from tazkiyah.survey.diseases import CANONICAL_ORDER, Disease
from tazkiyah.survey.errors import ConcurrentUpdateError, RepositoryError
from tazkiyah.survey.progress import SurveyPhase, SurveyProgress
from tazkiyah.survey.responses import SurveyResponse
from tazkiyah.survey.results import ReflectionAnswers, SurveyResult


@pytest.fixture
def temp_config():
    """Create a temporary config for testing."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        config = Config(
            base_data_dir=temp_path,
            survey_db_path=temp_path / "test_survey.db",
            log_file=temp_path / "logs" / "test.log",
            enable_file_logging=False,
        )
        yield config


@pytest.fixture
def db_service(temp_config):
    """Create a test database service."""
    service = DatabaseService(temp_config)
    service.create_tables()
    yield service
    service.close()


@pytest.fixture
def repository(db_service):
    return SqlSurveyRepository(db_service)


def _result(user_id: str = "user-1", anger: int = 5) -> SurveyResult:
    scores = {d.value: 2 for d in CANONICAL_ORDER}
    scores["anger"] = anger
    return SurveyResult.create(
        user_id=user_id,
        disease_scores=scores,
        reflection_answers=ReflectionAnswers(
            strongest_struggle="I struggle most with anger.",
            daily_habit="Keep a steady dhikr routine.",
        ),
    )


class TestProgressStorage:
    """Test cases for progress persistence."""

    def test_missing_progress_returns_none(self, repository):
        assert repository.get_progress("nobody") is None

    def test_round_trip_preserves_fields(self, repository):
        progress = SurveyProgress.create_new("user-1")
        progress.advance_to_phase1()
        progress.complete_phase1()

        repository.save_progress(progress)
        loaded = repository.get_progress("user-1")

        assert loaded.to_dto() == progress.to_dto()
        assert loaded.started_at == progress.started_at
        assert loaded.current_phase == SurveyPhase.PHASE2
        assert loaded.revision == 1

    def test_sequential_saves_bump_revision(self, repository):
        progress = SurveyProgress.create_new("user-1")
        repository.save_progress(progress)

        progress.advance_to_phase1()
        repository.save_progress(progress)

        assert progress.revision == 2
        assert repository.get_progress("user-1").revision == 2

    def test_stale_write_rejected(self, repository):
        repository.save_progress(SurveyProgress.create_new("user-1"))
        first = repository.get_progress("user-1")
        second = repository.get_progress("user-1")

        first.advance_to_phase1()
        repository.save_progress(first)

        second.advance_to_phase1()
        with pytest.raises(ConcurrentUpdateError) as exc_info:
            repository.save_progress(second)

        assert exc_info.value.message == "Survey progress was modified by another request"
        assert repository.get_progress("user-1").revision == 2

    def test_write_committed_between_load_and_update_rejected(self, repository, db_service):
        repository.save_progress(SurveyProgress.create_new("user-1"))
        first = repository.get_progress("user-1")
        second = repository.get_progress("user-1")
        first.advance_to_phase1()
        second.advance_to_phase1()
        intercepted = []
        competing_saves = []

        def commit_competing_save(conn, cursor, statement, parameters, context, executemany):
            # Runs before the first writer's UPDATE reaches SQLite
            if statement.lstrip().upper().startswith("UPDATE") and not intercepted:
                intercepted.append(statement)
                competing_saves.append(repository.save_progress(second))

        event.listen(db_service.engine, "before_cursor_execute", commit_competing_save)
        try:
            with pytest.raises(ConcurrentUpdateError):
                repository.save_progress(first)
        finally:
            event.remove(db_service.engine, "before_cursor_execute", commit_competing_save)

        assert competing_saves[0].revision == 2
        assert first.revision == 1
        assert repository.get_progress("user-1").revision == 2

    def test_duplicate_first_insert_rejected(self, repository):
        repository.save_progress(SurveyProgress.create_new("user-1"))

        with pytest.raises(ConcurrentUpdateError):
            repository.save_progress(SurveyProgress.create_new("user-1"))


class TestResponseStorage:
    """Test cases for response persistence."""

    def test_responses_upserted_per_question(self, repository):
        repository.save_responses(
            [
                SurveyResponse.create("user-1", 1, "envy", 2),
                SurveyResponse.create("user-1", 1, "lust", 3, note="Working on it"),
            ]
        )
        repository.save_responses([SurveyResponse.create("user-1", 1, "envy", 5)])

        responses = {r.question_id: r for r in repository.get_responses("user-1")}

        assert len(responses) == 2
        assert responses["envy"].score == 5
        assert responses["lust"].note == "Working on it"

    def test_responses_scoped_to_user(self, repository):
        repository.save_responses([SurveyResponse.create("user-1", 2, "anger", 4)])

        assert repository.get_responses("user-2") == []


class TestResultStorage:
    """Test cases for result persistence."""

    def test_round_trip(self, repository):
        result = _result()

        repository.save_result(result)
        loaded = repository.get_result("user-1")

        assert loaded.id == result.id
        assert loaded.to_dto() == result.to_dto()
        assert loaded.critical_diseases == [Disease.ANGER]

    def test_one_result_per_user(self, repository, db_service):
        repository.save_result(_result(anger=5))
        replacement = _result(anger=1)
        repository.save_result(replacement)

        with db_service.get_session() as session:
            records = session.exec(select(SurveyResultRecord)).all()

        assert len(records) == 1
        assert json.loads(records[0].result_json)["id"] == replacement.id
        assert repository.get_result("user-1").critical_diseases == []

    def test_delete_survey_data(self, repository):
        repository.save_responses([SurveyResponse.create("user-1", 1, "envy", 2)])
        repository.save_result(_result())
        repository.save_progress(SurveyProgress.create_new("user-1"))

        repository.delete_survey_data("user-1")

        assert repository.get_responses("user-1") == []
        assert repository.get_result("user-1") is None
        assert repository.get_progress("user-1") is not None


class TestStorageFailures:
    def test_errors_wrapped(self, repository, db_service):
        db_service.close()

        with pytest.raises(RepositoryError):
            repository.get_progress("user-1")

    def test_closed_store_rejects_sessions(self, db_service):
        db_service.close()

        with pytest.raises(RuntimeError, match="Survey store is closed"):
            db_service.get_session()
