"""SQLite-backed survey repository."""

import json
import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from tazkiyah.shared.clock import to_iso
from tazkiyah.storage.database import DatabaseService
from tazkiyah.storage.models import (
    SurveyProgressRecord,
    SurveyResponseRecord,
    SurveyResultRecord,
)
from tazkiyah.survey.errors import ConcurrentUpdateError, RepositoryError, SurveyError
from tazkiyah.survey.progress import SurveyProgress
from tazkiyah.survey.repository import SurveyRepository
from tazkiyah.survey.responses import SurveyResponse
from tazkiyah.survey.results import SurveyResult

logger = logging.getLogger(__name__)


class SqlSurveyRepository(SurveyRepository):
    """Survey repository storing progress, responses and results via SQLModel."""

    def __init__(self, db_service: DatabaseService):
        """Initialize the repository.

        Args:
            db_service: Database service instance
        """
        self.db_service = db_service

    def get_progress(self, user_id: str) -> Optional[SurveyProgress]:
        try:
            with self.db_service.get_session() as session:
                record = session.get(SurveyProgressRecord, user_id)
                if record is None:
                    return None
                return SurveyProgress.from_record(record.model_dump())
        except Exception as e:
            logger.error(f"Failed to load survey progress for {user_id}: {e}")
            raise RepositoryError(f"Failed to load survey progress: {e}") from e

    def save_progress(self, progress: SurveyProgress) -> SurveyProgress:
        """Write progress if nobody else wrote it since it was loaded.

        The revision check is part of the UPDATE statement itself, so a
        competing commit between load and save matches zero rows. A first
        save inserts at revision 1 and relies on the primary key to reject
        a second first save.

        Args:
            progress: Progress carrying the revision it was loaded at

        Returns:
            The same progress with its revision advanced

        Raises:
            ConcurrentUpdateError: If the stored revision moved on
            RepositoryError: If the write fails
        """
        data = progress.to_record()
        expected_revision = data.pop("revision")
        new_revision = expected_revision + 1

        try:
            with self.db_service.get_session() as session:
                if expected_revision == 0:
                    session.add(SurveyProgressRecord(**data, revision=new_revision))
                    try:
                        session.commit()
                    except IntegrityError as e:
                        session.rollback()
                        raise self._stale_write(progress.user_id, expected_revision) from e
                else:
                    statement = (
                        update(SurveyProgressRecord)
                        .where(
                            SurveyProgressRecord.user_id == progress.user_id,
                            SurveyProgressRecord.revision == expected_revision,
                        )
                        .values(**data, revision=new_revision)
                    )
                    updated = session.execute(statement).rowcount
                    if updated != 1:
                        session.rollback()
                        raise self._stale_write(progress.user_id, expected_revision)
                    session.commit()

            progress.revision = new_revision
            logger.debug(f"Saved survey progress: {progress!r}")
            return progress
        except SurveyError:
            raise
        except Exception as e:
            logger.error(f"Failed to save survey progress for {progress.user_id}: {e}")
            raise RepositoryError(f"Failed to save survey progress: {e}") from e

    @staticmethod
    def _stale_write(user_id: str, expected_revision: int) -> ConcurrentUpdateError:
        logger.warning(
            f"Progress for {user_id} changed since revision {expected_revision} was loaded"
        )
        return ConcurrentUpdateError("Survey progress was modified by another request")

    def save_responses(self, responses: List[SurveyResponse]) -> List[SurveyResponse]:
        try:
            with self.db_service.get_session() as session:
                for response in responses:
                    statement = select(SurveyResponseRecord).where(
                        SurveyResponseRecord.user_id == response.user_id,
                        SurveyResponseRecord.question_id == response.question_id,
                    )
                    record = session.exec(statement).first()
                    if record is None:
                        record = SurveyResponseRecord(
                            id=response.id,
                            user_id=response.user_id,
                            question_id=response.question_id,
                            created_at=to_iso(response.created_at),
                            phase_number=response.phase_number,
                            score=response.score,
                            note=response.note,
                        )
                    else:
                        record.phase_number = response.phase_number
                        record.score = response.score
                        record.note = response.note
                    session.add(record)
                session.commit()

            logger.info(f"Saved {len(responses)} survey responses")
            return responses
        except Exception as e:
            logger.error(f"Failed to save survey responses: {e}")
            raise RepositoryError(f"Failed to save survey responses: {e}") from e

    def get_responses(self, user_id: str) -> List[SurveyResponse]:
        try:
            with self.db_service.get_session() as session:
                statement = select(SurveyResponseRecord).where(
                    SurveyResponseRecord.user_id == user_id
                )
                records = session.exec(statement).all()
                return [SurveyResponse.from_record(r.model_dump()) for r in records]
        except Exception as e:
            logger.error(f"Failed to load survey responses for {user_id}: {e}")
            raise RepositoryError(f"Failed to load survey responses: {e}") from e

    def get_result(self, user_id: str) -> Optional[SurveyResult]:
        try:
            with self.db_service.get_session() as session:
                statement = select(SurveyResultRecord).where(
                    SurveyResultRecord.user_id == user_id
                )
                record = session.exec(statement).first()
                if record is None:
                    return None
                return SurveyResult.from_dto(json.loads(record.result_json))
        except Exception as e:
            logger.error(f"Failed to load survey result for {user_id}: {e}")
            raise RepositoryError(f"Failed to load survey result: {e}") from e

    def save_result(self, result: SurveyResult) -> SurveyResult:
        dto = result.to_dto()
        try:
            with self.db_service.get_session() as session:
                statement = select(SurveyResultRecord).where(
                    SurveyResultRecord.user_id == result.user_id
                )
                record = session.exec(statement).first()
                if record is not None and record.id != result.id:
                    session.delete(record)
                    session.flush()
                    record = None

                if record is None:
                    record = SurveyResultRecord(
                        id=result.id,
                        user_id=result.user_id,
                        result_json=json.dumps(dto),
                        generated_at=dto["generatedAt"],
                        updated_at=dto["updatedAt"],
                    )
                else:
                    record.result_json = json.dumps(dto)
                    record.updated_at = dto["updatedAt"]
                session.add(record)
                session.commit()

            logger.info(f"Saved survey result {result.id} for user {result.user_id}")
            return result
        except Exception as e:
            logger.error(f"Failed to save survey result for {result.user_id}: {e}")
            raise RepositoryError(f"Failed to save survey result: {e}") from e

    def delete_survey_data(self, user_id: str) -> None:
        try:
            with self.db_service.get_session() as session:
                for model in (SurveyResponseRecord, SurveyResultRecord):
                    statement = select(model).where(model.user_id == user_id)
                    for record in session.exec(statement).all():
                        session.delete(record)
                session.commit()
            logger.info(f"Deleted survey data for user {user_id}")
        except Exception as e:
            logger.error(f"Failed to delete survey data for {user_id}: {e}")
            raise RepositoryError(f"Failed to delete survey data: {e}") from e
