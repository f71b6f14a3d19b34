"""SQLite engine ownership for the survey store."""

import logging
from pathlib import Path

from sqlmodel import Session, SQLModel, create_engine

from tazkiyah.config.config import Config

# Registers the survey tables on SQLModel.metadata
from tazkiyah.storage import models  # noqa: F401

logger = logging.getLogger(__name__)

# Seconds a writer waits on a locked database file before failing
SQLITE_BUSY_TIMEOUT = 5.0


def sqlite_url(db_path: Path) -> str:
    return f"sqlite:///{db_path}"


class DatabaseService:
    """Owns the engine behind the survey repository.

    Each repository call opens its own short-lived session; the engine is
    shared by all of them until :meth:`close`.
    """

    def __init__(self, config: Config):
        self.config = config
        self.db_path = config.survey_db_path
        self.engine = None
        self._initialize_engine()

    def _initialize_engine(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        url = sqlite_url(self.db_path)
        self.engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
            echo=False,
        )
        logger.info(f"Survey store opened: {url}")

    def create_tables(self) -> None:
        """Create the progress, response and result tables if missing."""
        try:
            SQLModel.metadata.create_all(self.engine)
            logger.info("Survey tables ready")
        except Exception as e:
            logger.error(f"Failed to create survey tables at {self.db_path}: {e}")
            raise

    def get_session(self) -> Session:
        if self.engine is None:
            raise RuntimeError("Survey store is closed")
        return Session(self.engine)

    def close(self) -> None:
        """Dispose pooled connections. Later sessions fail until reopened."""
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
            logger.info(f"Survey store closed: {self.db_path}")
