"""
SQL persistence for learner responses (SQLite by default).
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from datetime import timezone

from loguru import logger
from sqlalchemy import create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from strandlab.errors import PersistenceError
from strandlab.questions.base import QuestionResponse

from .models import Base, ResponseRow
from .records import ResponseFilter, ResponseRecord


class SqlResponseRepository:
    """Response repository backed by any SQLAlchemy database URL."""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        try:
            self.engine = create_engine(database_url, echo=echo, pool_pre_ping=True)
            self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)
        except (SQLAlchemyError, ValueError) as e:
            raise PersistenceError(f"Cannot open database {database_url}: {e}") from e

    def init_db(self) -> None:
        """Create response tables if they do not exist."""
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cannot initialise response tables: {e}") from e
        logger.info("Response tables initialized")

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Provide a transactional scope around a series of operations."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:  # Intentionally broad - rollback on any error before re-raising
            session.rollback()
            raise
        finally:
            session.close()

    def save_response(self, record: ResponseRecord) -> None:
        response = record.response
        row = ResponseRow(
            learner_id=record.learner_id,
            learning_path=record.learning_path,
            strand=record.strand,
            level=record.level,
            block_id=record.block_id,
            question_id=response.question_id,
            question_type=response.type,
            answer=response.answer,
            is_correct=response.is_correct,
            score=response.score,
            feedback=response.feedback,
            time_spent=response.time_spent,
            diagnostic=response.diagnostic,
            answered_at=response.timestamp,
        )
        try:
            with self.session_scope() as session:
                session.add(row)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cannot save response {response.question_id}: {e}") from e

    def load_responses(self, filter: ResponseFilter) -> dict[str, QuestionResponse]:
        stmt = select(ResponseRow).order_by(ResponseRow.answered_at, ResponseRow.id)
        if filter.learner_id is not None:
            stmt = stmt.where(ResponseRow.learner_id == filter.learner_id)
        if filter.learning_path is not None:
            stmt = stmt.where(ResponseRow.learning_path == filter.learning_path)
        if filter.strand is not None:
            stmt = stmt.where(ResponseRow.strand == filter.strand)
        if filter.level is not None:
            stmt = stmt.where(ResponseRow.level == filter.level)

        latest: dict[str, QuestionResponse] = {}
        try:
            with self.session_scope() as session:
                for row in session.scalars(stmt):
                    latest[row.question_id] = _to_response(row)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cannot load responses: {e}") from e
        return latest

    def close(self) -> None:
        self.engine.dispose()


def _to_response(row: ResponseRow) -> QuestionResponse:
    answered_at = row.answered_at
    # SQLite drops the offset
    if answered_at.tzinfo is None:
        answered_at = answered_at.replace(tzinfo=timezone.utc)
    return QuestionResponse(
        question_id=row.question_id,
        type=row.question_type,
        answer=row.answer,
        is_correct=row.is_correct,
        score=row.score,
        feedback=row.feedback,
        timestamp=answered_at,
        time_spent=row.time_spent,
        diagnostic=row.diagnostic,
    )
