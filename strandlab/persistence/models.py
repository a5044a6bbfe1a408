"""
SQLAlchemy models for response storage.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class ResponseRow(Base):
    """One scored submission, with the block it belongs to."""

    __tablename__ = "question_responses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    learning_path: Mapped[str] = mapped_column(Text, nullable=False)
    strand: Mapped[int] = mapped_column(Integer, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    block_id: Mapped[str] = mapped_column(Text, nullable=False)

    question_id: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[Any] = mapped_column(JSON, nullable=True)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)
    score: Mapped[int] = mapped_column(Integer, default=0)
    feedback: Mapped[str] = mapped_column(Text, default="")
    time_spent: Mapped[float | None] = mapped_column(Float)
    diagnostic: Mapped[bool] = mapped_column(Boolean, default=False)
    answered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    created_at: Mapped[datetime] = mapped_column(default=func.now())

    __table_args__ = (
        Index("idx_responses_block", "learner_id", "learning_path", "strand", "level"),
    )

    def __repr__(self) -> str:
        return f"<ResponseRow learner={self.learner_id} question={self.question_id} score={self.score}>"
