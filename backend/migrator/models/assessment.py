"""DISC personality and typing assessment models.

Assessments are append-only history: every legacy session becomes exactly
one row, deduplicated on re-runs by source_session_id.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from migrator.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class CandidateDiscAssessment(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """One DISC personality session.

    Attributes:
        source_session_id: Legacy session id; unique.
        d_score: Dominance score, clamped to 0-100 (i/s/c likewise).
        cultural_alignment: 0-100, defaults to 95.
    """

    __tablename__ = "candidate_disc_assessments"

    candidate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("candidates.id"), nullable=False, index=True
    )
    source_session_id: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False
    )
    session_status: Mapped[str] = mapped_column(String(20), nullable=False)
    started_at: Mapped[datetime | None] = mapped_column()
    finished_at: Mapped[datetime | None] = mapped_column()
    duration_seconds: Mapped[int | None] = mapped_column()
    total_questions: Mapped[int] = mapped_column(nullable=False, default=30)
    d_score: Mapped[int | None] = mapped_column()
    i_score: Mapped[int | None] = mapped_column()
    s_score: Mapped[int | None] = mapped_column()
    c_score: Mapped[int | None] = mapped_column()
    primary_type: Mapped[str | None] = mapped_column(String(10))
    secondary_type: Mapped[str | None] = mapped_column(String(10))
    confidence_score: Mapped[int] = mapped_column(nullable=False, default=0)
    consistency_index: Mapped[float | None] = mapped_column(Float())
    cultural_alignment: Mapped[int] = mapped_column(nullable=False, default=95)
    authenticity_score: Mapped[int | None] = mapped_column()
    ai_assessment: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    ai_bpo_roles: Mapped[list[Any]] = mapped_column(nullable=False)
    core_responses: Mapped[list[Any]] = mapped_column(nullable=False)
    personalized_responses: Mapped[list[Any]] = mapped_column(nullable=False)
    response_patterns: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    user_position: Mapped[str | None] = mapped_column(String(255))
    user_location: Mapped[str | None] = mapped_column(String(255))
    user_experience: Mapped[str | None] = mapped_column(String(255))
    xp_earned: Mapped[int] = mapped_column(nullable=False, default=0)


class CandidateTypingAssessment(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """One typing-game session."""

    __tablename__ = "candidate_typing_assessments"

    candidate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("candidates.id"), nullable=False, index=True
    )
    source_session_id: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False
    )
    session_status: Mapped[str] = mapped_column(String(20), nullable=False)
    difficulty_level: Mapped[str] = mapped_column(String(20), nullable=False)
    elapsed_time: Mapped[float | None] = mapped_column(Float())
    score: Mapped[int | None] = mapped_column()
    wpm: Mapped[int | None] = mapped_column()
    overall_accuracy: Mapped[float | None] = mapped_column(Float())
    longest_streak: Mapped[int | None] = mapped_column()
    correct_words: Mapped[int | None] = mapped_column()
    wrong_words: Mapped[int | None] = mapped_column()
    words_correct: Mapped[list[Any]] = mapped_column(nullable=False)
    words_incorrect: Mapped[list[Any]] = mapped_column(nullable=False)
    ai_analysis: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    vocabulary_strengths: Mapped[list[Any]] = mapped_column(nullable=False)
    vocabulary_weaknesses: Mapped[list[Any]] = mapped_column(nullable=False)
    generated_story: Mapped[str | None] = mapped_column(String(4000))
