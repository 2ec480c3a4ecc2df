"""Legacy game session tables."""

from datetime import datetime
from typing import Any

from sqlalchemy import Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from migrator.models.legacy.base import LegacyBase

_USER_FK = "users.id"


class LegacyDiscSession(LegacyBase):
    """DISC personality game session."""

    __tablename__ = "disc_personality_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey(_USER_FK), nullable=False)
    session_status: Mapped[str | None] = mapped_column(String(20))
    started_at: Mapped[datetime | None] = mapped_column()
    finished_at: Mapped[datetime | None] = mapped_column()
    duration_seconds: Mapped[int | None] = mapped_column()
    total_questions: Mapped[int | None] = mapped_column()
    d_score: Mapped[int | None] = mapped_column()
    i_score: Mapped[int | None] = mapped_column()
    s_score: Mapped[int | None] = mapped_column()
    c_score: Mapped[int | None] = mapped_column()
    primary_type: Mapped[str | None] = mapped_column(String(10))
    secondary_type: Mapped[str | None] = mapped_column(String(10))
    confidence_score: Mapped[int | None] = mapped_column()
    consistency_index: Mapped[float | None] = mapped_column(Float())
    cultural_alignment: Mapped[int | None] = mapped_column()
    ai_assessment: Mapped[dict[str, Any] | None] = mapped_column()
    ai_bpo_roles: Mapped[list[Any] | None] = mapped_column()
    core_responses: Mapped[list[Any] | None] = mapped_column()
    personalized_responses: Mapped[list[Any] | None] = mapped_column()
    response_patterns: Mapped[dict[str, Any] | None] = mapped_column()
    user_position: Mapped[str | None] = mapped_column(String(255))
    user_location: Mapped[str | None] = mapped_column(String(255))
    user_experience: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime | None] = mapped_column()
    updated_at: Mapped[datetime | None] = mapped_column()


class LegacyTypingSession(LegacyBase):
    """Typing game session."""

    __tablename__ = "typing_hero_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey(_USER_FK), nullable=False)
    session_status: Mapped[str | None] = mapped_column(String(20))
    difficulty_level: Mapped[str | None] = mapped_column(String(20))
    elapsed_time: Mapped[float | None] = mapped_column(Float())
    score: Mapped[int | None] = mapped_column()
    wpm: Mapped[int | None] = mapped_column()
    overall_accuracy: Mapped[float | None] = mapped_column(Float())
    longest_streak: Mapped[int | None] = mapped_column()
    correct_words: Mapped[int | None] = mapped_column()
    wrong_words: Mapped[int | None] = mapped_column()
    words_correct: Mapped[list[Any] | None] = mapped_column()
    words_incorrect: Mapped[list[Any] | None] = mapped_column()
    ai_analysis: Mapped[dict[str, Any] | None] = mapped_column()
    created_at: Mapped[datetime | None] = mapped_column()
    updated_at: Mapped[datetime | None] = mapped_column()
