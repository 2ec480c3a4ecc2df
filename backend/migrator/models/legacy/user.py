"""Legacy user account and its one-to-one side tables."""

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from migrator.models.legacy.base import LegacyBase

if TYPE_CHECKING:
    from migrator.models.legacy.resume import (
        LegacyExtractedResume,
        LegacyGeneratedResume,
        LegacySavedResume,
    )

_USER_FK = "users.id"


class LegacyUser(LegacyBase):
    """Legacy user account.

    Attributes:
        id: Text id; equals the identity provider's UUID for real accounts.
        admin_level: "admin", "super_admin", "support", or null for candidates.
        completed_data: Whether the user finished profile onboarding.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))
    phone: Mapped[str | None] = mapped_column(String(50))
    avatar_url: Mapped[str | None] = mapped_column(Text())
    username: Mapped[str | None] = mapped_column(String(100))
    slug: Mapped[str | None] = mapped_column(String(150))
    admin_level: Mapped[str | None] = mapped_column(String(20))
    bio: Mapped[str | None] = mapped_column(Text())
    position: Mapped[str | None] = mapped_column(String(255))
    birthday: Mapped[date | None] = mapped_column(Date())
    gender: Mapped[str | None] = mapped_column(String(30))
    gender_custom: Mapped[str | None] = mapped_column(String(100))
    location: Mapped[str | None] = mapped_column(String(255))
    location_place_id: Mapped[str | None] = mapped_column(String(255))
    location_lat: Mapped[float | None] = mapped_column(Float())
    location_lng: Mapped[float | None] = mapped_column(Float())
    location_city: Mapped[str | None] = mapped_column(String(100))
    location_province: Mapped[str | None] = mapped_column(String(100))
    location_country: Mapped[str | None] = mapped_column(String(100))
    location_barangay: Mapped[str | None] = mapped_column(String(100))
    location_region: Mapped[str | None] = mapped_column(String(100))
    completed_data: Mapped[bool | None] = mapped_column(Boolean)
    created_at: Mapped[datetime | None] = mapped_column()
    updated_at: Mapped[datetime | None] = mapped_column()

    work_status: Mapped["LegacyWorkStatus | None"] = relationship(uselist=False)
    privacy_settings: Mapped["LegacyPrivacySettings | None"] = relationship(
        uselist=False
    )
    leaderboard_score: Mapped["LegacyLeaderboardScore | None"] = relationship(
        uselist=False
    )
    extracted_resume: Mapped["LegacyExtractedResume | None"] = relationship(
        uselist=False
    )
    generated_resume: Mapped["LegacyGeneratedResume | None"] = relationship(
        uselist=False
    )
    saved_resumes: Mapped[list["LegacySavedResume"]] = relationship()


class LegacyWorkStatus(LegacyBase):
    """Employment status and salary expectations."""

    __tablename__ = "user_work_status"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey(_USER_FK), unique=True, nullable=False
    )
    work_status: Mapped[str | None] = mapped_column(String(50))
    work_status_new: Mapped[str | None] = mapped_column(String(50))
    current_employer: Mapped[str | None] = mapped_column(String(255))
    current_position: Mapped[str | None] = mapped_column(String(255))
    current_salary: Mapped[float | None] = mapped_column(Float())
    minimum_salary_range: Mapped[float | None] = mapped_column(Float())
    maximum_salary_range: Mapped[float | None] = mapped_column(Float())
    notice_period_days: Mapped[int | None] = mapped_column()
    preferred_shift: Mapped[str | None] = mapped_column(String(20))
    work_setup: Mapped[str | None] = mapped_column(String(50))


class LegacyPrivacySettings(LegacyBase):
    """Per-field visibility ("public" / "only-me")."""

    __tablename__ = "privacy_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey(_USER_FK), unique=True, nullable=False
    )
    username: Mapped[str | None] = mapped_column(String(20))
    first_name: Mapped[str | None] = mapped_column(String(20))
    last_name: Mapped[str | None] = mapped_column(String(20))
    location: Mapped[str | None] = mapped_column(String(20))
    job_title: Mapped[str | None] = mapped_column(String(20))
    birthday: Mapped[str | None] = mapped_column(String(20))
    age: Mapped[str | None] = mapped_column(String(20))
    gender: Mapped[str | None] = mapped_column(String(20))
    resume_score: Mapped[str | None] = mapped_column(String(20))
    key_strengths: Mapped[str | None] = mapped_column(String(20))


class LegacyLeaderboardScore(LegacyBase):
    """Aggregated game/leaderboard score."""

    __tablename__ = "user_leaderboard_scores"

    user_id: Mapped[str] = mapped_column(ForeignKey(_USER_FK), primary_key=True)
    overall_score: Mapped[int | None] = mapped_column()
    tier: Mapped[str | None] = mapped_column(String(20))
    rank_position: Mapped[int | None] = mapped_column()
