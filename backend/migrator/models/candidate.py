"""Account and profile models.

Accounts are split between candidates and platform (staff) users. Both use
the identity provider's id as their primary key; it is never generated here.
"""

import uuid
from datetime import date
from typing import Any

from sqlalchemy import Boolean, Computed, Date, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from migrator.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

_CANDIDATE_FK = "candidates.id"


class Candidate(Base, TimestampMixin):
    """Job-seeker account.

    Attributes:
        id: Identity provider id (not generated).
        full_name: Generated column; excluded from every insert.
    """

    __tablename__ = "candidates"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))
    full_name: Mapped[str | None] = mapped_column(
        String(201),
        Computed("coalesce(first_name, '') || ' ' || coalesce(last_name, '')"),
    )
    phone: Mapped[str | None] = mapped_column(String(50))
    avatar_url: Mapped[str | None] = mapped_column(Text())
    username: Mapped[str | None] = mapped_column(String(100))
    slug: Mapped[str | None] = mapped_column(String(150))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    email_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )


class PlatformUser(Base, TimestampMixin):
    """Staff account (admin, super admin, support)."""

    __tablename__ = "platform_users"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))
    full_name: Mapped[str | None] = mapped_column(
        String(201),
        Computed("coalesce(first_name, '') || ' ' || coalesce(last_name, '')"),
    )
    phone: Mapped[str | None] = mapped_column(String(50))
    avatar_url: Mapped[str | None] = mapped_column(Text())
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class CandidateProfile(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """One-to-one profile denormalizing the legacy side-tables.

    Work status, privacy settings, and leaderboard scores live in separate
    legacy tables; here they are columns and JSON documents on one row.
    """

    __tablename__ = "candidate_profiles"

    candidate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey(_CANDIDATE_FK), unique=True, nullable=False
    )
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
    work_status: Mapped[str | None] = mapped_column(String(20))
    current_employer: Mapped[str | None] = mapped_column(String(255))
    current_position: Mapped[str | None] = mapped_column(String(255))
    current_salary: Mapped[float | None] = mapped_column(Float())
    expected_salary_min: Mapped[float | None] = mapped_column(Float())
    expected_salary_max: Mapped[float | None] = mapped_column(Float())
    notice_period_days: Mapped[int | None] = mapped_column()
    preferred_shift: Mapped[str | None] = mapped_column(String(10))
    preferred_work_setup: Mapped[str | None] = mapped_column(String(10))
    privacy_settings: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    gamification: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    profile_completed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    profile_completion_percentage: Mapped[int] = mapped_column(
        nullable=False, default=0
    )
