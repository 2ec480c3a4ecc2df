"""Legacy agencies, member companies, job requests, and applications."""

from datetime import datetime
from typing import Any

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from migrator.models.legacy.base import LegacyBase

_USER_FK = "users.id"


class LegacyAgency(LegacyBase):
    """Recruitment agency."""

    __tablename__ = "agencies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    logo_url: Mapped[str | None] = mapped_column(Text())
    created_at: Mapped[datetime | None] = mapped_column()
    updated_at: Mapped[datetime | None] = mapped_column()


class LegacyMember(LegacyBase):
    """Client company ("member" in the legacy schema)."""

    __tablename__ = "members"

    company_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    company: Mapped[str] = mapped_column(String(255), nullable=False)
    agency_id: Mapped[str | None] = mapped_column(ForeignKey("agencies.id"))
    created_at: Mapped[datetime | None] = mapped_column()
    updated_at: Mapped[datetime | None] = mapped_column()

    agency: Mapped["LegacyAgency | None"] = relationship()


class LegacyJobRequest(LegacyBase):
    """Job posting with an integer primary key."""

    __tablename__ = "job_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[str | None] = mapped_column(ForeignKey("members.company_id"))
    job_title: Mapped[str] = mapped_column(String(255), nullable=False)
    job_description: Mapped[str | None] = mapped_column(Text())
    requirements: Mapped[list[Any] | None] = mapped_column()
    responsibilities: Mapped[list[Any] | None] = mapped_column()
    benefits: Mapped[list[Any] | None] = mapped_column()
    skills: Mapped[list[Any] | None] = mapped_column()
    salary_min: Mapped[float | None] = mapped_column()
    salary_max: Mapped[float | None] = mapped_column()
    salary_type: Mapped[str | None] = mapped_column(String(20))
    currency: Mapped[str | None] = mapped_column(String(3))
    work_arrangement: Mapped[str | None] = mapped_column(String(20))
    work_type: Mapped[str | None] = mapped_column(String(20))
    shift: Mapped[str | None] = mapped_column(String(20))
    experience_level: Mapped[str | None] = mapped_column(String(20))
    industry: Mapped[str | None] = mapped_column(String(255))
    department: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[str | None] = mapped_column(String(20))
    priority: Mapped[str | None] = mapped_column(String(20))
    application_deadline: Mapped[datetime | None] = mapped_column()
    views: Mapped[int | None] = mapped_column()
    applicants: Mapped[int | None] = mapped_column()
    created_at: Mapped[datetime | None] = mapped_column()
    updated_at: Mapped[datetime | None] = mapped_column()

    company: Mapped["LegacyMember | None"] = relationship()


class LegacyApplication(LegacyBase):
    """Application of a user to a job request."""

    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey(_USER_FK), nullable=False)
    job_id: Mapped[int] = mapped_column(
        ForeignKey("job_requests.id"), nullable=False
    )
    resume_slug: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[str | None] = mapped_column(String(50))
    position: Mapped[int | None] = mapped_column()
    created_at: Mapped[datetime | None] = mapped_column()
    updated_at: Mapped[datetime | None] = mapped_column()


class LegacyJobMatch(LegacyBase):
    """AI job match result.

    job_id is text in this table even though job_requests.id is an integer.
    """

    __tablename__ = "job_match_results"

    user_id: Mapped[str] = mapped_column(ForeignKey(_USER_FK), primary_key=True)
    job_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    score: Mapped[float | None] = mapped_column()
    breakdown: Mapped[dict[str, Any] | None] = mapped_column()
    reasoning: Mapped[str | None] = mapped_column(Text())
    analyzed_at: Mapped[datetime | None] = mapped_column()
