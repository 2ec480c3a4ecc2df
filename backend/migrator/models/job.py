"""Job, skill tag, application, and job match models."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, Float, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from migrator.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

_JOB_FK = "jobs.id"
_CANDIDATE_FK = "candidates.id"


class Job(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Job posting.

    The legacy integer id survives only in the slug (``job-<id>``), which is
    how later phases find the row again.
    """

    __tablename__ = "jobs"

    agency_client_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("agency_clients.id"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text())
    requirements: Mapped[list[Any]] = mapped_column(nullable=False)
    responsibilities: Mapped[list[Any]] = mapped_column(nullable=False)
    benefits: Mapped[list[Any]] = mapped_column(nullable=False)
    salary_min: Mapped[float | None] = mapped_column(Float())
    salary_max: Mapped[float | None] = mapped_column(Float())
    salary_type: Mapped[str] = mapped_column(String(10), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    work_arrangement: Mapped[str | None] = mapped_column(String(10))
    work_type: Mapped[str] = mapped_column(String(20), nullable=False)
    shift: Mapped[str] = mapped_column(String(10), nullable=False)
    experience_level: Mapped[str | None] = mapped_column(String(20))
    industry: Mapped[str | None] = mapped_column(String(255))
    department: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    priority: Mapped[str] = mapped_column(String(10), nullable=False)
    application_deadline: Mapped[datetime | None] = mapped_column()
    views: Mapped[int] = mapped_column(nullable=False, default=0)
    applicants_count: Mapped[int] = mapped_column(nullable=False, default=0)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="manual")


class JobSkill(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Skill tag attached to a job."""

    __tablename__ = "job_skills"
    __table_args__ = (UniqueConstraint("job_id", "name", name="uq_job_skill_name"),)

    job_id: Mapped[uuid.UUID] = mapped_column(ForeignKey(_JOB_FK), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class JobApplication(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A candidate's application to a job."""

    __tablename__ = "job_applications"
    __table_args__ = (
        UniqueConstraint("candidate_id", "job_id", name="uq_job_application_pair"),
    )

    candidate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey(_CANDIDATE_FK), nullable=False
    )
    job_id: Mapped[uuid.UUID] = mapped_column(ForeignKey(_JOB_FK), nullable=False)
    resume_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("candidate_resumes.id")
    )
    status: Mapped[str] = mapped_column(String(30), nullable=False)
    position: Mapped[int] = mapped_column(nullable=False, default=0)


class JobMatch(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """AI match score between a candidate and a job.

    Attributes:
        status: Review workflow state. Written only when the row is created;
            later runs never overwrite a reviewer's decision.
    """

    __tablename__ = "job_matches"
    __table_args__ = (
        UniqueConstraint("candidate_id", "job_id", name="uq_job_match_pair"),
    )

    candidate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey(_CANDIDATE_FK), nullable=False
    )
    job_id: Mapped[uuid.UUID] = mapped_column(ForeignKey(_JOB_FK), nullable=False)
    overall_score: Mapped[float | None] = mapped_column(Float())
    breakdown: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    reasoning: Mapped[str | None] = mapped_column(Text())
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    analyzed_at: Mapped[datetime] = mapped_column(nullable=False)
