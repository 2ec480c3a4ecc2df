"""Resume and AI resume-analysis models."""

import uuid
from typing import Any

from sqlalchemy import Boolean, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from migrator.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class CandidateResume(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A candidate's resume, keyed by its globally unique slug.

    Legacy extracted, generated, and saved resumes all land here; their
    slugs are ``extracted-<user id>``, ``generated-<user id>``, and the saved
    resume's own slug respectively.
    """

    __tablename__ = "candidate_resumes"

    candidate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("candidates.id"), nullable=False, index=True
    )
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    extracted_data: Mapped[dict[str, Any] | None] = mapped_column()
    generated_data: Mapped[dict[str, Any] | None] = mapped_column()
    resume_data: Mapped[dict[str, Any] | None] = mapped_column()
    original_filename: Mapped[str | None] = mapped_column(String(255))
    template_used: Mapped[str | None] = mapped_column(String(100))
    generation_metadata: Mapped[dict[str, Any] | None] = mapped_column()
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    view_count: Mapped[int] = mapped_column(nullable=False, default=0)


class CandidateAiAnalysis(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Snapshot of an AI resume analysis.

    One row per legacy analysis, found again on re-runs through
    source_analysis_id. Snapshot documents are replaced wholesale.
    """

    __tablename__ = "candidate_ai_analysis"

    candidate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("candidates.id"), nullable=False, index=True
    )
    source_analysis_id: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False
    )
    resume_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("candidate_resumes.id")
    )
    session_id: Mapped[str | None] = mapped_column(String(255))
    overall_score: Mapped[float | None] = mapped_column(Float())
    ats_compatibility_score: Mapped[float | None] = mapped_column(Float())
    content_quality_score: Mapped[float | None] = mapped_column(Float())
    professional_presentation_score: Mapped[float | None] = mapped_column(Float())
    skills_alignment_score: Mapped[float | None] = mapped_column(Float())
    key_strengths: Mapped[list[Any]] = mapped_column(nullable=False)
    strengths_analysis: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    improvements: Mapped[list[Any]] = mapped_column(nullable=False)
    recommendations: Mapped[list[Any]] = mapped_column(nullable=False)
    section_analysis: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    improved_summary: Mapped[str | None] = mapped_column(Text())
    salary_analysis: Mapped[dict[str, Any] | None] = mapped_column()
    career_path: Mapped[dict[str, Any] | None] = mapped_column()
    candidate_profile_snapshot: Mapped[dict[str, Any] | None] = mapped_column()
    skills_snapshot: Mapped[dict[str, Any] | None] = mapped_column()
    experience_snapshot: Mapped[dict[str, Any] | None] = mapped_column()
    education_snapshot: Mapped[dict[str, Any] | None] = mapped_column()
    analysis_metadata: Mapped[dict[str, Any] | None] = mapped_column()
    portfolio_links: Mapped[dict[str, Any] | None] = mapped_column()
    files_analyzed: Mapped[dict[str, Any] | None] = mapped_column()
