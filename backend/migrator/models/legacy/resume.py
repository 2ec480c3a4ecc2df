"""Legacy resume and AI analysis tables."""

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from migrator.models.legacy.base import LegacyBase

_USER_FK = "users.id"


class LegacyExtractedResume(LegacyBase):
    """Resume parsed from an uploaded file (at most one per user)."""

    __tablename__ = "resumes_extracted"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey(_USER_FK), unique=True, nullable=False
    )
    resume_data: Mapped[dict[str, Any] | None] = mapped_column()
    original_filename: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime | None] = mapped_column()
    updated_at: Mapped[datetime | None] = mapped_column()


class LegacyGeneratedResume(LegacyBase):
    """AI-generated resume (at most one per user)."""

    __tablename__ = "resumes_generated"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey(_USER_FK), unique=True, nullable=False
    )
    generated_resume_data: Mapped[dict[str, Any] | None] = mapped_column()
    template_used: Mapped[str | None] = mapped_column(String(100))
    generation_metadata: Mapped[dict[str, Any] | None] = mapped_column()
    created_at: Mapped[datetime | None] = mapped_column()
    updated_at: Mapped[datetime | None] = mapped_column()


class LegacySavedResume(LegacyBase):
    """User-published resume with its own slug."""

    __tablename__ = "saved_resumes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey(_USER_FK), nullable=False)
    resume_slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    resume_title: Mapped[str] = mapped_column(String(255), nullable=False)
    resume_data: Mapped[dict[str, Any] | None] = mapped_column()
    template_used: Mapped[str | None] = mapped_column(String(100))
    is_public: Mapped[bool | None] = mapped_column(Boolean)
    view_count: Mapped[int | None] = mapped_column()
    created_at: Mapped[datetime | None] = mapped_column()
    updated_at: Mapped[datetime | None] = mapped_column()


class LegacyAiAnalysis(LegacyBase):
    """AI resume analysis result."""

    __tablename__ = "ai_analysis_results"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey(_USER_FK), nullable=False)
    session_id: Mapped[str | None] = mapped_column(String(255))
    original_resume_id: Mapped[int | None] = mapped_column(
        ForeignKey("resumes_extracted.id")
    )
    overall_score: Mapped[float | None] = mapped_column(Float())
    ats_compatibility_score: Mapped[float | None] = mapped_column(Float())
    content_quality_score: Mapped[float | None] = mapped_column(Float())
    professional_presentation_score: Mapped[float | None] = mapped_column(Float())
    skills_alignment_score: Mapped[float | None] = mapped_column(Float())
    key_strengths: Mapped[list[Any] | None] = mapped_column()
    strengths_analysis: Mapped[dict[str, Any] | None] = mapped_column()
    improvements: Mapped[list[Any] | None] = mapped_column()
    recommendations: Mapped[list[Any] | None] = mapped_column()
    section_analysis: Mapped[dict[str, Any] | None] = mapped_column()
    improved_summary: Mapped[str | None] = mapped_column(Text())
    salary_analysis: Mapped[dict[str, Any] | None] = mapped_column()
    career_path: Mapped[dict[str, Any] | None] = mapped_column()
    candidate_profile: Mapped[dict[str, Any] | None] = mapped_column()
    skills_snapshot: Mapped[dict[str, Any] | None] = mapped_column()
    experience_snapshot: Mapped[dict[str, Any] | None] = mapped_column()
    education_snapshot: Mapped[dict[str, Any] | None] = mapped_column()
    analysis_metadata: Mapped[dict[str, Any] | None] = mapped_column()
    portfolio_links: Mapped[dict[str, Any] | None] = mapped_column()
    files_analyzed: Mapped[dict[str, Any] | None] = mapped_column()
    created_at: Mapped[datetime | None] = mapped_column()
    updated_at: Mapped[datetime | None] = mapped_column()
