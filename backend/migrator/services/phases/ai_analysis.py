"""AI analysis phase: legacy analysis results -> candidate_ai_analysis."""

from typing import Any

from migrator.core.errors import SkipRecord
from migrator.models.legacy import LegacyAiAnalysis
from migrator.services.idempotent_writer import EntityKind
from migrator.services.phases.base import (
    Phase,
    UnitRunner,
    json_or,
    timestamp_or_now,
    updated_or_created,
)
from migrator.services.phases.resumes import extracted_slug
from migrator.services.vocabulary import bound_score

_SCORE_FIELDS = (
    "ats_compatibility_score",
    "content_quality_score",
    "professional_presentation_score",
    "skills_alignment_score",
)


def build_analysis_fields(analysis: LegacyAiAnalysis) -> dict[str, Any]:
    """Destination snapshot (without candidate and resume ids)."""
    fields: dict[str, Any] = {
        "session_id": analysis.session_id,
        "overall_score": bound_score(analysis.overall_score, 0, 100),
        "key_strengths": json_or(analysis.key_strengths, []),
        "strengths_analysis": json_or(analysis.strengths_analysis, {}),
        "improvements": json_or(analysis.improvements, []),
        "recommendations": json_or(analysis.recommendations, []),
        "section_analysis": json_or(analysis.section_analysis, {}),
        "improved_summary": analysis.improved_summary or None,
        "salary_analysis": analysis.salary_analysis,
        "career_path": analysis.career_path,
        "candidate_profile_snapshot": analysis.candidate_profile,
        "skills_snapshot": analysis.skills_snapshot,
        "experience_snapshot": analysis.experience_snapshot,
        "education_snapshot": analysis.education_snapshot,
        "analysis_metadata": analysis.analysis_metadata,
        "portfolio_links": analysis.portfolio_links,
        "files_analyzed": analysis.files_analyzed,
        "created_at": timestamp_or_now(analysis.created_at),
        "updated_at": updated_or_created(analysis),
    }
    for name in _SCORE_FIELDS:
        fields[name] = bound_score(getattr(analysis, name), 0, 100)
    return fields


class AiAnalysisPhase(Phase):
    """Upsert snapshots by legacy analysis id; documents replaced wholesale."""

    name = "ai_analysis"
    entity_kind = EntityKind.AI_ANALYSIS
    source_model = LegacyAiAnalysis

    async def migrate(self, record: LegacyAiAnalysis, units: UnitRunner) -> None:
        analysis = record

        async def write_analysis() -> None:
            candidate_id = await units.resolver.resolve_candidate(analysis.user_id)
            if candidate_id is None:
                raise SkipRecord(
                    f"analysis {analysis.id}: candidate {analysis.user_id} not migrated"
                )
            resume_id = None
            if analysis.original_resume_id is not None:
                resume_id = await units.resolver.resolve_resume(
                    extracted_slug(analysis.user_id)
                )
            await units.writer.upsert(
                EntityKind.AI_ANALYSIS,
                {"source_analysis_id": analysis.id},
                {
                    "candidate_id": candidate_id,
                    "resume_id": resume_id,
                    **build_analysis_fields(analysis),
                },
                create_only=("created_at",),
            )

        await units.run(EntityKind.AI_ANALYSIS, analysis.id, write_analysis)
