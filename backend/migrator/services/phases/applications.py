"""Application and job match phases.

Both resolve the candidate and the job before writing anything; a record
whose candidate or job is missing is skipped with a warning, never written
as an orphan.
"""

from migrator.core.errors import SkipRecord
from migrator.models.legacy import LegacyApplication, LegacyJobMatch
from migrator.services.idempotent_writer import EntityKind
from migrator.services.phases.base import (
    Phase,
    UnitRunner,
    json_or,
    timestamp_or_now,
)
from migrator.services.vocabulary import (
    VocabularyCategory,
    bound_score,
    parse_legacy_job_id,
    translate,
)

PENDING_MATCH_STATUS = "pending"


class ApplicationsPhase(Phase):
    name = "applications"
    entity_kind = EntityKind.APPLICATION
    source_model = LegacyApplication

    async def migrate(self, record: LegacyApplication, units: UnitRunner) -> None:
        application = record

        async def write_application() -> None:
            candidate_id = await units.resolver.resolve_candidate(application.user_id)
            if candidate_id is None:
                raise SkipRecord(
                    f"application {application.id}: candidate "
                    f"{application.user_id} not migrated"
                )
            job_id = await units.resolver.resolve_job(application.job_id)
            if job_id is None:
                raise SkipRecord(
                    f"application {application.id}: job {application.job_id} not migrated"
                )
            resume_id = await units.resolver.resolve_resume(application.resume_slug)
            created_at = timestamp_or_now(application.created_at)
            await units.writer.upsert(
                EntityKind.APPLICATION,
                {"candidate_id": candidate_id, "job_id": job_id},
                {
                    "resume_id": resume_id,
                    "status": translate(
                        VocabularyCategory.APPLICATION_STATUS, application.status
                    ),
                    "position": application.position or 0,
                    "created_at": created_at,
                    "updated_at": application.updated_at or created_at,
                },
                create_only=("created_at",),
            )

        await units.run(EntityKind.APPLICATION, application.id, write_application)


class JobMatchesPhase(Phase):
    """Job matches key their job by text; it is parsed back to the integer id."""

    name = "job_matches"
    entity_kind = EntityKind.JOB_MATCH
    source_model = LegacyJobMatch

    async def migrate(self, record: LegacyJobMatch, units: UnitRunner) -> None:
        match = record
        natural_key = f"{match.user_id}/{match.job_id}"

        async def write_match() -> None:
            legacy_job_id = parse_legacy_job_id(match.job_id)
            if legacy_job_id is None:
                raise SkipRecord(f"job match {natural_key}: unparseable job id")
            job_id = await units.resolver.resolve_job(legacy_job_id)
            if job_id is None:
                raise SkipRecord(f"job match {natural_key}: job not migrated")
            candidate_id = await units.resolver.resolve_candidate(match.user_id)
            if candidate_id is None:
                raise SkipRecord(f"job match {natural_key}: candidate not migrated")
            analyzed_at = timestamp_or_now(match.analyzed_at)
            await units.writer.upsert(
                EntityKind.JOB_MATCH,
                {"candidate_id": candidate_id, "job_id": job_id},
                {
                    "overall_score": bound_score(match.score, 0, 100),
                    "breakdown": json_or(match.breakdown, {}),
                    "reasoning": match.reasoning or None,
                    "status": PENDING_MATCH_STATUS,
                    "analyzed_at": analyzed_at,
                    "created_at": analyzed_at,
                    "updated_at": analyzed_at,
                },
                create_only=("status", "created_at"),
            )

        await units.run(EntityKind.JOB_MATCH, natural_key, write_match)
