"""Jobs phase: integer-keyed job requests -> slug-keyed jobs and skill tags."""

from collections.abc import Sequence
from typing import Any

from sqlalchemy.orm.interfaces import LoaderOption

from migrator.core.errors import SkipRecord
from migrator.models.legacy import LegacyJobRequest, LegacyMember
from migrator.repositories.source_store import eager
from migrator.services.identity_resolver import company_slug, job_slug
from migrator.services.idempotent_writer import EntityKind
from migrator.services.phases.base import (
    Phase,
    UnitRunner,
    json_or,
    timestamp_or_now,
    updated_or_created,
)
from migrator.services.phases.organizations import (
    DEFAULT_AGENCY_NAME,
    DEFAULT_AGENCY_SLUG,
    DEFAULT_COMPANY_NAME,
    DEFAULT_COMPANY_SLUG,
)
from migrator.services.vocabulary import VocabularyCategory, translate

DEFAULT_CURRENCY = "PHP"


def build_job_fields(job: LegacyJobRequest) -> dict[str, Any]:
    """Destination job row (without agency_client_id)."""
    return {
        "title": job.job_title,
        "description": job.job_description,
        "requirements": json_or(job.requirements, []),
        "responsibilities": json_or(job.responsibilities, []),
        "benefits": json_or(job.benefits, []),
        "salary_min": job.salary_min,
        "salary_max": job.salary_max,
        "salary_type": translate(VocabularyCategory.SALARY_TYPE, job.salary_type),
        "currency": job.currency or DEFAULT_CURRENCY,
        "work_arrangement": translate(
            VocabularyCategory.WORK_ARRANGEMENT, job.work_arrangement
        ),
        "work_type": translate(VocabularyCategory.WORK_TYPE, job.work_type),
        "shift": translate(VocabularyCategory.SHIFT, job.shift),
        "experience_level": translate(
            VocabularyCategory.EXPERIENCE_LEVEL, job.experience_level
        ),
        "industry": job.industry or None,
        "department": job.department or None,
        "status": translate(VocabularyCategory.JOB_STATUS, job.status),
        "priority": translate(VocabularyCategory.PRIORITY, job.priority),
        "application_deadline": job.application_deadline,
        "views": job.views or 0,
        "applicants_count": job.applicants or 0,
        "source": "manual",
        "created_at": timestamp_or_now(job.created_at),
        "updated_at": updated_or_created(job),
    }


def skill_names(skills: Any) -> list[str]:
    """Distinct, non-empty skill names in source order."""
    if not isinstance(skills, list):
        return []
    names: list[str] = []
    for skill in skills:
        if not isinstance(skill, str):
            continue
        name = skill.strip()
        if name and name not in names:
            names.append(name)
    return names


class JobsPhase(Phase):
    """Upsert jobs under their agency-client relationship, then skill tags.

    A job's company's agency is used when it exists; otherwise the job is
    attached to the ``default-agency`` scaffold. Jobs without a company use
    the ``default-company`` scaffold.
    """

    name = "jobs"
    entity_kind = EntityKind.JOB
    source_model = LegacyJobRequest

    def loader_options(self) -> Sequence[LoaderOption]:
        return (eager(LegacyJobRequest.company, LegacyMember.agency),)

    async def migrate(self, record: LegacyJobRequest, units: UnitRunner) -> None:
        job = record
        slug = job_slug(job.id)

        async def write_job() -> None:
            agency_client_id = await self._agency_client(job, units)
            await units.writer.upsert(
                EntityKind.JOB,
                {"slug": slug},
                {"agency_client_id": agency_client_id, **build_job_fields(job)},
                create_only=("created_at", "source"),
            )

        if not await units.run(EntityKind.JOB, slug, write_job):
            return

        names = skill_names(job.skills)
        if not names:
            return

        async def write_skills() -> None:
            job_id = await units.resolver.resolve_job(job.id)
            if job_id is None:
                raise SkipRecord(f"{slug} missing for skill tags")
            for name in names:
                await units.writer.insert_if_absent(
                    EntityKind.JOB_SKILL,
                    {"job_id": job_id, "name": name},
                    {"is_required": True},
                )

        await units.run(EntityKind.JOB_SKILL, slug, write_skills)

    @staticmethod
    async def _agency_client(job: LegacyJobRequest, units: UnitRunner) -> Any:
        member = job.company
        if member is not None and member.agency is not None:
            agency_slug, agency_name = member.agency.slug, member.agency.name
        else:
            agency_slug, agency_name = DEFAULT_AGENCY_SLUG, DEFAULT_AGENCY_NAME
        if member is not None:
            slug, name = company_slug(member.company_id), member.company
        else:
            slug, name = DEFAULT_COMPANY_SLUG, DEFAULT_COMPANY_NAME

        agency = await units.resolver.resolve_organization(
            EntityKind.AGENCY, agency_slug, agency_name
        )
        company = await units.resolver.resolve_organization(
            EntityKind.COMPANY, slug, name
        )
        relationship = await units.resolver.resolve_agency_client(
            agency.id, company.id
        )
        return relationship.id
