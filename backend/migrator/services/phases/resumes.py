"""Resumes phase: extracted, generated, and saved resumes -> candidate_resumes."""

from collections.abc import Sequence
from typing import Any

from sqlalchemy.orm.interfaces import LoaderOption

from migrator.core.errors import SkipRecord
from migrator.models.legacy import LegacyUser
from migrator.repositories.source_store import eager
from migrator.services.idempotent_writer import EntityKind
from migrator.services.phases.base import (
    Phase,
    UnitRunner,
    timestamp_or_now,
    updated_or_created,
)


def extracted_slug(user_id: str) -> str:
    return f"extracted-{user_id}"


def generated_slug(user_id: str) -> str:
    return f"generated-{user_id}"


class ResumesPhase(Phase):
    """Collapse the three legacy resume tables into one slug-keyed table.

    Pages over users so that each user's resumes are resolved against one
    candidate lookup.
    """

    name = "resumes"
    entity_kind = EntityKind.RESUME
    source_model = LegacyUser

    def loader_options(self) -> Sequence[LoaderOption]:
        return (
            eager(LegacyUser.extracted_resume),
            eager(LegacyUser.generated_resume),
            eager(LegacyUser.saved_resumes),
        )

    async def migrate(self, record: LegacyUser, units: UnitRunner) -> None:
        user = record
        for slug, fields, updatable in self._resumes(user):
            await units.run(
                EntityKind.RESUME,
                slug,
                self._writer_for(user.id, slug, fields, updatable, units),
            )

    def _resumes(
        self, user: LegacyUser
    ) -> list[tuple[str, dict[str, Any], frozenset[str]]]:
        """(slug, fields, fields updated on re-run) for each of the user's resumes."""
        resumes: list[tuple[str, dict[str, Any], frozenset[str]]] = []

        extracted = user.extracted_resume
        if extracted is not None:
            resumes.append(
                (
                    extracted_slug(user.id),
                    {
                        "title": "Extracted Resume",
                        "extracted_data": extracted.resume_data,
                        "resume_data": extracted.resume_data,
                        "original_filename": extracted.original_filename or None,
                        "is_primary": False,
                        "is_public": True,
                        "created_at": timestamp_or_now(extracted.created_at),
                        "updated_at": updated_or_created(extracted),
                    },
                    frozenset({"extracted_data", "resume_data", "updated_at"}),
                )
            )

        generated = user.generated_resume
        if generated is not None:
            resumes.append(
                (
                    generated_slug(user.id),
                    {
                        "title": "Generated Resume",
                        "generated_data": generated.generated_resume_data,
                        "resume_data": generated.generated_resume_data,
                        "template_used": generated.template_used or None,
                        "generation_metadata": generated.generation_metadata,
                        "is_primary": False,
                        "is_public": True,
                        "created_at": timestamp_or_now(generated.created_at),
                        "updated_at": updated_or_created(generated),
                    },
                    frozenset({"generated_data", "resume_data", "updated_at"}),
                )
            )

        for saved in user.saved_resumes:
            resumes.append(
                (
                    saved.resume_slug,
                    {
                        "title": saved.resume_title,
                        "resume_data": saved.resume_data,
                        "template_used": saved.template_used or None,
                        "is_primary": False,
                        "is_public": True if saved.is_public is None else saved.is_public,
                        "view_count": saved.view_count or 0,
                        "created_at": timestamp_or_now(saved.created_at),
                        "updated_at": updated_or_created(saved),
                    },
                    frozenset(
                        {"title", "resume_data", "is_public", "view_count", "updated_at"}
                    ),
                )
            )
        return resumes

    @staticmethod
    def _writer_for(
        user_id: str,
        slug: str,
        fields: dict[str, Any],
        updatable: frozenset[str],
        units: UnitRunner,
    ):
        async def write_resume() -> None:
            candidate_id = await units.resolver.resolve_candidate(user_id)
            if candidate_id is None:
                raise SkipRecord(f"resume {slug}: candidate {user_id} not migrated")
            create_only = {"candidate_id", *fields} - updatable
            await units.writer.upsert(
                EntityKind.RESUME,
                {"slug": slug},
                {"candidate_id": candidate_id, **fields},
                create_only=create_only,
            )

        return write_resume
