"""Organization phases: agencies, then member companies and their relationships."""

from collections.abc import Sequence

from sqlalchemy.orm.interfaces import LoaderOption

from migrator.models.legacy import LegacyAgency, LegacyMember
from migrator.repositories.source_store import eager
from migrator.services.identity_resolver import company_slug
from migrator.services.idempotent_writer import EntityKind
from migrator.services.phases.base import (
    Phase,
    UnitRunner,
    timestamp_or_now,
    updated_or_created,
)

DEFAULT_AGENCY_SLUG = "default-agency"
DEFAULT_AGENCY_NAME = "Default Agency"
DEFAULT_COMPANY_SLUG = "default-company"
DEFAULT_COMPANY_NAME = "Default Company"


class AgenciesPhase(Phase):
    """Upsert legacy agencies by slug."""

    name = "agencies"
    entity_kind = EntityKind.AGENCY
    source_model = LegacyAgency

    async def migrate(self, record: LegacyAgency, units: UnitRunner) -> None:
        agency = record

        async def write_agency() -> None:
            await units.writer.upsert(
                EntityKind.AGENCY,
                {"slug": agency.slug},
                {
                    "name": agency.name,
                    "logo_url": agency.logo_url or None,
                    "is_active": True,
                    "created_at": timestamp_or_now(agency.created_at),
                    "updated_at": updated_or_created(agency),
                },
                create_only=("is_active", "created_at"),
            )

        await units.run(EntityKind.AGENCY, agency.slug, write_agency)


class CompaniesPhase(Phase):
    """Upsert member companies, then link each to its agency."""

    name = "companies"
    entity_kind = EntityKind.COMPANY
    source_model = LegacyMember

    def loader_options(self) -> Sequence[LoaderOption]:
        return (eager(LegacyMember.agency),)

    async def migrate(self, record: LegacyMember, units: UnitRunner) -> None:
        member = record
        slug = company_slug(member.company_id)

        async def write_company() -> None:
            await units.writer.upsert(
                EntityKind.COMPANY,
                {"slug": slug},
                {
                    "name": member.company,
                    "is_active": True,
                    "created_at": timestamp_or_now(member.created_at),
                    "updated_at": updated_or_created(member),
                },
                create_only=("is_active", "created_at"),
            )

        if not await units.run(EntityKind.COMPANY, slug, write_company):
            return
        if member.agency is None:
            return
        agency = member.agency

        async def write_relationship() -> None:
            agency_ref = await units.resolver.resolve_organization(
                EntityKind.AGENCY, agency.slug, agency.name
            )
            company_ref = await units.resolver.resolve_organization(
                EntityKind.COMPANY, slug, member.company
            )
            await units.resolver.resolve_agency_client(agency_ref.id, company_ref.id)

        await units.run(
            EntityKind.AGENCY_CLIENT, f"{agency.slug}/{slug}", write_relationship
        )
