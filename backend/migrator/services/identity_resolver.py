"""Source natural key -> destination identifier resolution.

The legacy and destination schemas use incompatible key spaces (text and
integer ids vs. generated UUIDs). The resolver translates legacy references
into destination ids and caches hits for the life of one run. Misses are
never cached, so a row written later in the run is still found.

Cache entries created while a unit of work is open are staged and only
become visible to later units once the unit commits (:meth:`confirm`). A
rolled-back unit calls :meth:`discard`, so ids of rows that were never
committed cannot leak into later lookups.

Resolution never writes Account or Job rows. Organizations and
agency-client relationships are the exception: a missing one is created
(scaffolding) so that jobs always have a parent to hang off.
"""

import uuid
from dataclasses import dataclass
from typing import Any

import structlog

from migrator.models import (
    Agency,
    AgencyClient,
    Candidate,
    CandidateResume,
    Company,
    Job,
)
from migrator.providers.identity import IdentityProvider
from migrator.repositories.destination_store import DestinationStore
from migrator.services.idempotent_writer import EntityKind, IdempotentWriter

logger = structlog.get_logger()

ORGANIZATION_KINDS = frozenset({EntityKind.AGENCY, EntityKind.COMPANY})

_CacheKey = tuple[str, Any]


@dataclass(frozen=True)
class OrganizationResolution:
    """Result of resolving an organization or relationship.

    Attributes:
        id: Destination id.
        created: True if the row was created by this call.
    """

    id: uuid.UUID
    created: bool


def job_slug(legacy_job_id: int) -> str:
    """Destination slug of a migrated legacy job."""
    return f"job-{legacy_job_id}"


def company_slug(legacy_company_id: str) -> str:
    """Destination slug of a migrated legacy member company."""
    return f"company-{legacy_company_id}"


def parse_identity_id(value: Any) -> uuid.UUID | None:
    """Parse a legacy user id as a UUID; None when it is not one."""
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        return None
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        return None


class IdentityResolver:
    """Resolves legacy references to destination ids for one run.

    Args:
        identity: Identity provider (accounts).
        store: Destination store (jobs, resumes, organizations).
        writer: Writer used only to scaffold organizations.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        store: DestinationStore,
        writer: IdempotentWriter,
    ) -> None:
        self._identity = identity
        self._store = store
        self._writer = writer
        self._cache: dict[_CacheKey, uuid.UUID] = {}
        self._staged: dict[_CacheKey, uuid.UUID] = {}

    # =========================================================================
    # Unit-of-work cache control
    # =========================================================================

    def confirm(self) -> None:
        """Promote staged cache entries after the unit of work committed."""
        self._cache.update(self._staged)
        self._staged.clear()

    def discard(self) -> None:
        """Drop staged cache entries after the unit of work rolled back."""
        self._staged.clear()

    def _cached(self, key: _CacheKey) -> uuid.UUID | None:
        return self._staged.get(key) or self._cache.get(key)

    def _remember(self, key: _CacheKey, value: uuid.UUID) -> uuid.UUID:
        if key not in self._cache:
            self._staged[key] = value
        return value

    # =========================================================================
    # Lookups
    # =========================================================================

    async def resolve_account(self, source_user_id: Any) -> uuid.UUID | None:
        """Resolve a legacy user id to an identity-provider id.

        Succeeds only if the provider recognizes the id; ids are never
        minted. Ids that are not valid UUIDs resolve to None.
        """
        identity_id = parse_identity_id(source_user_id)
        if identity_id is None:
            return None
        key = ("account", identity_id)
        cached = self._cached(key)
        if cached is not None:
            return cached
        if not await self._identity.exists(identity_id):
            return None
        return self._remember(key, identity_id)

    async def resolve_candidate(self, source_user_id: Any) -> uuid.UUID | None:
        """Resolve a legacy user id to an existing destination candidate."""
        candidate_id = parse_identity_id(source_user_id)
        if candidate_id is None:
            return None
        key = ("candidate", candidate_id)
        cached = self._cached(key)
        if cached is not None:
            return cached
        found = await self._store.find_id(Candidate, {"id": candidate_id})
        if found is None:
            return None
        return self._remember(key, found)

    async def resolve_job(self, source_job_id: int) -> uuid.UUID | None:
        """Resolve a legacy integer job id via its ``job-<n>`` slug."""
        slug = job_slug(source_job_id)
        key = ("job", slug)
        cached = self._cached(key)
        if cached is not None:
            return cached
        found = await self._store.find_id(Job, {"slug": slug})
        if found is None:
            return None
        return self._remember(key, found)

    async def resolve_resume(self, slug: str | None) -> uuid.UUID | None:
        """Resolve a resume slug to its destination id."""
        if not slug:
            return None
        key = ("resume", slug)
        cached = self._cached(key)
        if cached is not None:
            return cached
        found = await self._store.find_id(CandidateResume, {"slug": slug})
        if found is None:
            return None
        return self._remember(key, found)

    # =========================================================================
    # Scaffolding lookups
    # =========================================================================

    async def resolve_organization(
        self, kind: EntityKind, slug: str, name: str
    ) -> OrganizationResolution:
        """Find an agency or company by slug, creating it if absent.

        Args:
            kind: EntityKind.AGENCY or EntityKind.COMPANY.
            slug: Natural key.
            name: Display name used only when creating.

        Returns:
            OrganizationResolution with the id and whether it was created.
        """
        if kind not in ORGANIZATION_KINDS:
            msg = f"Not an organization kind: {kind.value}"
            raise ValueError(msg)
        key = (kind.value, slug)
        cached = self._cached(key)
        if cached is not None:
            return OrganizationResolution(id=cached, created=False)

        model = Agency if kind is EntityKind.AGENCY else Company
        found = await self._store.find_id(model, {"slug": slug})
        if found is not None:
            return OrganizationResolution(id=self._remember(key, found), created=False)

        result = await self._writer.insert_if_absent(
            kind, {"slug": slug}, {"name": name, "is_active": True}
        )
        if result.created:
            logger.info("Scaffolded organization", kind=kind.value, slug=slug)
        return OrganizationResolution(
            id=self._remember(key, result.id), created=result.created
        )

    async def resolve_agency_client(
        self, agency_id: uuid.UUID, company_id: uuid.UUID
    ) -> OrganizationResolution:
        """Find the agency-company relationship, creating it if absent."""
        key = ("agency_client", (agency_id, company_id))
        cached = self._cached(key)
        if cached is not None:
            return OrganizationResolution(id=cached, created=False)

        natural_key = {"agency_id": agency_id, "company_id": company_id}
        found = await self._store.find_id(AgencyClient, natural_key)
        if found is not None:
            return OrganizationResolution(id=self._remember(key, found), created=False)

        result = await self._writer.insert_if_absent(
            EntityKind.AGENCY_CLIENT, natural_key, {"status": "active"}
        )
        return OrganizationResolution(
            id=self._remember(key, result.id), created=result.created
        )
