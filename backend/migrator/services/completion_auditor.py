"""Read-only comparison of source and destination record counts.

Used by ``migrate --test`` before a run and to verify a run afterwards.
The auditor never writes to either store.
"""

from dataclasses import dataclass, field

import structlog
from sqlalchemy import func, or_

from migrator.models import (
    Agency,
    Candidate,
    CandidateAiAnalysis,
    CandidateDiscAssessment,
    CandidateProfile,
    CandidateResume,
    CandidateTypingAssessment,
    Company,
    Job,
    JobApplication,
    JobMatch,
    PlatformUser,
)
from migrator.models.legacy import (
    LegacyAgency,
    LegacyAiAnalysis,
    LegacyApplication,
    LegacyDiscSession,
    LegacyExtractedResume,
    LegacyGeneratedResume,
    LegacyJobMatch,
    LegacyJobRequest,
    LegacyMember,
    LegacySavedResume,
    LegacyTypingSession,
    LegacyUser,
)
from migrator.providers.identity import IdentityProvider
from migrator.repositories.destination_store import DestinationStore
from migrator.repositories.source_store import SourceStore
from migrator.services.vocabulary import PLATFORM_ADMIN_LEVELS

logger = structlog.get_logger()


@dataclass(frozen=True)
class AuditEntry:
    """Source vs. destination count for one entity kind."""

    source_count: int
    destination_count: int

    @property
    def gap(self) -> int:
        """How many source records have no destination counterpart (>= 0)."""
        return max(0, self.source_count - self.destination_count)


@dataclass
class AuditReport:
    """Per-entity counts plus the identity provider total.

    Attributes:
        entries: Entity kind -> counts, in reporting order.
        identity_count: Number of identities known to the provider.
    """

    entries: dict[str, AuditEntry] = field(default_factory=dict)
    identity_count: int = 0

    @property
    def gaps(self) -> list[str]:
        """Entity kinds whose destination count is below the source count."""
        return [kind for kind, entry in self.entries.items() if entry.gap > 0]


class CompletionAuditor:
    """Counts records on both sides of the migration.

    Args:
        source: Legacy store reader.
        destination: Destination store.
        identity: Identity provider.
    """

    def __init__(
        self,
        source: SourceStore,
        destination: DestinationStore,
        identity: IdentityProvider,
    ) -> None:
        self._source = source
        self._destination = destination
        self._identity = identity

    async def audit(self) -> AuditReport:
        """Produce the completion report."""
        src = self._source
        dst = self._destination
        admin_level = func.lower(func.trim(LegacyUser.admin_level))
        is_admin = admin_level.in_(sorted(PLATFORM_ADMIN_LEVELS))
        is_candidate = or_(LegacyUser.admin_level.is_(None), ~is_admin)

        candidates = await src.count(LegacyUser, is_candidate)
        resumes = (
            await src.count(LegacyExtractedResume)
            + await src.count(LegacyGeneratedResume)
            + await src.count(LegacySavedResume)
        )

        report = AuditReport()
        pairs = [
            ("candidates", candidates, await dst.count(Candidate)),
            ("platform_users", await src.count(LegacyUser, is_admin), await dst.count(PlatformUser)),
            ("profiles", candidates, await dst.count(CandidateProfile)),
            ("resumes", resumes, await dst.count(CandidateResume)),
            ("disc_assessments", await src.count(LegacyDiscSession), await dst.count(CandidateDiscAssessment)),
            ("typing_assessments", await src.count(LegacyTypingSession), await dst.count(CandidateTypingAssessment)),
            ("ai_analysis", await src.count(LegacyAiAnalysis), await dst.count(CandidateAiAnalysis)),
            ("agencies", await src.count(LegacyAgency), await dst.count(Agency)),
            ("companies", await src.count(LegacyMember), await dst.count(Company)),
            ("jobs", await src.count(LegacyJobRequest), await dst.count(Job)),
            ("applications", await src.count(LegacyApplication), await dst.count(JobApplication)),
            ("job_matches", await src.count(LegacyJobMatch), await dst.count(JobMatch)),
        ]
        for kind, source_count, destination_count in pairs:
            report.entries[kind] = AuditEntry(source_count, destination_count)
        report.identity_count = await self._identity.count()

        logger.info("Audit complete", gaps=report.gaps, identities=report.identity_count)
        return report
