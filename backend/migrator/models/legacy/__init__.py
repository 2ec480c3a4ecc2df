"""Legacy (source) schema models. Read-only."""

from migrator.models.legacy.assessment import LegacyDiscSession, LegacyTypingSession
from migrator.models.legacy.base import LegacyBase
from migrator.models.legacy.job import (
    LegacyAgency,
    LegacyApplication,
    LegacyJobMatch,
    LegacyJobRequest,
    LegacyMember,
)
from migrator.models.legacy.resume import (
    LegacyAiAnalysis,
    LegacyExtractedResume,
    LegacyGeneratedResume,
    LegacySavedResume,
)
from migrator.models.legacy.user import (
    LegacyLeaderboardScore,
    LegacyPrivacySettings,
    LegacyUser,
    LegacyWorkStatus,
)

__all__ = [
    "LegacyAgency",
    "LegacyAiAnalysis",
    "LegacyApplication",
    "LegacyBase",
    "LegacyDiscSession",
    "LegacyExtractedResume",
    "LegacyGeneratedResume",
    "LegacyJobMatch",
    "LegacyJobRequest",
    "LegacyLeaderboardScore",
    "LegacyMember",
    "LegacyPrivacySettings",
    "LegacySavedResume",
    "LegacyTypingSession",
    "LegacyUser",
    "LegacyWorkStatus",
]
