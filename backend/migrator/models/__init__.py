"""Destination schema models.

Import order does not matter for metadata: foreign keys are declared by
table name.
"""

from migrator.models.assessment import (
    CandidateDiscAssessment,
    CandidateTypingAssessment,
)
from migrator.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from migrator.models.candidate import Candidate, CandidateProfile, PlatformUser
from migrator.models.job import Job, JobApplication, JobMatch, JobSkill
from migrator.models.organization import Agency, AgencyClient, Company
from migrator.models.resume import CandidateAiAnalysis, CandidateResume

__all__ = [
    "Agency",
    "AgencyClient",
    "Base",
    "Candidate",
    "CandidateAiAnalysis",
    "CandidateDiscAssessment",
    "CandidateProfile",
    "CandidateResume",
    "CandidateTypingAssessment",
    "Company",
    "Job",
    "JobApplication",
    "JobMatch",
    "JobSkill",
    "PlatformUser",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
]
