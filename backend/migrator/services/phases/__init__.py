"""Per-entity migration phases, in execution order."""

from migrator.services.phases.accounts import AccountsPhase
from migrator.services.phases.ai_analysis import AiAnalysisPhase
from migrator.services.phases.applications import ApplicationsPhase, JobMatchesPhase
from migrator.services.phases.assessments import (
    DiscAssessmentsPhase,
    TypingAssessmentsPhase,
)
from migrator.services.phases.base import Phase, UnitRunner
from migrator.services.phases.jobs import JobsPhase
from migrator.services.phases.organizations import AgenciesPhase, CompaniesPhase
from migrator.services.phases.resumes import ResumesPhase


def default_phases() -> list[Phase]:
    """All phases in dependency order.

    Accounts precede everything keyed by candidate; organizations precede
    jobs; jobs precede applications and matches.
    """
    return [
        AccountsPhase(),
        ResumesPhase(),
        DiscAssessmentsPhase(),
        TypingAssessmentsPhase(),
        AiAnalysisPhase(),
        AgenciesPhase(),
        CompaniesPhase(),
        JobsPhase(),
        ApplicationsPhase(),
        JobMatchesPhase(),
    ]


__all__ = [
    "AccountsPhase",
    "AgenciesPhase",
    "AiAnalysisPhase",
    "ApplicationsPhase",
    "CompaniesPhase",
    "DiscAssessmentsPhase",
    "JobMatchesPhase",
    "JobsPhase",
    "Phase",
    "ResumesPhase",
    "TypingAssessmentsPhase",
    "UnitRunner",
    "default_phases",
]
