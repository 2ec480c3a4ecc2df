"""Vocabulary translation from legacy enumerations to destination values.

Pure, table-driven, and total: every function here accepts any input
(including None and non-strings) and never raises. Each category has a
default for empty input and a fallback for unrecognized input, which may
differ (an empty work status stays empty, an unknown one becomes
"unemployed").

Lookups are case-insensitive and ignore surrounding whitespace.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class VocabularyCategory(str, Enum):
    """Enumerations that differ between the legacy and destination schemas."""

    WORK_STATUS = "work_status"
    WORK_SETUP = "work_setup"
    APPLICATION_STATUS = "application_status"
    WORK_TYPE = "work_type"
    ACCOUNT_ROLE = "account_role"
    JOB_STATUS = "job_status"
    SALARY_TYPE = "salary_type"
    SHIFT = "shift"
    PRIORITY = "priority"
    SESSION_STATUS = "session_status"
    WORK_ARRANGEMENT = "work_arrangement"
    EXPERIENCE_LEVEL = "experience_level"


@dataclass(frozen=True)
class VocabularyTable:
    """Mapping for one category.

    Attributes:
        mapping: Normalized (lowercase, trimmed) source value -> destination value.
        empty: Result for None, empty, or whitespace-only input.
        unknown: Result for any input not in the mapping.
    """

    mapping: dict[str, str] = field(default_factory=dict)
    empty: str | None = None
    unknown: str | None = None


def _identity(*values: str) -> dict[str, str]:
    return {value: value for value in values}


# =============================================================================
# Tables
# =============================================================================

_TABLES: dict[VocabularyCategory, VocabularyTable] = {
    VocabularyCategory.WORK_STATUS: VocabularyTable(
        mapping={
            "employed": "employed",
            "unemployed-looking-for-work": "unemployed",
            "freelancer": "freelancer",
            "part-time": "part_time",
            "student": "student",
        },
        empty=None,
        unknown="unemployed",
    ),
    VocabularyCategory.WORK_SETUP: VocabularyTable(
        mapping={
            "work from office": "office",
            "work from home": "remote",
            "hybrid": "hybrid",
            "any": "any",
        },
        empty=None,
        unknown=None,
    ),
    VocabularyCategory.APPLICATION_STATUS: VocabularyTable(
        mapping={
            "submitted": "submitted",
            "qualified": "under_review",
            "for verification": "under_review",
            "verified": "under_review",
            "initial interview": "interview_scheduled",
            "final interview": "interviewed",
            "not qualified": "rejected",
            "passed": "shortlisted",
            "rejected": "rejected",
            "withdrawn": "withdrawn",
            "hired": "hired",
            "closed": "closed",
            "failed": "rejected",
        },
        empty="submitted",
        unknown="submitted",
    ),
    VocabularyCategory.WORK_TYPE: VocabularyTable(
        mapping={
            "full-time": "full_time",
            "full_time": "full_time",
            "part-time": "part_time",
            "part_time": "part_time",
            "contract": "contract",
            "internship": "internship",
        },
        empty="full_time",
        unknown="full_time",
    ),
    # Candidates have no role: None means "not a platform user"
    VocabularyCategory.ACCOUNT_ROLE: VocabularyTable(
        mapping=_identity("super_admin", "support", "admin"),
    ),
    VocabularyCategory.JOB_STATUS: VocabularyTable(
        mapping={"active": "active"},
        empty="closed",
        unknown="closed",
    ),
    VocabularyCategory.SALARY_TYPE: VocabularyTable(
        mapping=_identity("hourly", "daily", "weekly", "monthly", "yearly"),
        empty="monthly",
        unknown="monthly",
    ),
    VocabularyCategory.SHIFT: VocabularyTable(
        mapping=_identity("day", "night", "both"),
        empty="day",
        unknown="day",
    ),
    VocabularyCategory.PRIORITY: VocabularyTable(
        mapping=_identity("low", "medium", "high", "urgent"),
        empty="medium",
        unknown="medium",
    ),
    VocabularyCategory.SESSION_STATUS: VocabularyTable(
        mapping=_identity("started", "in_progress", "completed", "abandoned"),
        empty="completed",
        unknown="completed",
    ),
    VocabularyCategory.WORK_ARRANGEMENT: VocabularyTable(
        mapping=_identity("onsite", "remote", "hybrid"),
    ),
    VocabularyCategory.EXPERIENCE_LEVEL: VocabularyTable(
        mapping=_identity("entry_level", "mid_level", "senior_level"),
    ),
}

PLATFORM_ADMIN_LEVELS = frozenset({"admin", "super_admin", "support"})


# =============================================================================
# Public API
# =============================================================================


def _normalize(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    return value.strip().lower()


def translate(category: VocabularyCategory, source_value: Any) -> str | None:
    """Translate a legacy value into the destination vocabulary.

    Args:
        category: Which enumeration the value belongs to.
        source_value: Raw legacy value. May be None or a non-string.

    Returns:
        The destination value, the category's empty default, or its
        unknown fallback. Never raises.
    """
    table = _TABLES[category]
    key = _normalize(source_value)
    if not key:
        return table.empty
    return table.mapping.get(key, table.unknown)


def is_platform_user(admin_level: Any) -> bool:
    """Whether a legacy account belongs in platform_users rather than candidates."""
    return _normalize(admin_level) in PLATFORM_ADMIN_LEVELS


def bound_score(value: Any, low: float, high: float) -> float | None:
    """Clamp a numeric score into [low, high].

    None and non-numeric input (including NaN and booleans) become None.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:  # NaN
        return None
    return max(low, min(high, number))


def bound_int_score(value: Any, low: int, high: int) -> int | None:
    """Integer variant of :func:`bound_score`; rounds to nearest."""
    bounded = bound_score(value, low, high)
    if bounded is None:
        return None
    return int(round(bounded))


def parse_legacy_job_id(value: Any) -> int | None:
    """Parse a legacy job id stored as text.

    Returns:
        The positive integer id, or None for null, non-numeric, or
        non-positive input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    else:
        text = _normalize(value)
        if not (text.isascii() and text.isdigit()):
            return None
        number = int(text)
    return number if number > 0 else None
