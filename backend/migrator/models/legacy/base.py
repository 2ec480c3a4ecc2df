"""Declarative base for the legacy (source) schema.

Kept on its own metadata: the legacy tables share names with destination
tables (``agencies``) and live in a different database.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

LegacyJSON = JSON().with_variant(JSONB(), "postgresql")


class LegacyBase(DeclarativeBase):
    """Base class for all legacy ORM models (read-only)."""

    type_annotation_map = {
        datetime: DateTime(timezone=True),
        dict[str, Any]: LegacyJSON,
        list[Any]: LegacyJSON,
    }
