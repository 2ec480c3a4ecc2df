"""SQLAlchemy base classes and common mixins for the destination schema.

Column types are portable between PostgreSQL (production) and SQLite (unit
tests): JSON becomes JSONB on PostgreSQL, and UUID primary keys are generated
client-side so that upserts can return them on either dialect.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all destination ORM models."""

    type_annotation_map = {
        datetime: DateTime(timezone=True),
        uuid.UUID: Uuid(as_uuid=True),
        dict[str, Any]: JSONType,
        list[Any]: JSONType,
    }


class UUIDPrimaryKeyMixin:
    """Mixin that adds a generated UUID primary key.

    Attributes:
        id: UUID primary key, generated on insert when not supplied.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )


class TimestampMixin:
    """Mixin that adds created_at and updated_at columns.

    Migrated rows carry the source row's timestamps; the server defaults
    only apply to rows the engine synthesizes (scaffold organizations).

    Attributes:
        created_at: Timestamp when the record was created.
        updated_at: Timestamp when the record was last modified.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
