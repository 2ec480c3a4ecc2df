"""Agency, company, and agency-client relationship models."""

import uuid

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from migrator.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Agency(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Recruitment agency, keyed by slug."""

    __tablename__ = "agencies"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    logo_url: Mapped[str | None] = mapped_column(Text())
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Company(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Client company, keyed by slug (``company-<legacy company id>``)."""

    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class AgencyClient(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Relationship between an agency and a client company.

    Jobs hang off this row, so it must exist before a job referencing the
    pair is written.
    """

    __tablename__ = "agency_clients"
    __table_args__ = (
        UniqueConstraint("agency_id", "company_id", name="uq_agency_client_pair"),
    )

    agency_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("agencies.id"), nullable=False
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("companies.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
