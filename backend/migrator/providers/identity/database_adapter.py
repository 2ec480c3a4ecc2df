"""Identity provider backed by the provider's users table.

The managed identity service exposes its users in a schema table
(``auth.users`` by default) of the destination database.
"""

import uuid

from sqlalchemy import String, Uuid, bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from migrator.providers.identity.base import Identity, IdentityProvider


class DatabaseIdentityProvider(IdentityProvider):
    """Reads identities with plain SQL against the configured table.

    Args:
        session: Session on the database that hosts the identity table.
        table: Table name, already validated as ``table`` or ``schema.table``
            by settings.
    """

    def __init__(self, session: AsyncSession, table: str) -> None:
        self._session = session
        self._table = table

    async def exists(self, identity_id: uuid.UUID) -> bool:
        stmt = text(
            f"SELECT 1 FROM {self._table} WHERE id = :id LIMIT 1"  # noqa: S608
        ).bindparams(bindparam("id", type_=Uuid()))
        result = await self._session.execute(stmt, {"id": identity_id})
        return result.first() is not None

    async def get_by_email(self, email: str) -> Identity | None:
        stmt = text(
            f"SELECT id, email FROM {self._table} "  # noqa: S608
            "WHERE lower(email) = lower(:email) LIMIT 1"
        ).columns(id=Uuid(), email=String())
        result = await self._session.execute(stmt, {"email": email})
        row = result.first()
        if row is None:
            return None
        return Identity(id=row.id, email=row.email)

    async def count(self) -> int:
        result = await self._session.execute(
            text(f"SELECT COUNT(*) FROM {self._table}")  # noqa: S608
        )
        return int(result.scalar_one())
