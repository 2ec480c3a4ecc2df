"""In-memory identity provider for tests and dry runs."""

import uuid
from typing import Any

from migrator.providers.identity.base import Identity, IdentityProvider


class MockIdentityProvider(IdentityProvider):
    """Identity provider holding a fixed set of identities.

    Attributes:
        calls: Record of all method invocations for test assertions.
    """

    def __init__(self, identities: list[Identity] | None = None) -> None:
        self._by_id: dict[uuid.UUID, Identity] = {}
        self.calls: list[dict[str, Any]] = []
        for identity in identities or []:
            self.add(identity.id, identity.email)

    def add(self, identity_id: uuid.UUID, email: str) -> Identity:
        """Register an identity."""
        identity = Identity(id=identity_id, email=email)
        self._by_id[identity_id] = identity
        return identity

    async def exists(self, identity_id: uuid.UUID) -> bool:
        self.calls.append({"method": "exists", "id": identity_id})
        return identity_id in self._by_id

    async def get_by_email(self, email: str) -> Identity | None:
        self.calls.append({"method": "get_by_email", "email": email})
        wanted = email.strip().lower()
        for identity in self._by_id.values():
            if identity.email.lower() == wanted:
                return identity
        return None

    async def count(self) -> int:
        self.calls.append({"method": "count"})
        return len(self._by_id)
