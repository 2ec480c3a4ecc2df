"""Abstract base class for identity providers.

The identity provider owns the canonical person identities. The migration
engine only ever reads from it: account ids are taken from the provider,
never minted locally.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """A person known to the identity provider.

    Attributes:
        id: Provider-assigned UUID; becomes the destination account id.
        email: Primary email address.
    """

    id: uuid.UUID
    email: str


class IdentityProvider(ABC):
    """Read-only view of the identity provider."""

    @abstractmethod
    async def exists(self, identity_id: uuid.UUID) -> bool:
        """Check whether an identity exists.

        Args:
            identity_id: Candidate identity UUID.

        Returns:
            True if the provider knows the identity.
        """
        ...

    @abstractmethod
    async def get_by_email(self, email: str) -> Identity | None:
        """Look up an identity by email (case-insensitive).

        Args:
            email: Email address.

        Returns:
            The identity, or None if not found.
        """
        ...

    @abstractmethod
    async def count(self) -> int:
        """Return the total number of identities."""
        ...
