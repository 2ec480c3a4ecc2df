"""Identity provider module.

Exports:
    IdentityProvider: Abstract read-only identity lookup
    Identity: Identity record
    DatabaseIdentityProvider: Reads the provider's users table
    MockIdentityProvider: In-memory implementation for tests
"""

from migrator.providers.identity.base import Identity, IdentityProvider
from migrator.providers.identity.database_adapter import DatabaseIdentityProvider
from migrator.providers.identity.mock_adapter import MockIdentityProvider

__all__ = [
    "DatabaseIdentityProvider",
    "Identity",
    "IdentityProvider",
    "MockIdentityProvider",
]
