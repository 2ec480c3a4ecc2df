"""Store access for the legacy and destination databases."""

from migrator.repositories.destination_store import DestinationStore
from migrator.repositories.source_store import SourceStore, eager

__all__ = ["DestinationStore", "SourceStore", "eager"]
