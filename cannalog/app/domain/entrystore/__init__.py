"""Entry storage: models and gateways."""

from .gateway import (
    EntryNotFoundError,
    EntryStoreError,
    EntryStoreGateway,
    EntrySubscription,
    InMemoryEntryStoreGateway,
    PostgresEntryStoreGateway,
    build_entry_store_gateway,
)
from .models import CannaStage, Entry

__all__ = [
    "CannaStage",
    "Entry",
    "EntryNotFoundError",
    "EntryStoreError",
    "EntryStoreGateway",
    "EntrySubscription",
    "InMemoryEntryStoreGateway",
    "PostgresEntryStoreGateway",
    "build_entry_store_gateway",
]
