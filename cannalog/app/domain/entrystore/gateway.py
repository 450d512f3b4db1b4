"""EntryStore gateway implementations."""

from __future__ import annotations

import threading
from datetime import timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence
from uuid import uuid4

from sqlalchemy import MetaData, Table, delete, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ...infra.db import get_engine
from ...infra.logging import get_logger
from .models import CannaStage, Entry

__all__ = [
    "ENTRIES_TABLE_NAME",
    "EntryListener",
    "EntryNotFoundError",
    "EntryStoreError",
    "EntryStoreGateway",
    "EntrySubscription",
    "InMemoryEntryStoreGateway",
    "PostgresEntryStoreGateway",
    "build_entry_store_gateway",
    "sort_entries",
]

ENTRIES_TABLE_NAME = "canna_log_entries"

logger = get_logger(__name__)

EntryListener = Callable[[Sequence[Entry]], None]


class EntryNotFoundError(KeyError):
    """Raised when an entry id is unknown to the store (or to its owner)."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"Entry {entry_id} not found")
        self.entry_id = entry_id


class EntryStoreError(RuntimeError):
    """Raised when the store cannot complete a write."""


def sort_entries(entries: Sequence[Entry]) -> List[Entry]:
    """Order entries newest first; ties broken by id for a stable render."""

    return sorted(
        entries,
        key=lambda entry: (entry.timestamp, entry.entry_id or ""),
        reverse=True,
    )


class EntrySubscription:
    """Handle for a live per-owner query; cancel to stop notifications."""

    def __init__(
        self,
        registry: "_SubscriptionRegistry",
        owner_id: str,
        listener: EntryListener,
    ) -> None:
        self.owner_id = owner_id
        self.listener = listener
        self._registry = registry
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._registry.remove(self)
        logger.debug("entry_subscription_cancelled", extra={"owner_id": self.owner_id})


class _SubscriptionRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: List[EntrySubscription] = []

    def add(self, owner_id: str, listener: EntryListener) -> EntrySubscription:
        subscription = EntrySubscription(self, owner_id, listener)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def remove(self, subscription: EntrySubscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def listeners_for(self, owner_id: str) -> List[EntrySubscription]:
        with self._lock:
            return [sub for sub in self._subscriptions if sub.owner_id == owner_id]

    def active_count(self, owner_id: Optional[str] = None) -> int:
        with self._lock:
            return sum(
                1
                for sub in self._subscriptions
                if owner_id is None or sub.owner_id == owner_id
            )

    def publish(self, owner_id: str, entries: Sequence[Entry]) -> None:
        snapshot = tuple(entries)
        for subscription in self.listeners_for(owner_id):
            if not subscription.active:
                continue
            try:
                subscription.listener(snapshot)
            except Exception:
                logger.exception(
                    "entry_subscription_listener_failed",
                    extra={"owner_id": owner_id},
                )


class EntryStoreGateway(Protocol):  # pragma: no cover
    """Abstraction the view-models rely on to read and write entries."""

    def get_entry(self, entry_id: str, *, owner_id: Optional[str] = None) -> Entry: ...

    def upsert_entry(self, entry: Entry) -> Entry: ...

    def delete_entry(self, entry_id: str, *, owner_id: Optional[str] = None) -> None: ...

    def list_entries(self, owner_id: str) -> List[Entry]: ...

    def subscribe(self, owner_id: str, listener: EntryListener) -> EntrySubscription: ...

    def active_subscriptions(self, owner_id: Optional[str] = None) -> int: ...


class InMemoryEntryStoreGateway(EntryStoreGateway):
    """Simple in-memory EntryStore used for local development and tests."""

    def __init__(self) -> None:
        self._entries: Dict[str, Entry] = {}
        # Reentrant: notifications are published while held so listeners
        # observe writes in commit order.
        self._lock = threading.RLock()
        self._subscriptions = _SubscriptionRegistry()

    def get_entry(self, entry_id: str, *, owner_id: Optional[str] = None) -> Entry:
        with self._lock:
            record = self._entries.get(entry_id)
        if record is None or (owner_id is not None and record.owner_id != owner_id):
            raise EntryNotFoundError(entry_id)
        return record

    def upsert_entry(self, entry: Entry) -> Entry:
        _require_owner(entry)
        with self._lock:
            if entry.entry_id:
                existing = self._entries.get(entry.entry_id)
                if existing is not None and existing.owner_id != entry.owner_id:
                    raise EntryStoreError(
                        f"Entry {entry.entry_id} belongs to another identity"
                    )
                record = entry
            else:
                record = entry.with_entry_id(str(uuid4()))
            self._entries[record.entry_id] = record
            self._subscriptions.publish(record.owner_id, self._owned_by(record.owner_id))
        logger.info(
            "entry_upserted",
            extra={"entry_id": record.entry_id, "owner_id": record.owner_id},
        )
        return record

    def delete_entry(self, entry_id: str, *, owner_id: Optional[str] = None) -> None:
        with self._lock:
            record = self._entries.get(entry_id)
            if record is None:
                logger.info("entry_delete_absent", extra={"entry_id": entry_id})
                return
            if owner_id is not None and record.owner_id != owner_id:
                raise EntryStoreError(f"Entry {entry_id} belongs to another identity")
            del self._entries[entry_id]
            self._subscriptions.publish(record.owner_id, self._owned_by(record.owner_id))
        logger.info(
            "entry_deleted",
            extra={"entry_id": entry_id, "owner_id": record.owner_id},
        )

    def list_entries(self, owner_id: str) -> List[Entry]:
        with self._lock:
            return self._owned_by(owner_id)

    def subscribe(self, owner_id: str, listener: EntryListener) -> EntrySubscription:
        with self._lock:
            return _deliver_initial(
                self._subscriptions.add(owner_id, listener),
                lambda: self.list_entries(owner_id),
            )

    def active_subscriptions(self, owner_id: Optional[str] = None) -> int:
        return self._subscriptions.active_count(owner_id)

    def _owned_by(self, owner_id: str) -> List[Entry]:
        return sort_entries(
            [entry for entry in self._entries.values() if entry.owner_id == owner_id]
        )


class PostgresEntryStoreGateway(EntryStoreGateway):
    """SQLAlchemy-backed adapter that persists entries to PostgreSQL.

    Subscribers are notified after writes made through this gateway
    instance; there is no cross-process change feed.
    """

    def __init__(
        self,
        engine: Optional[Engine] = None,
        *,
        table: Optional[Table] = None,
    ) -> None:
        self._engine = engine or get_engine()
        if table is not None:
            self._entries = table
            self._metadata = table.metadata
        else:
            self._metadata = MetaData()
            self._entries = Table(
                ENTRIES_TABLE_NAME, self._metadata, autoload_with=self._engine
            )
        self._subscriptions = _SubscriptionRegistry()
        self._notify_lock = threading.Lock()

    def get_entry(self, entry_id: str, *, owner_id: Optional[str] = None) -> Entry:
        try:
            with self._engine.begin() as conn:
                row = self._fetch_row(conn, entry_id)
        except SQLAlchemyError as exc:
            raise EntryStoreError(f"Failed to load entry {entry_id}: {exc}") from exc
        if row is None or (owner_id is not None and row["owner_id"] != owner_id):
            raise EntryNotFoundError(entry_id)
        return _row_to_entry(row)

    def upsert_entry(self, entry: Entry) -> Entry:
        _require_owner(entry)
        record = entry if entry.entry_id else entry.with_entry_id(str(uuid4()))
        values = _entry_to_values(record)
        try:
            with self._engine.begin() as conn:
                current = self._fetch_row(conn, record.entry_id)
                if current is None:
                    conn.execute(insert(self._entries).values(**values))
                elif current["owner_id"] != record.owner_id:
                    raise EntryStoreError(
                        f"Entry {record.entry_id} belongs to another identity"
                    )
                else:
                    conn.execute(
                        update(self._entries)
                        .where(self._entries.c.entry_id == record.entry_id)
                        .values(**values)
                    )
                row = self._fetch_row(conn, record.entry_id)
        except SQLAlchemyError as exc:
            logger.warning(
                "entry_upsert_failed",
                extra={"entry_id": record.entry_id, "error": str(exc)},
            )
            raise EntryStoreError(f"Failed to save entry: {exc}") from exc
        if row is None:  # pragma: no cover
            raise EntryStoreError("failed to persist entry")
        stored = _row_to_entry(row)
        logger.info(
            "entry_upserted",
            extra={"entry_id": stored.entry_id, "owner_id": stored.owner_id},
        )
        self._notify(stored.owner_id)
        return stored

    def delete_entry(self, entry_id: str, *, owner_id: Optional[str] = None) -> None:
        try:
            with self._engine.begin() as conn:
                current = self._fetch_row(conn, entry_id)
                if current is None:
                    logger.info("entry_delete_absent", extra={"entry_id": entry_id})
                    return
                if owner_id is not None and current["owner_id"] != owner_id:
                    raise EntryStoreError(
                        f"Entry {entry_id} belongs to another identity"
                    )
                conn.execute(
                    delete(self._entries).where(self._entries.c.entry_id == entry_id)
                )
        except SQLAlchemyError as exc:
            logger.warning(
                "entry_delete_failed",
                extra={"entry_id": entry_id, "error": str(exc)},
            )
            raise EntryStoreError(f"Failed to delete entry {entry_id}: {exc}") from exc
        logger.info(
            "entry_deleted",
            extra={"entry_id": entry_id, "owner_id": current["owner_id"]},
        )
        self._notify(current["owner_id"])

    def list_entries(self, owner_id: str) -> List[Entry]:
        stmt = (
            select(self._entries)
            .where(self._entries.c.owner_id == owner_id)
            .order_by(self._entries.c.timestamp.desc(), self._entries.c.entry_id.desc())
        )
        try:
            with self._engine.begin() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as exc:
            raise EntryStoreError(f"Failed to list entries: {exc}") from exc
        return sort_entries([_row_to_entry(row) for row in rows])

    def subscribe(self, owner_id: str, listener: EntryListener) -> EntrySubscription:
        with self._notify_lock:
            return _deliver_initial(
                self._subscriptions.add(owner_id, listener),
                lambda: self.list_entries(owner_id),
            )

    def active_subscriptions(self, owner_id: Optional[str] = None) -> int:
        return self._subscriptions.active_count(owner_id)

    def _notify(self, owner_id: str) -> None:
        if not self._subscriptions.listeners_for(owner_id):
            return
        with self._notify_lock:
            self._subscriptions.publish(owner_id, self.list_entries(owner_id))

    def _fetch_row(self, conn, entry_id: str) -> Optional[Mapping[str, Any]]:
        stmt = select(self._entries).where(self._entries.c.entry_id == entry_id)
        return conn.execute(stmt).mappings().first()


def build_entry_store_gateway(
    *,
    prefer_postgres: bool = True,
    fallback_to_memory: bool = False,
) -> EntryStoreGateway:
    """Factory that returns the desired EntryStore gateway implementation."""

    if prefer_postgres:
        try:
            return PostgresEntryStoreGateway()
        except Exception:
            if not fallback_to_memory:
                raise
            logger.warning(
                "postgres_entry_store_unavailable_falling_back",
                exc_info=True,
            )
    return InMemoryEntryStoreGateway()


def _deliver_initial(
    subscription: EntrySubscription, snapshot: Callable[[], List[Entry]]
) -> EntrySubscription:
    """Hand the first snapshot to a new subscriber, or cancel it on failure."""

    try:
        subscription.listener(tuple(snapshot()))
    except Exception:
        subscription.cancel()
        raise
    return subscription


def _require_owner(entry: Entry) -> None:
    if not entry.owner_id:
        raise EntryStoreError("owner_id is required to persist an entry")


def _entry_to_values(entry: Entry) -> Dict[str, Any]:
    return {
        "entry_id": entry.entry_id,
        "owner_id": entry.owner_id,
        "title": entry.title,
        "description": entry.description,
        "stage": entry.stage.value,
        "timestamp": entry.timestamp.astimezone(timezone.utc),
        "images": list(entry.images),
    }


def _row_to_entry(row: Mapping[str, Any]) -> Entry:
    timestamp = row["timestamp"]
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return Entry(
        entry_id=row["entry_id"],
        owner_id=row["owner_id"],
        title=row.get("title") or "",
        description=row.get("description") or "",
        stage=CannaStage.parse(row["stage"]),
        timestamp=timestamp,
        images=tuple(row.get("images") or ()),
    )
