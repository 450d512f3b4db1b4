"""Home screen state: the live list of the signed-in identity's entries."""

from __future__ import annotations

from collections import OrderedDict
from datetime import date
from typing import Optional, Sequence, Tuple

from ..entrystore.gateway import (
    EntryStoreError,
    EntryStoreGateway,
    EntrySubscription,
    sort_entries,
)
from ..entrystore.models import Entry
from ...infra.logging import get_logger

__all__ = ["EntryListViewModel"]

logger = get_logger(__name__)


class EntryListViewModel:
    """Observes the store's per-owner query and exposes it newest first."""

    def __init__(self, entry_gateway: EntryStoreGateway) -> None:
        self._gateway = entry_gateway
        self._entries: Tuple[Entry, ...] = tuple()
        self._owner_id: Optional[str] = None
        self._subscription: Optional[EntrySubscription] = None
        self._revision = 0

    @property
    def entries(self) -> Tuple[Entry, ...]:
        return self._entries

    @property
    def owner_id(self) -> Optional[str]:
        return self._owner_id

    @property
    def revision(self) -> int:
        """Number of snapshots received since construction."""

        return self._revision

    @property
    def is_subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def bind(self, owner_id: str) -> None:
        """Subscribe to ``owner_id``'s entries, dropping any other binding."""

        if self.is_subscribed and self._owner_id == owner_id:
            return
        self.unbind()
        try:
            subscription = self._gateway.subscribe(owner_id, self._replace_entries)
        except EntryStoreError:
            self._entries = tuple()
            logger.warning("entry_list_bind_failed", extra={"owner_id": owner_id})
            raise
        self._owner_id = owner_id
        self._subscription = subscription
        logger.info("entry_list_bound", extra={"owner_id": owner_id})

    def unbind(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.cancel()
            logger.info("entry_list_unbound", extra={"owner_id": self._owner_id})
        self._owner_id = None
        self._entries = tuple()

    def close(self) -> None:
        self.unbind()

    def entries_by_day(self) -> "OrderedDict[date, Tuple[Entry, ...]]":
        """Group the visible entries by calendar day, newest day first."""

        grouped: "OrderedDict[date, list[Entry]]" = OrderedDict()
        for entry in self._entries:
            grouped.setdefault(entry.timestamp.date(), []).append(entry)
        return OrderedDict((day, tuple(items)) for day, items in grouped.items())

    def _replace_entries(self, entries: Sequence[Entry]) -> None:
        if self._subscription is not None and not self._subscription.active:
            return
        self._entries = tuple(sort_entries(entries))
        self._revision += 1
