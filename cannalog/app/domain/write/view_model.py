"""Write screen state: the draft entry being created or edited."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..entrystore.gateway import EntryNotFoundError, EntryStoreError, EntryStoreGateway
from ..entrystore.models import CannaStage, Entry, utcnow
from ..session.provider import AuthError, SessionProvider
from ...infra.logging import get_logger

__all__ = ["EntryEditorViewModel", "WriteUiState"]

logger = get_logger(__name__)


@dataclass(frozen=True)
class WriteUiState:
    """Immutable view of the editor for rendering."""

    entry_id: Optional[str]
    title: str
    description: str
    stage: CannaStage
    timestamp: datetime
    images: tuple[str, ...]
    is_existing_entry: bool
    is_loading: bool


class EntryEditorViewModel:
    """Holds one draft and commits it to the entry store.

    Setters mutate the local draft only. ``save`` and ``delete`` run one
    at a time; calls made while either is in flight are ignored.
    """

    def __init__(
        self,
        entry_gateway: EntryStoreGateway,
        session_provider: SessionProvider,
    ) -> None:
        self._gateway = entry_gateway
        self._session = session_provider
        self.draft: Entry = Entry.new()
        self.is_existing_entry = False
        self.is_loading = False

    @property
    def ui_state(self) -> WriteUiState:
        draft = self.draft
        return WriteUiState(
            entry_id=draft.entry_id,
            title=draft.title,
            description=draft.description,
            stage=draft.stage,
            timestamp=draft.timestamp,
            images=draft.images,
            is_existing_entry=self.is_existing_entry,
            is_loading=self.is_loading,
        )

    async def load(self, entry_id: Optional[str] = None) -> Entry:
        """Load ``entry_id`` into the draft, or start an empty one."""

        self.is_existing_entry = bool(entry_id)
        if not entry_id:
            self.draft = self._empty_draft()
            return self.draft

        identity = self._session.current_identity()
        owner_id = identity.identity_id if identity else None
        self.is_loading = True
        try:
            self.draft = await asyncio.to_thread(
                self._gateway.get_entry, entry_id, owner_id=owner_id
            )
        except EntryNotFoundError:
            # Stale links to deleted entries open an empty draft instead.
            logger.warning("write_load_entry_missing", extra={"entry_id": entry_id})
            self.draft = self._empty_draft()
        except EntryStoreError:
            logger.warning(
                "write_load_failed", extra={"entry_id": entry_id}, exc_info=True
            )
            raise
        finally:
            self.is_loading = False
        return self.draft

    def set_title(self, title: str) -> None:
        self.draft = self.draft.with_title(title)

    def set_description(self, description: str) -> None:
        self.draft = self.draft.with_description(description)

    def set_timestamp(self, timestamp: datetime) -> None:
        self.draft = self.draft.with_timestamp(timestamp)

    def set_stage(self, stage: "CannaStage | str") -> None:
        self.draft = self.draft.with_stage(stage)

    async def save(self) -> Optional[Entry]:
        """Upsert the draft under the current identity.

        Returns the stored entry, or ``None`` when ignored because another
        save or delete is still running. Store failures raise
        :class:`EntryStoreError` and leave the draft untouched.
        """

        if self.is_loading:
            logger.info("write_save_ignored_in_flight")
            return None
        identity = self._session.current_identity()
        if identity is None:
            raise AuthError("sign in before saving entries")

        self.is_loading = True
        try:
            candidate = self.draft.with_owner(identity.identity_id)
            stored = await asyncio.to_thread(self._gateway.upsert_entry, candidate)
        except EntryStoreError:
            logger.warning(
                "write_save_failed",
                extra={"entry_id": self.draft.entry_id},
                exc_info=True,
            )
            raise
        finally:
            self.is_loading = False

        self.draft = stored
        self.is_existing_entry = True
        logger.info(
            "write_save_succeeded",
            extra={"entry_id": stored.entry_id, "stage": stored.stage.value},
        )
        return stored

    async def delete(self) -> bool:
        """Remove the loaded entry; returns ``False`` when ignored."""

        if not self.is_existing_entry:
            raise ValueError("only saved entries can be deleted")
        if self.is_loading:
            logger.info("write_delete_ignored_in_flight")
            return False
        entry_id = self.draft.entry_id
        if not entry_id:
            # Fallback draft for an entry that no longer exists.
            self.draft = self._empty_draft()
            return True

        identity = self._session.current_identity()
        owner_id = identity.identity_id if identity else None
        self.is_loading = True
        try:
            await asyncio.to_thread(
                self._gateway.delete_entry, entry_id, owner_id=owner_id
            )
        except EntryStoreError:
            logger.warning(
                "write_delete_failed", extra={"entry_id": entry_id}, exc_info=True
            )
            raise
        finally:
            self.is_loading = False

        logger.info("write_delete_succeeded", extra={"entry_id": entry_id})
        self.draft = self._empty_draft()
        self.is_existing_entry = False
        return True

    def _empty_draft(self) -> Entry:
        identity = self._session.current_identity()
        return Entry.new(
            owner_id=identity.identity_id if identity else "",
            stage=CannaStage.first(),
            timestamp=utcnow(),
        )
