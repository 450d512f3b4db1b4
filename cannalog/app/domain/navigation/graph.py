"""Navigation graph wiring the three screens to their state holders."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..entrystore.gateway import EntryStoreError, EntryStoreGateway
from ..entrystore.models import CannaStage, Entry
from ..home.view_model import EntryListViewModel
from ..session.gate import SessionGate
from ..session.provider import AuthError, Identity, SessionProvider
from ..write.view_model import EntryEditorViewModel
from ...infra.logging import get_logger
from .controller import NavigationController, Route, Screen

__all__ = [
    "CannaLogNavGraph",
    "IllegalActionError",
    "UserMessage",
]

logger = get_logger(__name__)


class IllegalActionError(RuntimeError):
    """Raised when an action does not belong to the current screen."""

    def __init__(self, action: str, route: Route) -> None:
        super().__init__(f"{action} is not available on {route.screen.value}")
        self.action = action
        self.route = route


@dataclass(frozen=True)
class UserMessage:
    """Transient, dismissible message shown over the current screen."""

    level: str
    text: str


class CannaLogNavGraph:
    """Owns the router, session gate and per-screen view-models.

    Store and session failures never escape: they become a
    :class:`UserMessage` and the current screen stays put.
    """

    def __init__(
        self,
        entry_gateway: EntryStoreGateway,
        session_provider: SessionProvider,
        *,
        navigation: Optional[NavigationController] = None,
    ) -> None:
        self.entry_gateway = entry_gateway
        self.session_provider = session_provider
        self.navigation = navigation or NavigationController()
        self.entry_list = EntryListViewModel(entry_gateway)
        self.gate = SessionGate(session_provider, self.entry_list, self.navigation)
        self.editor: Optional[EntryEditorViewModel] = None
        self.auth_loading = False
        self.signing_out = False
        self.sign_out_dialog_open = False
        self.delete_dialog_open = False
        self.message: Optional[UserMessage] = None
        self.navigation.add_listener(self._on_route_changed)

    @property
    def route(self) -> Route:
        return self.navigation.current

    @property
    def identity(self) -> Optional[Identity]:
        return self.gate.identity

    # Authentication -----------------------------------------------------
    async def start(self) -> Route:
        """Restore a persisted session, if any, before the first render."""

        if self.route.screen is Screen.AUTHENTICATION:
            try:
                await self.gate.restore_session()
            except EntryStoreError as exc:
                self._error(str(exc))
        return self.route

    async def sign_in(self, identity_token: str) -> bool:
        if self.route.screen is not Screen.AUTHENTICATION or self.auth_loading:
            return False
        self.auth_loading = True
        try:
            await self.gate.sign_in(identity_token)
        except AuthError as exc:
            self._error(str(exc))
            return False
        except EntryStoreError as exc:
            # Signed in, but the list could not be opened.
            self._error(str(exc))
            return True
        finally:
            self.auth_loading = False
        self.message = UserMessage("success", "Success")
        return True

    def dismiss_sign_in(self, reason: str) -> None:
        """The identity dialog closed without a token."""

        if self.route.screen is not Screen.AUTHENTICATION:
            return
        self.auth_loading = False
        self._error(reason)

    # Home ---------------------------------------------------------------
    async def open_new_entry(self) -> Optional[EntryEditorViewModel]:
        if self.signing_out or not self.navigation.open_new_entry():
            return None
        return await self._load_editor(None)

    async def open_entry(self, entry_id: str) -> Optional[EntryEditorViewModel]:
        if self.signing_out or not self.navigation.open_entry(entry_id):
            return None
        return await self._load_editor(entry_id)

    def request_sign_out(self) -> bool:
        if self.route.screen is not Screen.HOME or self.signing_out:
            return False
        self.sign_out_dialog_open = True
        return True

    def dismiss_sign_out(self) -> None:
        self.sign_out_dialog_open = False

    async def confirm_sign_out(self) -> bool:
        """Sign out; Home actions are ignored until the provider answers."""

        if self.route.screen is not Screen.HOME or self.signing_out:
            return False
        self.sign_out_dialog_open = False
        self.signing_out = True
        try:
            await self.gate.sign_out()
        except AuthError as exc:
            self._error(str(exc))
            return False
        finally:
            self.signing_out = False
        return True

    # Write --------------------------------------------------------------
    def update_draft(
        self,
        *,
        title: Optional[str] = None,
        description: Optional[str] = None,
        timestamp: Optional[datetime] = None,
        stage: "CannaStage | str | None" = None,
    ) -> EntryEditorViewModel:
        editor = self._require_editor("update_draft")
        if title is not None:
            editor.set_title(title)
        if description is not None:
            editor.set_description(description)
        if timestamp is not None:
            editor.set_timestamp(timestamp)
        if stage is not None:
            editor.set_stage(stage)
        return editor

    def turn_stage_page(self, step: int) -> CannaStage:
        """Move the stage pager ``step`` pages, wrapping at either end."""

        editor = self._require_editor("turn_stage_page")
        stage = CannaStage.from_page(editor.draft.stage.page_index + step)
        editor.set_stage(stage)
        return stage

    async def save(self) -> Optional[Entry]:
        editor = self._require_editor("save")
        try:
            stored = await editor.save()
        except (EntryStoreError, AuthError) as exc:
            self._error(str(exc))
            return None
        if stored is not None:
            self.navigation.on_saved()
        return stored

    def request_delete(self) -> None:
        editor = self._require_editor("request_delete")
        if not editor.is_existing_entry:
            raise IllegalActionError("request_delete", self.route)
        self.delete_dialog_open = True

    def dismiss_delete(self) -> None:
        self.delete_dialog_open = False

    async def confirm_delete(self) -> bool:
        editor = self._require_editor("confirm_delete")
        self.delete_dialog_open = False
        try:
            deleted = await editor.delete()
        except (EntryStoreError, ValueError) as exc:
            self._error(str(exc))
            return False
        if deleted:
            self.message = UserMessage("success", "Deleted")
            self.navigation.on_deleted()
        return deleted

    def navigate_back(self) -> bool:
        return self.navigation.navigate_back()

    # Messages -----------------------------------------------------------
    def dismiss_message(self) -> None:
        self.message = None

    def close(self) -> None:
        self.entry_list.close()
        self.editor = None

    async def _load_editor(
        self, entry_id: Optional[str]
    ) -> Optional[EntryEditorViewModel]:
        editor = EntryEditorViewModel(self.entry_gateway, self.session_provider)
        self.editor = editor
        task = asyncio.ensure_future(editor.load(entry_id))
        self.navigation.attach_task(task)
        try:
            await task
        except asyncio.CancelledError:
            # Only swallow cancellation caused by leaving the screen.
            if self.editor is editor:
                raise
            logger.info("write_load_cancelled", extra={"entry_id": entry_id})
        except EntryStoreError as exc:
            self._error(str(exc))
            if self.editor is editor:
                self.navigation.navigate_back()
            return None
        return editor

    def _on_route_changed(self, previous: Route, current: Route) -> None:
        if previous.screen is Screen.WRITE and current.screen is not Screen.WRITE:
            self.editor = None
            self.delete_dialog_open = False
        if current.screen is Screen.HOME and self.identity is not None:
            try:
                self.gate.enter_home()
            except EntryStoreError as exc:
                self._error(str(exc))
        if current.screen is Screen.AUTHENTICATION:
            self.sign_out_dialog_open = False

    def _require_editor(self, action: str) -> EntryEditorViewModel:
        if self.route.screen is not Screen.WRITE or self.editor is None:
            raise IllegalActionError(action, self.route)
        return self.editor

    def _error(self, text: str) -> None:
        logger.info("user_message_error", extra={"text": text})
        self.message = UserMessage("error", text)
