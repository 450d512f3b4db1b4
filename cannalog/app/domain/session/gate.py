"""Ties session transitions to navigation and the home subscription."""

from __future__ import annotations

import asyncio
from typing import Optional

from ..home.view_model import EntryListViewModel
from ..navigation.controller import NavigationController, Screen
from ...infra.logging import get_logger
from .provider import AuthError, Identity, SessionProvider

__all__ = ["SessionGate"]

logger = get_logger(__name__)


class SessionGate:
    """Sign-in opens Home for the identity; sign-out closes it again."""

    def __init__(
        self,
        session_provider: SessionProvider,
        entry_list: EntryListViewModel,
        navigation: NavigationController,
    ) -> None:
        self._session = session_provider
        self._entry_list = entry_list
        self._navigation = navigation

    @property
    def identity(self) -> Optional[Identity]:
        return self._session.current_identity()

    async def sign_in(self, identity_token: str) -> Identity:
        """Authenticate and move to Home; ``AuthError`` leaves state alone."""

        identity = await asyncio.to_thread(self._session.sign_in, identity_token)
        self._open_home(identity)
        return identity

    async def restore_session(self) -> Optional[Identity]:
        """Skip Authentication when the provider still holds an identity."""

        identity = await asyncio.to_thread(self._session.current_identity)
        if identity is None:
            return None
        logger.info("session_gate_restored", extra={"identity_id": identity.identity_id})
        self._open_home(identity)
        return identity

    def enter_home(self) -> None:
        """(Re)bind the home list to the signed-in identity."""

        identity = self._session.current_identity()
        if identity is None:
            raise AuthError("no authenticated identity")
        self._entry_list.bind(identity.identity_id)

    async def sign_out(self) -> None:
        """Sign out, then return to Authentication with no live subscription."""

        previous = self._session.current_identity()
        await asyncio.to_thread(self._session.sign_out)
        if not self._navigation.on_signed_out():
            # The session is gone; no route may outlive it.
            self._navigation.reset()
        self._entry_list.unbind()
        logger.info(
            "session_gate_signed_out",
            extra={"identity_id": previous.identity_id if previous else None},
        )

    def _open_home(self, identity: Identity) -> None:
        if self._navigation.current.screen is Screen.AUTHENTICATION:
            self._navigation.on_authenticated()
        if self._navigation.current.screen is Screen.HOME:
            self._entry_list.bind(identity.identity_id)
