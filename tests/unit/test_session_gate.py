"""Tests for the session gate between Authentication and Home."""

from __future__ import annotations

import pytest

from cannalog.app.domain.entrystore.gateway import InMemoryEntryStoreGateway
from cannalog.app.domain.entrystore.models import Entry
from cannalog.app.domain.home.view_model import EntryListViewModel
from cannalog.app.domain.navigation import NavigationController, Route, Screen
from cannalog.app.domain.session import (
    AuthError,
    Identity,
    InMemorySessionProvider,
    SessionGate,
)

pytestmark = [pytest.mark.session, pytest.mark.asyncio]


def _gate(provider=None):
    gateway = InMemoryEntryStoreGateway()
    gateway.upsert_entry(Entry.new(owner_id="grower-1", title="Day 1"))
    provider = provider or InMemorySessionProvider()
    entry_list = EntryListViewModel(gateway)
    navigation = NavigationController()
    return SessionGate(provider, entry_list, navigation), gateway, entry_list, navigation


async def test_sign_in_opens_home_and_binds_list():
    gate, gateway, entry_list, navigation = _gate()

    identity = await gate.sign_in("grower-1")

    assert identity.identity_id == "grower-1"
    assert navigation.current.screen is Screen.HOME
    assert [entry.title for entry in entry_list.entries] == ["Day 1"]
    assert gateway.active_subscriptions("grower-1") == 1


async def test_failed_sign_in_stays_on_authentication():
    provider = InMemorySessionProvider({"good": Identity(identity_id="grower-1")})
    gate, gateway, entry_list, navigation = _gate(provider)

    with pytest.raises(AuthError):
        await gate.sign_in("bad")

    assert navigation.current.screen is Screen.AUTHENTICATION
    assert not entry_list.is_subscribed
    assert gateway.active_subscriptions() == 0


async def test_restore_session_skips_authentication():
    provider = InMemorySessionProvider(identity=Identity(identity_id="grower-1"))
    gate, _, entry_list, navigation = _gate(provider)

    identity = await gate.restore_session()

    assert identity == Identity(identity_id="grower-1")
    assert navigation.current.screen is Screen.HOME
    assert entry_list.owner_id == "grower-1"


async def test_restore_without_session_does_nothing():
    gate, _, entry_list, navigation = _gate()

    assert await gate.restore_session() is None
    assert navigation.current.screen is Screen.AUTHENTICATION
    assert not entry_list.is_subscribed


async def test_sign_out_returns_to_authentication_without_subscriptions():
    gate, gateway, entry_list, navigation = _gate()
    await gate.sign_in("grower-1")

    await gate.sign_out()

    assert navigation.history[-1].screen is Screen.AUTHENTICATION
    assert len(navigation.history) == 1
    assert gate.identity is None
    assert entry_list.entries == ()
    assert gateway.active_subscriptions() == 0


async def test_enter_home_requires_identity():
    gate, _, _, _ = _gate()

    with pytest.raises(AuthError):
        gate.enter_home()


async def test_sign_out_from_write_still_lands_on_authentication():
    gate, gateway, entry_list, navigation = _gate()
    await gate.sign_in("grower-1")
    navigation.open_new_entry()

    await gate.sign_out()

    assert navigation.history == (Route(Screen.AUTHENTICATION),)
    assert not entry_list.is_subscribed
    assert gateway.active_subscriptions() == 0
