"""End-to-end tests for the navigation graph driving all three screens."""

from __future__ import annotations

import asyncio

import pytest

from cannalog.app.domain.entrystore.gateway import InMemoryEntryStoreGateway
from cannalog.app.domain.entrystore.models import CannaStage, Entry
from cannalog.app.domain.navigation.controller import Route, Screen
from cannalog.app.domain.navigation.graph import (
    CannaLogNavGraph,
    IllegalActionError,
    UserMessage,
)
from cannalog.app.domain.session.provider import (
    Identity,
    InMemorySessionProvider,
)
from tests.helpers.stores import (
    BlockingEntryStoreGateway,
    BlockingSessionProvider,
    FailingSignOutProvider,
    FlakyEntryStoreGateway,
)

pytestmark = [pytest.mark.navigation, pytest.mark.asyncio]


async def _signed_in(gateway=None, provider=None) -> CannaLogNavGraph:
    graph = CannaLogNavGraph(
        gateway or InMemoryEntryStoreGateway(),
        provider or InMemorySessionProvider(),
    )
    assert await graph.sign_in("grower-1")
    graph.dismiss_message()
    return graph


async def test_start_without_session_stays_on_authentication():
    graph = CannaLogNavGraph(InMemoryEntryStoreGateway(), InMemorySessionProvider())

    assert await graph.start() == Route(Screen.AUTHENTICATION)
    assert graph.identity is None


async def test_start_with_persisted_session_opens_home():
    gateway = InMemoryEntryStoreGateway()
    gateway.upsert_entry(Entry.new(owner_id="grower-1", title="Day 1"))
    provider = InMemorySessionProvider(identity=Identity(identity_id="grower-1"))
    graph = CannaLogNavGraph(gateway, provider)

    assert await graph.start() == Route(Screen.HOME)
    assert [entry.title for entry in graph.entry_list.entries] == ["Day 1"]


async def test_grow_diary_from_seed_to_flowering_to_delete():
    gateway = InMemoryEntryStoreGateway()
    graph = CannaLogNavGraph(gateway, InMemorySessionProvider())

    assert await graph.sign_in("grower-1")
    assert graph.route.screen is Screen.HOME
    assert graph.message == UserMessage("success", "Success")
    graph.dismiss_message()

    editor = await graph.open_new_entry()
    assert graph.route == Route(Screen.WRITE)
    assert editor is graph.editor and not editor.is_existing_entry
    graph.update_draft(title="Day 1", description="seed in soil")
    stored = await graph.save()
    assert stored is not None and stored.stage is CannaStage.SEED
    assert graph.route.screen is Screen.HOME
    assert graph.editor is None
    assert [entry.title for entry in graph.entry_list.entries] == ["Day 1"]

    editor = await graph.open_entry(stored.entry_id)
    assert graph.route == Route(Screen.WRITE, entry_id=stored.entry_id)
    assert editor.is_existing_entry and editor.draft == stored
    assert graph.turn_stage_page(2) is CannaStage.FLOWERING
    await graph.save()
    assert [entry.stage for entry in graph.entry_list.entries] == [
        CannaStage.FLOWERING
    ]

    await graph.open_entry(stored.entry_id)
    graph.request_delete()
    assert graph.delete_dialog_open
    assert await graph.confirm_delete()
    assert graph.route.screen is Screen.HOME
    assert graph.message == UserMessage("success", "Deleted")
    assert graph.entry_list.entries == ()
    assert gateway.list_entries("grower-1") == []


async def test_stage_pager_wraps_backwards():
    graph = await _signed_in()
    await graph.open_new_entry()

    assert graph.turn_stage_page(-1) is CannaStage.CURING
    assert graph.turn_stage_page(1) is CannaStage.SEED


async def test_rejected_sign_in_shows_error():
    provider = InMemorySessionProvider({"good": Identity(identity_id="grower-1")})
    graph = CannaLogNavGraph(InMemoryEntryStoreGateway(), provider)

    assert not await graph.sign_in("bad")

    assert graph.route.screen is Screen.AUTHENTICATION
    assert graph.message.level == "error"
    assert not graph.auth_loading


async def test_dismissed_sign_in_reports_reason():
    graph = CannaLogNavGraph(InMemoryEntryStoreGateway(), InMemorySessionProvider())

    graph.dismiss_sign_in("Sign-in cancelled")

    assert graph.message == UserMessage("error", "Sign-in cancelled")
    assert graph.route.screen is Screen.AUTHENTICATION


async def test_sign_out_returns_to_authentication_with_no_subscriptions():
    gateway = InMemoryEntryStoreGateway()
    graph = await _signed_in(gateway)

    assert graph.request_sign_out()
    assert graph.sign_out_dialog_open
    assert await graph.confirm_sign_out()

    assert graph.navigation.history == (Route(Screen.AUTHENTICATION),)
    assert not graph.sign_out_dialog_open
    assert graph.identity is None
    assert gateway.active_subscriptions() == 0


async def test_dismissed_sign_out_stays_home():
    graph = await _signed_in()

    graph.request_sign_out()
    graph.dismiss_sign_out()

    assert graph.route.screen is Screen.HOME
    assert not graph.sign_out_dialog_open
    assert graph.entry_list.is_subscribed


async def test_failed_sign_out_keeps_home():
    graph = await _signed_in(provider=FailingSignOutProvider())

    assert not await graph.confirm_sign_out()

    assert graph.route.screen is Screen.HOME
    assert graph.message.level == "error"
    assert graph.entry_list.is_subscribed


async def test_store_failure_on_save_stays_on_write():
    gateway = FlakyEntryStoreGateway()
    graph = await _signed_in(gateway)
    await graph.open_new_entry()
    graph.update_draft(title="unsaved")
    gateway.available = False

    assert await graph.save() is None

    assert graph.route.screen is Screen.WRITE
    assert graph.message == UserMessage("error", "entry store unavailable")
    assert graph.editor.draft.title == "unsaved"


async def test_store_failure_on_delete_stays_on_write():
    gateway = FlakyEntryStoreGateway()
    graph = await _signed_in(gateway)
    await graph.open_new_entry()
    stored = await graph.save()
    await graph.open_entry(stored.entry_id)
    gateway.available = False

    graph.request_delete()
    assert not await graph.confirm_delete()

    assert graph.route.screen is Screen.WRITE
    assert not graph.delete_dialog_open
    assert graph.message.level == "error"
    assert gateway.get_entry(stored.entry_id) == stored


async def test_write_actions_are_rejected_off_the_write_screen():
    graph = await _signed_in()

    with pytest.raises(IllegalActionError):
        graph.update_draft(title="nope")
    with pytest.raises(IllegalActionError):
        await graph.save()
    with pytest.raises(IllegalActionError):
        graph.turn_stage_page(1)


async def test_delete_is_not_offered_for_new_drafts():
    graph = await _signed_in()
    await graph.open_new_entry()

    with pytest.raises(IllegalActionError):
        graph.request_delete()
    assert not graph.delete_dialog_open


async def test_navigation_actions_from_wrong_screen_are_ignored():
    graph = CannaLogNavGraph(InMemoryEntryStoreGateway(), InMemorySessionProvider())

    assert await graph.open_new_entry() is None
    assert await graph.open_entry("entry-1") is None
    assert not graph.request_sign_out()
    assert not graph.navigate_back()
    assert graph.route.screen is Screen.AUTHENTICATION

    await graph.sign_in("grower-1")
    assert not await graph.sign_in("grower-2")
    assert graph.identity == Identity(identity_id="grower-1")


async def test_back_discards_draft():
    gateway = InMemoryEntryStoreGateway()
    graph = await _signed_in(gateway)
    await graph.open_new_entry()
    graph.update_draft(title="never saved")

    assert graph.navigate_back()

    assert graph.route.screen is Screen.HOME
    assert graph.editor is None
    assert gateway.list_entries("grower-1") == []


async def test_leaving_write_cancels_pending_load():
    gateway = BlockingEntryStoreGateway()
    stored = gateway.upsert_entry(Entry.new(owner_id="grower-1", title="slow"))
    graph = await _signed_in(gateway)

    opening = asyncio.ensure_future(graph.open_entry(stored.entry_id))
    while graph.route.screen is not Screen.WRITE:
        await asyncio.sleep(0)
    pending_editor = graph.editor
    graph.navigate_back()
    gateway.release.set()

    assert await opening is pending_editor
    assert graph.route.screen is Screen.HOME
    assert graph.editor is None
    assert pending_editor.draft.entry_id is None


async def test_close_releases_subscription():
    gateway = InMemoryEntryStoreGateway()
    graph = await _signed_in(gateway)

    graph.close()

    assert gateway.active_subscriptions() == 0


async def test_home_actions_are_ignored_while_signing_out():
    gateway = InMemoryEntryStoreGateway()
    provider = BlockingSessionProvider()
    graph = await _signed_in(gateway, provider)
    provider.block_sign_out = True

    signing_out = asyncio.ensure_future(graph.confirm_sign_out())
    while not graph.signing_out:
        await asyncio.sleep(0)
    assert await graph.open_new_entry() is None
    assert await graph.open_entry("entry-1") is None
    assert not graph.request_sign_out()
    assert not await graph.confirm_sign_out()
    assert graph.route.screen is Screen.HOME
    provider.release.set()

    assert await signing_out
    assert not graph.signing_out
    assert graph.navigation.history == (Route(Screen.AUTHENTICATION),)
    assert graph.identity is None
    assert gateway.active_subscriptions() == 0


async def test_repeated_sign_in_taps_reach_provider_once():
    provider = BlockingSessionProvider()
    provider.block_sign_in = True
    graph = CannaLogNavGraph(InMemoryEntryStoreGateway(), provider)

    first = asyncio.ensure_future(graph.sign_in("grower-1"))
    while not graph.auth_loading:
        await asyncio.sleep(0)
    assert not await graph.sign_in("grower-1")
    provider.release.set()

    assert await first
    assert provider.sign_in_calls == 1
    assert graph.route.screen is Screen.HOME


async def test_store_failure_while_opening_entry_returns_home():
    gateway = FlakyEntryStoreGateway()
    graph = await _signed_in(gateway)
    stored = gateway.upsert_entry(Entry.new(owner_id="grower-1", title="Day 1"))
    gateway.readable = False

    assert await graph.open_entry(stored.entry_id) is None

    assert graph.route == Route(Screen.HOME)
    assert graph.editor is None
    assert graph.message == UserMessage("error", "entry store unreadable")
    assert graph.entry_list.is_subscribed


async def test_store_failure_on_sign_in_leaves_no_subscription():
    gateway = FlakyEntryStoreGateway()
    gateway.readable = False
    graph = CannaLogNavGraph(gateway, InMemorySessionProvider())

    assert await graph.sign_in("grower-1")

    assert graph.route.screen is Screen.HOME
    assert graph.message == UserMessage("error", "entry store unreadable")
    assert not graph.entry_list.is_subscribed
    assert graph.entry_list.owner_id is None
    assert gateway.active_subscriptions() == 0

    gateway.readable = True
    await graph.open_new_entry()
    graph.navigate_back()
    assert graph.entry_list.is_subscribed
    assert gateway.active_subscriptions("grower-1") == 1
