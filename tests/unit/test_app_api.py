"""FastAPI tests for the screen endpoints."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from cannalog.app.api.dependencies import get_nav_graph
from cannalog.app.api.errors import register_exception_handlers
from cannalog.app.api.routers import app_state, health, home, session, write
from cannalog.app.config import Settings, load_settings
from cannalog.app.domain.entrystore.gateway import InMemoryEntryStoreGateway
from cannalog.app.domain.navigation.graph import CannaLogNavGraph
from cannalog.app.domain.session.provider import InMemorySessionProvider

pytestmark = [pytest.mark.api]


@pytest.fixture()
def gateway() -> InMemoryEntryStoreGateway:
    return InMemoryEntryStoreGateway()


@pytest.fixture()
def client(gateway):
    graph = CannaLogNavGraph(gateway, InMemorySessionProvider())
    app = FastAPI()
    register_exception_handlers(app)
    for module in (health, app_state, session, home, write):
        app.include_router(module.router)
    app.dependency_overrides[get_nav_graph] = lambda: graph
    app.dependency_overrides[load_settings] = lambda: Settings(environment="test")
    with TestClient(app) as test_client:
        yield test_client
    graph.close()


def _sign_in(client: TestClient) -> dict:
    response = client.post("/api/session/sign-in", json={"identity_token": "grower-1"})
    assert response.status_code == 200
    return response.json()


def test_healthcheck_reports_backends(client):
    response = client.get("/api/healthz")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "environment": "test",
        "entryStore": "InMemoryEntryStoreGateway",
        "sessionProvider": "InMemorySessionProvider",
    }


def test_initial_state_is_authentication(client):
    body = client.post("/api/app/start").json()

    assert body["screen"] == "authentication"
    assert body["auth"] == {"loading": False, "authenticated": False}
    assert body["home"] is None and body["write"] is None


def test_create_entry_through_the_api(client, gateway):
    body = _sign_in(client)
    assert body["screen"] == "home"
    assert body["identity_id"] == "grower-1"
    assert body["message"] == {"level": "success", "text": "Success"}
    assert client.delete("/api/app/message").json()["message"] is None

    body = client.post("/api/home/entries/new").json()
    assert body["screen"] == "write"
    assert body["write"]["stage"] == "SEED"
    assert body["write"]["is_existing_entry"] is False

    body = client.patch(
        "/api/write/draft",
        json={"title": "Day 1", "description": "topped", "stage": "vegetative"},
    ).json()
    assert body["write"]["title"] == "Day 1"
    assert body["write"]["stage"] == "VEGETATIVE"
    assert body["write"]["stage_page"] == 1

    body = client.post("/api/write/stage/next").json()
    assert body["write"]["stage"] == "FLOWERING"

    body = client.post("/api/write/save").json()
    assert body["screen"] == "home"
    assert [item["title"] for item in body["home"]["entries"]] == ["Day 1"]
    assert len(body["home"]["days"]) == 1
    assert gateway.list_entries("grower-1")[0].title == "Day 1"


def test_open_and_delete_entry(client, gateway):
    _sign_in(client)
    client.post("/api/home/entries/new")
    client.patch("/api/write/draft", json={"title": "doomed"})
    entry_id = client.post("/api/write/save").json()["home"]["entries"][0]["entry_id"]

    body = client.post(f"/api/home/entries/{entry_id}/open").json()
    assert body["route"] == f"write?entry_id={entry_id}"
    assert body["write"]["is_existing_entry"] is True

    assert client.post("/api/write/delete/request").json()["write"][
        "delete_dialog_open"
    ]
    body = client.post("/api/write/delete/confirm").json()

    assert body["screen"] == "home"
    assert body["home"]["entries"] == []
    assert body["message"]["text"] == "Deleted"
    assert gateway.list_entries("grower-1") == []


def test_write_action_off_screen_is_conflict(client):
    _sign_in(client)

    response = client.post("/api/write/save")

    assert response.status_code == 409
    assert response.json()["detail"] == {
        "code": "action_not_available",
        "message": "save is not available on home",
        "screen": "home",
    }


def test_navigation_off_screen_is_ignored(client):
    body = client.post("/api/home/entries/new").json()

    assert body["screen"] == "authentication"


def test_sign_out_flow(client, gateway):
    _sign_in(client)

    assert client.post("/api/session/sign-out/request").json()["home"][
        "sign_out_dialog_open"
    ]
    body = client.post("/api/session/sign-out/confirm").json()

    assert body["screen"] == "authentication"
    assert body["identity_id"] is None
    assert gateway.active_subscriptions() == 0


def test_dismissed_sign_in_surfaces_message(client):
    body = client.post(
        "/api/session/sign-in/dismiss", json={"reason": "Sign-in cancelled"}
    ).json()

    assert body["message"] == {"level": "error", "text": "Sign-in cancelled"}


@pytest.mark.parametrize(
    "payload",
    [{}, {"stage": "sprouting"}, {"title": "x" * 513}],
    ids=["empty", "unknown-stage", "title-too-long"],
)
def test_invalid_draft_patch_is_rejected(client, payload):
    _sign_in(client)
    client.post("/api/home/entries/new")

    response = client.patch("/api/write/draft", json=payload)

    assert response.status_code == 422


def test_blank_identity_token_is_rejected(client):
    response = client.post("/api/session/sign-in", json={"identity_token": ""})

    assert response.status_code == 422
