"""Response models describing what each screen renders."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..domain.entrystore.models import CannaStage, Entry
from ..domain.navigation.controller import Screen
from ..domain.navigation.graph import CannaLogNavGraph

__all__ = [
    "AppStateResponse",
    "EntryItem",
    "build_app_state",
]


class EntryItem(BaseModel):
    entry_id: str
    title: str
    description: str
    stage: CannaStage
    timestamp: datetime
    images: List[str] = Field(default_factory=list)


class EntryDayGroup(BaseModel):
    day: date
    entries: List[EntryItem]


class AuthState(BaseModel):
    loading: bool
    authenticated: bool


class HomeState(BaseModel):
    entries: List[EntryItem] = Field(default_factory=list)
    days: List[EntryDayGroup] = Field(default_factory=list)
    sign_out_dialog_open: bool = False
    signing_out: bool = False


class WriteState(BaseModel):
    entry_id: Optional[str] = None
    title: str
    description: str
    stage: CannaStage
    stage_page: int
    timestamp: datetime
    images: List[str] = Field(default_factory=list)
    is_existing_entry: bool
    is_loading: bool
    delete_dialog_open: bool = False


class MessageState(BaseModel):
    level: str
    text: str


class AppStateResponse(BaseModel):
    screen: str
    route: str
    identity_id: Optional[str] = None
    auth: Optional[AuthState] = None
    home: Optional[HomeState] = None
    write: Optional[WriteState] = None
    message: Optional[MessageState] = None


def _entry_item(entry: Entry) -> EntryItem:
    return EntryItem(
        entry_id=entry.entry_id or "",
        title=entry.title,
        description=entry.description,
        stage=entry.stage,
        timestamp=entry.timestamp,
        images=list(entry.images),
    )


def build_app_state(graph: CannaLogNavGraph) -> AppStateResponse:
    """Snapshot the graph for the screen that is currently shown."""

    route = graph.route
    identity = graph.identity
    response = AppStateResponse(
        screen=route.screen.value,
        route=route.path,
        identity_id=identity.identity_id if identity else None,
    )
    if graph.message is not None:
        response.message = MessageState(
            level=graph.message.level, text=graph.message.text
        )

    if route.screen is Screen.AUTHENTICATION:
        response.auth = AuthState(
            loading=graph.auth_loading, authenticated=identity is not None
        )
    elif route.screen is Screen.HOME:
        entry_list = graph.entry_list
        response.home = HomeState(
            entries=[_entry_item(entry) for entry in entry_list.entries],
            days=[
                EntryDayGroup(day=day, entries=[_entry_item(e) for e in entries])
                for day, entries in entry_list.entries_by_day().items()
            ],
            sign_out_dialog_open=graph.sign_out_dialog_open,
            signing_out=graph.signing_out,
        )
    elif graph.editor is not None:
        state = graph.editor.ui_state
        response.write = WriteState(
            entry_id=state.entry_id,
            title=state.title,
            description=state.description,
            stage=state.stage,
            stage_page=state.stage.page_index,
            timestamp=state.timestamp,
            images=list(state.images),
            is_existing_entry=state.is_existing_entry,
            is_loading=state.is_loading,
            delete_dialog_open=graph.delete_dialog_open,
        )
    return response
