"""Home screen actions."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path

from ..dependencies import get_nav_graph
from ..schemas import AppStateResponse, build_app_state
from ...domain.navigation.graph import CannaLogNavGraph

router = APIRouter(prefix="/api/home", tags=["home"])
EntryId = Annotated[str, Path(..., min_length=1, max_length=64)]


@router.post("/entries/new", response_model=AppStateResponse, summary="New entry")
async def open_new_entry(
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    await graph.open_new_entry()
    return build_app_state(graph)


@router.post(
    "/entries/{entry_id}/open",
    response_model=AppStateResponse,
    summary="Open an existing entry",
)
async def open_entry(
    entry_id: EntryId,
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    await graph.open_entry(entry_id)
    return build_app_state(graph)
