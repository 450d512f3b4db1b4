"""Current-screen snapshot and message bar endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..dependencies import get_nav_graph
from ..schemas import AppStateResponse, build_app_state
from ...domain.navigation.graph import CannaLogNavGraph

router = APIRouter(prefix="/api/app", tags=["app"])


@router.get("/state", response_model=AppStateResponse, summary="Current screen state")
async def get_app_state(
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    return build_app_state(graph)


@router.post(
    "/start",
    response_model=AppStateResponse,
    summary="Restore a persisted session before the first render",
)
async def start_app(
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    await graph.start()
    return build_app_state(graph)


@router.delete("/message", response_model=AppStateResponse, summary="Dismiss message")
async def dismiss_message(
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    graph.dismiss_message()
    return build_app_state(graph)
