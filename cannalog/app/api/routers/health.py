"""System health endpoints."""

from typing import Any

from fastapi import APIRouter, Depends

from ...config import Settings, load_settings
from ..dependencies import get_nav_graph
from ...domain.navigation.graph import CannaLogNavGraph

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/healthz")
def healthcheck(
    settings: Settings = Depends(load_settings),
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> dict[str, Any]:
    """Return coarse-grained readiness information."""

    return {
        "status": "ok",
        "environment": settings.environment,
        "entryStore": type(graph.entry_gateway).__name__,
        "sessionProvider": type(graph.session_provider).__name__,
    }
