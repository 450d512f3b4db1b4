"""Write screen actions: draft edits, save, delete and back."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator, model_validator

from ..dependencies import get_nav_graph
from ..schemas import AppStateResponse, build_app_state
from ...domain.entrystore.models import CannaStage
from ...domain.navigation.graph import CannaLogNavGraph

router = APIRouter(prefix="/api/write", tags=["write"])


class DraftPatchRequest(BaseModel):
    title: Optional[str] = Field(default=None, max_length=512)
    description: Optional[str] = None
    timestamp: Optional[datetime] = None
    stage: Optional[CannaStage] = None

    @field_validator("stage", mode="before")
    @classmethod
    def _parse_stage(cls, value: object) -> object:
        if value is None or isinstance(value, CannaStage):
            return value
        return CannaStage.parse(str(value))

    @model_validator(mode="after")
    def _ensure_field(self) -> "DraftPatchRequest":
        if (
            self.title is None
            and self.description is None
            and self.timestamp is None
            and self.stage is None
        ):
            raise ValueError("draft patch requires at least one field")
        return self


@router.patch("/draft", response_model=AppStateResponse, summary="Edit the draft")
async def patch_draft(
    payload: DraftPatchRequest,
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    graph.update_draft(
        title=payload.title,
        description=payload.description,
        timestamp=payload.timestamp,
        stage=payload.stage,
    )
    return build_app_state(graph)


@router.post("/stage/next", response_model=AppStateResponse, summary="Next stage page")
async def next_stage(
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    graph.turn_stage_page(1)
    return build_app_state(graph)


@router.post(
    "/stage/previous", response_model=AppStateResponse, summary="Previous stage page"
)
async def previous_stage(
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    graph.turn_stage_page(-1)
    return build_app_state(graph)


@router.post("/save", response_model=AppStateResponse, summary="Save the draft")
async def save_draft(
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    await graph.save()
    return build_app_state(graph)


@router.post(
    "/delete/request",
    response_model=AppStateResponse,
    summary="Open the delete confirmation",
)
async def request_delete(
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    graph.request_delete()
    return build_app_state(graph)


@router.post(
    "/delete/dismiss",
    response_model=AppStateResponse,
    summary="Close the delete confirmation",
)
async def dismiss_delete(
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    graph.dismiss_delete()
    return build_app_state(graph)


@router.post(
    "/delete/confirm", response_model=AppStateResponse, summary="Delete the entry"
)
async def confirm_delete(
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    await graph.confirm_delete()
    return build_app_state(graph)


@router.post("/back", response_model=AppStateResponse, summary="Leave without saving")
async def navigate_back(
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    graph.navigate_back()
    return build_app_state(graph)
