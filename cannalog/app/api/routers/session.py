"""Sign-in and sign-out endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..dependencies import get_nav_graph
from ..schemas import AppStateResponse, build_app_state
from ...domain.navigation.graph import CannaLogNavGraph

router = APIRouter(prefix="/api/session", tags=["session"])


class SignInRequest(BaseModel):
    identity_token: str = Field(..., min_length=1, description="Provider ID token.")


class SignInDismissRequest(BaseModel):
    reason: str = Field(default="Sign-in dialog dismissed.")


@router.post("/sign-in", response_model=AppStateResponse, summary="Sign in")
async def sign_in(
    payload: SignInRequest,
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    await graph.sign_in(payload.identity_token)
    return build_app_state(graph)


@router.post(
    "/sign-in/dismiss",
    response_model=AppStateResponse,
    summary="Report a dismissed sign-in dialog",
)
async def dismiss_sign_in(
    payload: SignInDismissRequest,
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    graph.dismiss_sign_in(payload.reason)
    return build_app_state(graph)


@router.post(
    "/sign-out/request",
    response_model=AppStateResponse,
    summary="Open the sign-out confirmation",
)
async def request_sign_out(
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    graph.request_sign_out()
    return build_app_state(graph)


@router.post(
    "/sign-out/dismiss",
    response_model=AppStateResponse,
    summary="Close the sign-out confirmation",
)
async def dismiss_sign_out(
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    graph.dismiss_sign_out()
    return build_app_state(graph)


@router.post(
    "/sign-out/confirm",
    response_model=AppStateResponse,
    summary="Sign out and return to authentication",
)
async def confirm_sign_out(
    graph: CannaLogNavGraph = Depends(get_nav_graph),
) -> AppStateResponse:
    await graph.confirm_sign_out()
    return build_app_state(graph)
