"""Exception handlers shared by the routers."""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..domain.navigation.graph import IllegalActionError
from ..infra.logging import get_logger

__all__ = ["register_exception_handlers"]

logger = get_logger(__name__)


async def _illegal_action_handler(
    request: Request, exc: IllegalActionError
) -> JSONResponse:
    logger.info(
        "api_illegal_action",
        extra={"action": exc.action, "route": exc.route.path, "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": {
                "code": "action_not_available",
                "message": str(exc),
                "screen": exc.route.screen.value,
            }
        },
    )


def register_exception_handlers(application: FastAPI) -> None:
    application.add_exception_handler(IllegalActionError, _illegal_action_handler)
