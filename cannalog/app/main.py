"""FastAPI entrypoint for the canna log client."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.errors import register_exception_handlers
from .api.routers import app_state, health, home, session, write
from .config import load_settings
from .infra.logging import configure_logging


def create_app() -> FastAPI:
    """Instantiate the FastAPI app and register routers."""

    settings = load_settings()
    configure_logging(settings)
    application = FastAPI(title="Canna Log", version="0.1.0")
    allowed_origins = {
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    }
    application.add_middleware(
        CORSMiddleware,
        allow_origins=list(allowed_origins),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(application)
    for router in (
        health.router,
        app_state.router,
        session.router,
        home.router,
        write.router,
    ):
        application.include_router(router)
    return application


app = create_app()
