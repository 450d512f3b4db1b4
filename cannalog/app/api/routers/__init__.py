"""Router exports for FastAPI composition."""

from . import app_state, health, home, session, write

__all__ = ["app_state", "health", "home", "session", "write"]
