"""Session provider contracts and the sign-in/sign-out gate."""

from .gate import SessionGate
from .provider import (
    AuthError,
    Identity,
    InMemorySessionProvider,
    JwtSessionProvider,
    SessionProvider,
    build_session_provider,
)

__all__ = [
    "AuthError",
    "Identity",
    "InMemorySessionProvider",
    "JwtSessionProvider",
    "SessionGate",
    "SessionProvider",
    "build_session_provider",
]
