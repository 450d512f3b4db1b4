"""Session providers backing sign-in and sign-out."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence

import jwt

from ...config import Settings
from ...infra.logging import get_logger

__all__ = [
    "AuthError",
    "Identity",
    "InMemorySessionProvider",
    "JwtSessionProvider",
    "SessionProvider",
    "build_session_provider",
]

logger = get_logger(__name__)


class AuthError(RuntimeError):
    """Raised when sign-in or sign-out cannot be completed."""


@dataclass(frozen=True)
class Identity:
    """Authenticated user handle returned by a session provider."""

    identity_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None


class SessionProvider(Protocol):  # pragma: no cover
    """Collaborator that owns the authenticated identity."""

    def sign_in(self, identity_token: str) -> Identity: ...

    def sign_out(self) -> None: ...

    def current_identity(self) -> Optional[Identity]: ...


class InMemorySessionProvider(SessionProvider):
    """Process-local provider for development and tests.

    With ``tokens`` configured only those tokens sign in; otherwise any
    non-blank token is accepted and used as the identity id.
    """

    def __init__(
        self,
        tokens: Optional[Mapping[str, Identity]] = None,
        *,
        identity: Optional[Identity] = None,
    ) -> None:
        self._tokens = dict(tokens) if tokens is not None else None
        self._identity = identity
        self._lock = threading.Lock()

    def sign_in(self, identity_token: str) -> Identity:
        token = (identity_token or "").strip()
        if not token:
            raise AuthError("identity token must not be empty")
        if self._tokens is None:
            identity = Identity(identity_id=token)
        else:
            identity = self._tokens.get(token)
            if identity is None:
                logger.warning("session_sign_in_rejected")
                raise AuthError("identity token was rejected")
        with self._lock:
            self._identity = identity
        logger.info("session_signed_in", extra={"identity_id": identity.identity_id})
        return identity

    def sign_out(self) -> None:
        with self._lock:
            identity, self._identity = self._identity, None
        if identity is not None:
            logger.info(
                "session_signed_out", extra={"identity_id": identity.identity_id}
            )

    def current_identity(self) -> Optional[Identity]:
        with self._lock:
            return self._identity


class JwtSessionProvider(SessionProvider):
    """Verifies identity tokens with PyJWT and persists the session.

    The verified token is written to ``store_path`` so that a later
    process restores the same identity until the token expires.
    """

    def __init__(
        self,
        *,
        secret: str,
        algorithms: Sequence[str] = ("HS256",),
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
        store_path: Optional[str | Path] = None,
    ) -> None:
        if not secret:
            raise ValueError("a verification secret is required for JWT sessions")
        self._secret = secret
        self._algorithms = list(algorithms)
        self._audience = audience
        self._issuer = issuer
        self._store_path = Path(store_path).expanduser() if store_path else None
        self._identity: Optional[Identity] = None
        self._restored = False
        self._lock = threading.Lock()

    def sign_in(self, identity_token: str) -> Identity:
        identity = self._verify(identity_token)
        with self._lock:
            self._identity = identity
            self._restored = True
            self._persist(identity_token)
        logger.info("session_signed_in", extra={"identity_id": identity.identity_id})
        return identity

    def sign_out(self) -> None:
        with self._lock:
            if self._store_path is not None:
                try:
                    self._store_path.unlink(missing_ok=True)
                except OSError as exc:
                    raise AuthError(f"failed to clear stored session: {exc}") from exc
            identity, self._identity = self._identity, None
            self._restored = True
        logger.info(
            "session_signed_out",
            extra={"identity_id": identity.identity_id if identity else None},
        )

    def current_identity(self) -> Optional[Identity]:
        with self._lock:
            if not self._restored:
                self._restored = True
                self._identity = self._restore()
            return self._identity

    def _verify(self, identity_token: str) -> Identity:
        token = (identity_token or "").strip()
        if not token:
            raise AuthError("identity token must not be empty")
        options: Dict[str, Any] = {"require": ["sub", "exp"]}
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=self._algorithms,
                audience=self._audience,
                issuer=self._issuer,
                options=options,
            )
        except jwt.ExpiredSignatureError as exc:
            logger.warning("session_token_expired")
            raise AuthError("identity token has expired") from exc
        except jwt.InvalidTokenError as exc:
            logger.warning("session_token_invalid", extra={"error": str(exc)})
            raise AuthError(f"identity token is invalid: {exc}") from exc
        return Identity(
            identity_id=str(claims["sub"]),
            email=claims.get("email"),
            display_name=claims.get("name"),
        )

    def _persist(self, identity_token: str) -> None:
        if self._store_path is None:
            return
        try:
            self._store_path.parent.mkdir(parents=True, exist_ok=True)
            self._store_path.write_text(
                json.dumps({"identity_token": identity_token}), encoding="utf-8"
            )
        except OSError as exc:
            raise AuthError(f"failed to persist session: {exc}") from exc

    def _restore(self) -> Optional[Identity]:
        if self._store_path is None or not self._store_path.exists():
            return None
        try:
            payload = json.loads(self._store_path.read_text(encoding="utf-8"))
            identity = self._verify(str(payload.get("identity_token") or ""))
        except (OSError, ValueError, AttributeError, AuthError):
            logger.info("session_restore_discarded", exc_info=True)
            self._store_path.unlink(missing_ok=True)
            return None
        logger.info("session_restored", extra={"identity_id": identity.identity_id})
        return identity


def build_session_provider(settings: Settings) -> SessionProvider:
    """Factory that returns the configured session provider."""

    session_cfg = settings.session
    if session_cfg.provider == "jwt":
        return JwtSessionProvider(
            secret=session_cfg.jwt_secret or "",
            algorithms=session_cfg.jwt_algorithms,
            audience=session_cfg.audience,
            issuer=session_cfg.issuer,
            store_path=session_cfg.store_path,
        )
    return InMemorySessionProvider()
