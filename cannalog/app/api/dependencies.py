"""Shared API dependencies."""

from __future__ import annotations

from functools import lru_cache

from ..config import load_settings
from ..domain.entrystore.gateway import EntryStoreGateway, build_entry_store_gateway
from ..domain.navigation.graph import CannaLogNavGraph
from ..domain.session.provider import SessionProvider, build_session_provider

__all__ = [
    "get_entry_gateway",
    "get_nav_graph",
    "get_session_provider",
]


@lru_cache()
def _entry_gateway_singleton() -> EntryStoreGateway:
    settings = load_settings()
    store_cfg = settings.entry_store
    return build_entry_store_gateway(
        prefer_postgres=store_cfg.backend == "postgres",
        fallback_to_memory=store_cfg.fallback_to_memory,
    )


def get_entry_gateway() -> EntryStoreGateway:
    """Return the process-wide EntryStore gateway instance."""

    return _entry_gateway_singleton()


@lru_cache()
def _session_provider_singleton() -> SessionProvider:
    return build_session_provider(load_settings())


def get_session_provider() -> SessionProvider:
    """Return the process-wide session provider."""

    return _session_provider_singleton()


@lru_cache()
def _nav_graph_singleton() -> CannaLogNavGraph:
    return CannaLogNavGraph(get_entry_gateway(), get_session_provider())


def get_nav_graph() -> CannaLogNavGraph:
    """Return the single navigation graph this client process drives."""

    return _nav_graph_singleton()
