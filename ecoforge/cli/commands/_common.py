"""Shared wiring for CLI commands."""

from __future__ import annotations

from ecoforge.config import ProdConfig
from ecoforge.core.history_store import HistoryStore
from ecoforge.storage.history_backends import build_history_backend


def load_settings() -> ProdConfig:
    """Read settings fresh so env overrides apply per invocation."""
    return ProdConfig()


def open_history(settings: ProdConfig) -> HistoryStore:
    return HistoryStore(
        build_history_backend(settings.history_backend, settings.history_path),
        capacity=settings.history_capacity,
    )
