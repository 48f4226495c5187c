"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, orgtree.toml only contains overrides.
An empty (or absent) orgtree.toml gives a working SQLite-backed directory.
"""

from __future__ import annotations

from pydantic import BaseModel


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    # None means SQLite at {root}/.orgtree/orgtree.db
    url: str | None = None
    echo: bool = False
    busy_timeout_ms: int = 5000


class EventsConfig(BaseModel):
    """[events] section."""

    model_config = {"frozen": True}

    sync: bool = False
    max_workers: int = 2


class MetricsConfig(BaseModel):
    """[metrics] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    namespace: str = "orgtree"


class ApiConfig(BaseModel):
    """[api] section."""

    model_config = {"frozen": True}

    host: str = "127.0.0.1"
    port: int = 8000

