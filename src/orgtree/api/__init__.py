"""HTTP layer — FastAPI routes over the hierarchy and query services."""

from orgtree.api.app import create_app

__all__ = ["create_app"]
