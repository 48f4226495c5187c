"""Connection-bound stores for nodes and closure rows."""

from orgtree.infrastructure.repositories.closure import ClosureStore
from orgtree.infrastructure.repositories.nodes import NodeStore

__all__ = ["ClosureStore", "NodeStore"]
