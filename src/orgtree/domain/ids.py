"""Node identifier generation and validation.

Node ids are random UUID4 strings in canonical lower-case hyphenated form.

INVARIANT: IDs are permanent. Once generated, an ID never changes.
"""

from __future__ import annotations

import uuid


def generate_node_id() -> str:
    """Return a fresh canonical UUID4 string."""
    return str(uuid.uuid4())


def normalize_node_id(raw: str) -> str:
    """Parse *raw* as a UUID and return its canonical string form.

    Raises:
        ValueError: If *raw* is not a UUID.
    """
    return str(uuid.UUID(str(raw).strip()))

