"""Text ID generation (ULID format)."""

from ulid import ULID


def generate_id() -> str:
    """Generate a sortable 26-character text ID."""
    return str(ULID())
