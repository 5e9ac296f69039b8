"""Identifier generation utilities for Folioscribe."""

import uuid
from datetime import datetime, timezone


def generate_block_id() -> str:
    """
    Generate a new block identifier.

    Returns:
        Identifier of the form "block_<hex>"

    Example:
        >>> generate_block_id()
        "block_3f2a9c0d1e4b4f5a"
    """
    return f"block_{uuid.uuid4().hex[:16]}"


def generate_entry_id(kind: str) -> str:
    """
    Generate a durable identifier for a structured list entry.

    Args:
        kind: Entry kind ("project", "experience", ...)

    Returns:
        Identifier of the form "<kind>_<hex>"
    """
    return f"{kind}_{uuid.uuid4().hex[:12]}"


def generate_doc_id() -> str:
    """Generate a new document identifier."""
    return f"doc_{uuid.uuid4().hex}"


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)
