"""Identifier generation for budgets, categories and transactions."""

import uuid


def generate_id() -> str:
    """Return a new opaque identifier."""
    return uuid.uuid4().hex
