"""Substring match -> case-insensitive $regex."""

from __future__ import annotations

from typing import Any

from ..filters import FilterOperator


def compile_string(field: str, op: FilterOperator, val: Any) -> dict[str, Any] | None:
    """Compile CONTAINS_TEXT. Returns None if not a string op.

    The value is embedded in the pattern as-is, so regex metacharacters in
    ``val`` keep their regex meaning.
    """
    if op != FilterOperator.CONTAINS_TEXT:
        return None
    return {field: {"$regex": f".*{val}.*", "$options": "i"}}
