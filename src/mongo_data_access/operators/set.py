"""Array membership -> $in."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ..filters import FilterOperator


def compile_set(field: str, op: FilterOperator, val: Any) -> dict[str, Any] | None:
    """Compile IN_SET. Returns None if not a set op."""
    if op != FilterOperator.IN_SET:
        return None
    if isinstance(val, (str, bytes)) or not isinstance(val, Iterable):
        return {field: {"$in": [val]}}
    return {field: {"$in": list(val)}}
