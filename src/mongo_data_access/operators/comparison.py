"""Equality, range and between operators -> bare value, $lt/$lte/$gt/$gte."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time
from typing import Any

from ..exceptions import MongoQueryError
from ..filters import FilterOperator

_MONGO_OP_MAP: dict[FilterOperator, str] = {
    FilterOperator.LESS: "$lt",
    FilterOperator.LESS_OR_EQUAL: "$lte",
    FilterOperator.GREATER: "$gt",
    FilterOperator.GREATER_OR_EQUAL: "$gte",
}

_PRIMITIVES = (str, bytes, int, float, bool)


def coerce_date(val: Any) -> Any:
    """Turn object-typed comparison operands into a BSON datetime.

    Primitive numbers and strings pass through, so the same operator serves
    numeric and date ranges.
    """
    if val is None or isinstance(val, _PRIMITIVES):
        return val
    if isinstance(val, datetime):
        return val
    if isinstance(val, date):
        return datetime.combine(val, time.min)
    isoformat = getattr(val, "isoformat", None)
    if callable(isoformat):
        try:
            return datetime.fromisoformat(str(isoformat()))
        except ValueError as e:
            raise MongoQueryError(f"Cannot coerce {val!r} to a date") from e
    raise MongoQueryError(f"Cannot coerce {type(val).__name__} operand to a date")


def compile_comparison(field: str, op: FilterOperator, val: Any) -> dict[str, Any] | None:
    """Compile equality and range operators. Returns None for other operators."""
    if op == FilterOperator.EQUAL:
        return {field: val}
    mongo_op = _MONGO_OP_MAP.get(op)
    if mongo_op:
        return {field: {mongo_op: coerce_date(val)}}
    if op == FilterOperator.BETWEEN:
        lo, hi = _validate_range_operand(val)
        # Open interval: both endpoints excluded.
        return {field: {"$gt": coerce_date(lo), "$lt": coerce_date(hi)}}
    return None


def _validate_range_operand(val: Any) -> tuple[Any, Any]:
    if isinstance(val, Mapping):
        if "from" not in val or "to" not in val:
            raise MongoQueryError("between requires 'from' and 'to' bounds")
        return val["from"], val["to"]
    if isinstance(val, (list, tuple)) and len(val) == 2:
        return val[0], val[1]
    raise MongoQueryError("between requires a {'from', 'to'} mapping or two values")
