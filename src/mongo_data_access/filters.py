"""Filter vocabulary: operators, filter triples, ordering and pagination."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from .exceptions import MongoQueryError


class FilterOperator(str, Enum):
    """Closed set of operators understood by the filter compiler."""

    EQUAL = "="
    LESS = "<"
    GREATER = ">"
    LESS_OR_EQUAL = "<="
    GREATER_OR_EQUAL = ">="
    IN_SET = "in"
    CONTAINS_TEXT = "like"
    BETWEEN = "between"

    @classmethod
    def parse(cls, op: FilterOperator | str) -> FilterOperator:
        """Return the member for ``op`` (member or wire value)."""
        if isinstance(op, cls):
            return op
        try:
            return cls(op)
        except ValueError:
            raise MongoQueryError(f"Unknown filter operator: {op!r}") from None


@dataclass(frozen=True)
class FilterTriple:
    """One ``(field, operator, value)`` constraint.

    ``field`` is a dot-path into the document. The shape of ``value`` depends
    on the operator: a sequence for ``IN_SET``, a ``{"from", "to"}`` mapping
    (or a pair) for ``BETWEEN``, a scalar otherwise.
    """

    field: str
    operator: FilterOperator | str
    value: Any = None

    @classmethod
    def coerce(cls, item: FilterLike) -> FilterTriple:
        """Accept a triple, a 3-tuple or a ``field/operator/value`` mapping."""
        if isinstance(item, FilterTriple):
            return item
        if isinstance(item, Mapping):
            return cls(item.get("field", ""), item.get("operator", ""), item.get("value"))
        if isinstance(item, Sequence) and not isinstance(item, str) and len(item) == 3:
            return cls(item[0], item[1], item[2])
        raise MongoQueryError(f"Cannot interpret filter: {item!r}")


FilterLike = Union[FilterTriple, Mapping[str, Any], Sequence[Any]]


@dataclass(frozen=True)
class OrderBy:
    """Single sort key."""

    field: str
    descending: bool = False


@dataclass(frozen=True)
class RowsRange:
    """Pagination window. ``offset=None`` starts from the first row."""

    limit: int
    offset: int | None = None
