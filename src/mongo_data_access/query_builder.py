"""Mongo query builder from filter triples."""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any

from pymongo import ASCENDING, DESCENDING

from .exceptions import MongoQueryError
from .filters import FilterLike, FilterOperator, FilterTriple, OrderBy, RowsRange
from .operators import compile_comparison, compile_set, compile_string

_COMPILERS = [
    compile_comparison,
    compile_set,
    compile_string,
]


def is_blank(value: Any) -> bool:
    """Return True for values whose triple is skipped by the compiler.

    Blank means ``None``, ``False``, numeric zero, NaN and the empty string.
    Empty collections are not blank.
    """
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)):
        return value == 0 or (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value == ""
    return False


def _compile_leaf(triple: FilterTriple) -> dict[str, Any]:
    """Compile a single triple to a MongoDB query fragment ``{field: ...}``."""
    if not triple.field:
        raise MongoQueryError(f"Filter missing 'field': {triple!r}")
    op = FilterOperator.parse(triple.operator)
    for compiler in _COMPILERS:
        result = compiler(triple.field, op, triple.value)
        if result is not None:
            return result
    raise MongoQueryError(f"No compiler for operator {op.value!r}")  # pragma: no cover


def compile_filter(filter_params: Iterable[FilterLike] | None) -> dict[str, Any]:
    """Compile filter triples into one implicit-AND MongoDB filter.

    Triples are applied in order. Triples with a blank value are skipped, so
    a filter for the literal ``0`` cannot be expressed here. When two triples
    target the same field the later one replaces the earlier constraint.
    An empty or ``None`` input yields ``{}`` (match everything).
    """
    match: dict[str, Any] = {}
    if not filter_params:
        return match
    for item in filter_params:
        triple = FilterTriple.coerce(item)
        if is_blank(triple.value):
            continue
        match.update(_compile_leaf(triple))
    return match


def equality_filters(params: dict[str, Any] | None) -> list[FilterTriple]:
    """One EQUAL triple per ``field: value`` entry."""
    if not params:
        return []
    return [FilterTriple(k, FilterOperator.EQUAL, v) for k, v in params.items()]


def membership_filters(params: dict[str, Any] | None) -> list[FilterTriple]:
    """One IN_SET triple per ``field: [values]`` entry."""
    if not params:
        return []
    return [FilterTriple(k, FilterOperator.IN_SET, v) for k, v in params.items()]


class MongoQueryBuilder:
    """Compiles filter triples, ordering and pagination to MongoDB arguments."""

    def build_match(self, filter_params: Iterable[FilterLike] | None) -> dict[str, Any]:
        """Build the find filter / ``$match`` document."""
        return compile_filter(filter_params)

    def build_sort(self, order_by: OrderBy | None) -> list[tuple[str, int]]:
        """Build MongoDB sort tuples. At most one key is active."""
        if order_by is None:
            return []
        return [(order_by.field, DESCENDING if order_by.descending else ASCENDING)]

    def build_find_options(
        self,
        order_by: OrderBy | None = None,
        rows_range: RowsRange | None = None,
    ) -> dict[str, Any]:
        """Keyword arguments for ``collection.find``.

        ``skip``/``limit`` of 0 mean "none" to the driver.
        """
        options: dict[str, Any] = {}
        sort = self.build_sort(order_by)
        if sort:
            options["sort"] = sort
        if rows_range is not None:
            if rows_range.offset:
                options["skip"] = rows_range.offset
            if rows_range.limit:
                options["limit"] = rows_range.limit
        return options

    def build_group_pipeline(
        self,
        count_field: str,
        filter_params: Iterable[FilterLike] | None = None,
    ) -> list[dict[str, Any]]:
        """``$match`` then ``$group``: one row per distinct ``count_field`` value."""
        if not count_field:
            raise MongoQueryError("group-count requires a count field")
        return [
            {"$match": self.build_match(filter_params)},
            {"$group": {"_id": f"${count_field}", "count": {"$sum": 1}}},
        ]
