"""Generic MongoDB data access over a small filter vocabulary.

Filter triples ``(field, operator, value)`` compile to native MongoDB filters;
:class:`MongoDataAccess` exposes CRUD, pagination, sorting and group-count on
top of them.
"""

from __future__ import annotations

from .connection import MongoConnectionManager
from .data_access import MongoDataAccess, WritePolicy
from .exceptions import (
    DataAccessError,
    MongoConfigurationError,
    MongoConnectionError,
    MongoPersistenceError,
    MongoQueryError,
)
from .filters import FilterOperator, FilterTriple, OrderBy, RowsRange
from .query_builder import MongoQueryBuilder, compile_filter, is_blank
from .serialization import from_document, strip_identifier, to_document
from .settings import MongoSettings

__all__ = [
    # Core
    "MongoConnectionManager",
    "MongoDataAccess",
    "MongoSettings",
    "WritePolicy",
    # Filters
    "FilterOperator",
    "FilterTriple",
    "OrderBy",
    "RowsRange",
    "MongoQueryBuilder",
    "compile_filter",
    "is_blank",
    # Utilities
    "from_document",
    "strip_identifier",
    "to_document",
    # Exceptions
    "DataAccessError",
    "MongoPersistenceError",
    "MongoConfigurationError",
    "MongoConnectionError",
    "MongoQueryError",
]
