"""Data-access exceptions."""

from __future__ import annotations


class DataAccessError(Exception):
    """Root exception for the mongo-data-access package."""


class MongoPersistenceError(DataAccessError):
    """Base for MongoDB persistence errors."""


class MongoConfigurationError(MongoPersistenceError):
    """Raised when the connection configuration is incomplete."""


class MongoConnectionError(MongoPersistenceError):
    """Raised when connection to MongoDB fails."""


class MongoQueryError(MongoPersistenceError):
    """Raised when a filter cannot be compiled."""
