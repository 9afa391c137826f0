"""Item <-> BSON document conversion (datetime, date, UUID, Decimal)."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar, cast
from uuid import UUID

from bson import Decimal128
from pydantic import BaseModel

from .exceptions import MongoPersistenceError

TModel = TypeVar("TModel", bound=BaseModel)

ID_FIELD = "_id"


def _serialize_value(value: Any) -> Any:
    """Convert Python types to BSON-safe types."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return Decimal128(value)
    if isinstance(value, dict):
        return {k: _serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_serialize_value(v) for v in value]
    return value


def _deserialize_value(value: Any) -> Any:
    """Convert BSON types back to Python types."""
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, dict):
        return {k: _deserialize_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_deserialize_value(v) for v in value]
    return value


def to_document(item: Any, *, exclude_unset: bool = False) -> dict[str, Any]:
    """Convert a pydantic model, dataclass or mapping to a BSON-ready dict.

    ``exclude_unset`` keeps only explicitly set pydantic fields, which is what
    partial ``$set`` updates want.
    """
    if isinstance(item, BaseModel):
        try:
            data = item.model_dump(exclude_unset=exclude_unset)
        except Exception as e:
            raise MongoPersistenceError(str(e)) from e
    elif dataclasses.is_dataclass(item) and not isinstance(item, type):
        data = dataclasses.asdict(item)
    elif isinstance(item, Mapping):
        data = dict(item)
    else:
        raise MongoPersistenceError(
            f"Cannot convert {type(item).__name__} to a document"
        )
    return cast("dict[str, Any]", _serialize_value(data))


def strip_identifier(doc: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of ``doc`` without the store-internal ``_id``."""
    return {k: v for k, v in doc.items() if k != ID_FIELD}


def from_document(
    doc: Mapping[str, Any],
    model_cls: type[TModel] | None = None,
) -> TModel | dict[str, Any]:
    """Convert a BSON document to ``model_cls`` (or a plain dict).

    ``_id`` is always dropped.
    """
    if not isinstance(doc, Mapping):
        raise MongoPersistenceError("Document must be a mapping")
    data = cast("dict[str, Any]", _deserialize_value(strip_identifier(doc)))
    if model_cls is None:
        return data
    try:
        return model_cls.model_validate(data)
    except Exception as e:
        raise MongoPersistenceError(str(e)) from e
