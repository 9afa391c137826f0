"""MongoDataAccess[T] — generic collection accessor over filter triples."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Iterable, Mapping, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from bson import ObjectId

from .connection import MongoConnectionManager
from .filters import FilterLike, OrderBy, RowsRange
from .query_builder import MongoQueryBuilder, equality_filters, membership_filters
from .serialization import ID_FIELD, from_document, to_document

if TYPE_CHECKING:
    from pydantic import BaseModel

    from .settings import MongoSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

NEXT_ID_FIELD = "id"


class WritePolicy(str, Enum):
    """How insert, upsert and bulk-insert react to store errors.

    ``BEST_EFFORT`` logs the failure and returns as if the write succeeded.
    ``STRICT`` re-raises the driver error. Updates and deletes always raise.
    """

    BEST_EFFORT = "best_effort"
    STRICT = "strict"


class MongoDataAccess(Generic[T]):
    """CRUD, filtering, pagination and group-count over one collection.

    Every read goes through the filter compiler and every returned document
    through :func:`from_document`, which drops ``_id``. Operations are
    independent requests on the shared Motor client; nothing here serializes
    them. Callers needing read-your-write ordering must
    await one call before issuing the next, and must not call
    :meth:`switch_collection` while other operations are in flight.
    """

    def __init__(
        self,
        connection: MongoConnectionManager,
        collection: str,
        *,
        model_cls: type[BaseModel] | None = None,
        write_policy: WritePolicy = WritePolicy.BEST_EFFORT,
        query_builder: MongoQueryBuilder | None = None,
    ) -> None:
        self._connection = connection
        self._model_cls = model_cls
        self._write_policy = write_policy
        self._query_builder = query_builder or MongoQueryBuilder()
        self._collection_name = collection
        self._collection = connection.collection(collection)

    @classmethod
    async def create(
        cls,
        settings: MongoSettings,
        collection: str,
        *,
        model_cls: type[BaseModel] | None = None,
        write_policy: WritePolicy = WritePolicy.BEST_EFFORT,
    ) -> MongoDataAccess[Any]:
        """Connect with ``settings`` and bind ``collection``.

        Raises:
            MongoConfigurationError: neither an emulator nor a managed host is set.
        """
        logger.info(
            "MongoDataAccess - connection: %s",
            settings.connection_url(mask_password=True),
        )
        connection = MongoConnectionManager(settings)
        await connection.connect()
        access: MongoDataAccess[Any] = cls(
            connection, collection, model_cls=model_cls, write_policy=write_policy
        )
        logger.info(
            "MongoDataAccess - client connected to dbname: %s, collection: %s",
            connection.database_name,
            collection,
        )
        return access

    @property
    def collection_name(self) -> str:
        return self._collection_name

    @property
    def database_name(self) -> str:
        return self._connection.database_name

    def switch_collection(self, collection: str) -> None:
        """Point this accessor at another collection of the same database."""
        logger.info("MongoDataAccess switch_collection %s", collection)
        self._collection = self._connection.collection(collection)
        self._collection_name = collection

    def close(self) -> None:
        self._connection.close()

    # ── Reads ────────────────────────────────────────────────────────

    async def is_empty(self) -> bool:
        """True when the collection's estimated document count is zero."""
        return await self._collection.estimated_document_count() == 0

    async def get_all(
        self,
        filter_params: Iterable[FilterLike] | None = None,
        order_by: OrderBy | None = None,
        rows_range: RowsRange | None = None,
    ) -> list[T]:
        """All documents matching ``filter_params``, sorted and paginated."""
        logger.info("MongoDataAccess get_all")
        docs = await self._get_filtered(filter_params, order_by, rows_range)
        return [self._to_item(doc) for doc in docs]

    async def get_by_id(self, id_params: Mapping[str, Any]) -> T | None:
        """First document whose fields equal ``id_params``, or ``None``."""
        logger.debug("MongoDataAccess get_by_id")
        docs = await self._get_filtered(
            equality_filters(dict(id_params)), rows_range=RowsRange(limit=1)
        )
        return self._to_item(docs[0]) if docs else None

    async def get_by_ids(
        self,
        ids_param: Mapping[str, Sequence[Any]],
        secondary_id_params: Mapping[str, Any] | None = None,
    ) -> list[T]:
        """Documents whose primary id is in ``ids_param`` and secondaries match.

        Args:
            ids_param: Main id field mapped to the accepted values.
            secondary_id_params: Secondary id fields mapped to single values.
        """
        logger.info("MongoDataAccess get_by_ids")
        docs = await self._get_filtered(self._ids_filters(ids_param, secondary_id_params))
        return [self._to_item(doc) for doc in docs]

    async def get_next_id(self, filter_params: Iterable[FilterLike] | None = None) -> int:
        """Highest numeric ``id`` among matches plus one, or 0 when none match."""
        docs = await self._get_filtered(
            filter_params,
            OrderBy(NEXT_ID_FIELD, descending=True),
            RowsRange(limit=1),
        )
        if not docs or docs[0].get(NEXT_ID_FIELD) is None:
            return 0
        return int(docs[0][NEXT_ID_FIELD]) + 1

    async def group_by_field_filtered(
        self,
        count_field: str,
        filter_params: Iterable[FilterLike] | None = None,
        order_by: OrderBy | None = None,
        rows_range: RowsRange | None = None,
    ) -> dict[Any, int]:
        """Map each distinct ``count_field`` value among matches to its count.

        ``order_by`` and ``rows_range`` are accepted for signature parity with
        the other reads; counts always cover every matching document.
        """
        logger.info("MongoDataAccess group_by_field_filtered")
        del order_by, rows_range
        pipeline = self._query_builder.build_group_pipeline(count_field, filter_params)
        counters: dict[Any, int] = {}
        async for row in self._collection.aggregate(pipeline):
            counters[row[ID_FIELD]] = row["count"]
        return counters

    # ── Writes (best-effort by default) ──────────────────────────────

    async def add_item(self, item: T, id_params: Mapping[str, Any] | None = None) -> T:
        """Insert ``item``; the first ``id_params`` value becomes its ``_id``.

        Without ``id_params`` the store generates the identifier. Returns
        ``item`` whether or not the insert succeeded under ``BEST_EFFORT``.
        """
        logger.info("MongoDataAccess add_item")
        doc = to_document(item)
        if id_params:
            doc[ID_FIELD] = next(iter(id_params.values()))
        await self._write("add_item", self._collection.insert_one(doc))
        return item

    async def add_or_update_item(
        self, item: T, id_params: Mapping[str, Any] | None = None
    ) -> T:
        """Upsert ``item`` by the first ``id_params`` value (or a fresh ObjectId)."""
        logger.info("MongoDataAccess add_or_update_item")
        doc = to_document(item)
        doc.pop(ID_FIELD, None)
        doc_id = next(iter(id_params.values())) if id_params else ObjectId()
        await self._write(
            "add_or_update_item",
            self._collection.update_one({ID_FIELD: doc_id}, {"$set": doc}, upsert=True),
        )
        return item

    async def bulk_add_items(self, items: Iterable[T], id_field: str | None = None) -> None:
        """Insert ``items`` in one batch.

        With ``id_field`` each document's ``_id`` is ``str(doc[id_field])``.
        """
        logger.info("MongoDataAccess bulk_add_items")
        docs = [to_document(item) for item in items]
        if not docs:
            return
        await self._write("bulk_add_items", self._insert_many(docs, id_field))

    async def _insert_many(self, docs: list[dict[str, Any]], id_field: str | None) -> None:
        if id_field:
            for doc in docs:
                doc[ID_FIELD] = str(doc[id_field])
        await self._collection.insert_many(docs)

    async def _write(self, action: str, operation: Awaitable[Any]) -> None:
        """Await a write under the configured :class:`WritePolicy`."""
        try:
            await operation
        except Exception:  # noqa: BLE001
            if self._write_policy is WritePolicy.STRICT:
                raise
            logger.exception("MongoDataAccess %s failed; write ignored", action)

    # ── Updates ──────────────────────────────────────────────────────

    async def update_item(self, partial_item: Any, id_params: Mapping[str, Any]) -> Any:
        """``$set`` ``partial_item`` on the one document equal to ``id_params``.

        The filter is a raw equality match, so blank id values still match.
        """
        logger.info("MongoDataAccess update_item")
        await self._collection.update_one(
            dict(id_params), {"$set": self._partial(partial_item)}
        )
        return partial_item

    async def update_by_ids(
        self,
        partial_item: Any,
        ids_params: Mapping[str, Sequence[Any]],
        secondary_id_params: Mapping[str, Any] | None = None,
    ) -> None:
        """``$set`` ``partial_item`` on every document matched by id sets."""
        logger.info("MongoDataAccess update_by_ids")
        match = self._query_builder.build_match(
            self._ids_filters(ids_params, secondary_id_params)
        )
        await self._collection.update_many(match, {"$set": self._partial(partial_item)})

    async def update_all(
        self, filter_params: Iterable[FilterLike] | None, partial_item: Any
    ) -> None:
        """``$set`` ``partial_item`` on every document matching ``filter_params``."""
        logger.info("MongoDataAccess update_all")
        match = self._query_builder.build_match(filter_params)
        await self._collection.update_many(match, {"$set": self._partial(partial_item)})

    # ── Deletes ──────────────────────────────────────────────────────

    async def delete_by_ids(
        self,
        ids_param: Mapping[str, Sequence[Any]],
        secondary_id_params: Mapping[str, Any] | None = None,
    ) -> None:
        logger.info("MongoDataAccess delete_by_ids")
        match = self._query_builder.build_match(
            self._ids_filters(ids_param, secondary_id_params)
        )
        await self._collection.delete_many(match)

    async def delete_all(self, filter_params: Iterable[FilterLike] | None = None) -> None:
        logger.info("MongoDataAccess delete_all")
        await self._collection.delete_many(self._query_builder.build_match(filter_params))

    # ── Helpers ──────────────────────────────────────────────────────

    async def _get_filtered(
        self,
        filter_params: Iterable[FilterLike] | None,
        order_by: OrderBy | None = None,
        rows_range: RowsRange | None = None,
    ) -> list[dict[str, Any]]:
        match = self._query_builder.build_match(filter_params)
        options = self._query_builder.build_find_options(order_by, rows_range)
        return [doc async for doc in self._collection.find(match, **options)]

    def _ids_filters(
        self,
        ids_param: Mapping[str, Sequence[Any]],
        secondary_id_params: Mapping[str, Any] | None,
    ) -> list[FilterLike]:
        filters: list[FilterLike] = []
        filters.extend(membership_filters(dict(ids_param)))
        filters.extend(equality_filters(dict(secondary_id_params or {})))
        return filters

    def _partial(self, partial_item: Any) -> dict[str, Any]:
        doc = to_document(partial_item, exclude_unset=True)
        doc.pop(ID_FIELD, None)
        return doc

    def _to_item(self, doc: dict[str, Any]) -> Any:
        return from_document(doc, self._model_cls)
