"""Unit tests for MongoDataAccess inserts and upserts."""

from __future__ import annotations

import logging

import pytest
from bson import ObjectId
from pydantic import BaseModel
from pymongo.errors import OperationFailure

from mongo_data_access import MongoDataAccess


class Product(BaseModel):
    sku: int
    name: str


class TestAddItem:
    @pytest.mark.asyncio
    async def test_auto_generated_identifier(self, data_access, raw_collection):
        item = {"id": 1, "name": "a"}
        result = await data_access.add_item(item)

        assert result is item
        stored = await raw_collection.find_one({"id": 1})
        assert isinstance(stored["_id"], ObjectId)

    @pytest.mark.asyncio
    async def test_caller_item_is_not_mutated(self, data_access):
        item = {"id": 1}
        await data_access.add_item(item)
        assert item == {"id": 1}

    @pytest.mark.asyncio
    async def test_explicit_identifier(self, data_access, raw_collection):
        await data_access.add_item({"id": 7, "name": "a"}, {"id": "order-7"})
        assert (await raw_collection.find_one({"_id": "order-7"}))["name"] == "a"

    @pytest.mark.asyncio
    async def test_pydantic_item(self, data_access, raw_collection):
        product = Product(sku=12, name="bolt")
        assert await data_access.add_item(product) is product
        assert (await raw_collection.find_one({"sku": 12}))["name"] == "bolt"

    @pytest.mark.asyncio
    async def test_duplicate_identifier_is_swallowed(self, data_access, raw_collection, caplog):
        await data_access.add_item({"name": "first"}, {"id": "dup"})
        with caplog.at_level(logging.ERROR, logger="mongo_data_access.data_access"):
            result = await data_access.add_item({"name": "second"}, {"id": "dup"})

        assert result == {"name": "second"}
        assert (await raw_collection.find_one({"_id": "dup"}))["name"] == "first"
        assert "add_item failed" in caplog.text

    @pytest.mark.asyncio
    async def test_rejected_insert_still_returns_item(self, failing_data_access, failing_collection):
        item = {"id": 1, "name": "a"}
        result = await failing_data_access.add_item(item)

        assert result is item
        assert item == {"id": 1, "name": "a"}
        failing_collection.insert_one.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_strict_policy_propagates(self, strict_failing_data_access):
        with pytest.raises(OperationFailure, match="write rejected"):
            await strict_failing_data_access.add_item({"id": 1})
        with pytest.raises(OperationFailure):
            await strict_failing_data_access.bulk_add_items([{"id": 1}], "id")


class TestAddOrUpdateItem:
    @pytest.mark.asyncio
    async def test_inserts_then_updates(self, data_access, raw_collection):
        await data_access.add_or_update_item({"name": "a", "qty": 1}, {"id": "k1"})
        await data_access.add_or_update_item({"qty": 5}, {"id": "k1"})

        stored = await raw_collection.find_one({"_id": "k1"})
        assert stored["name"] == "a"
        assert stored["qty"] == 5
        assert await raw_collection.count_documents({}) == 1

    @pytest.mark.asyncio
    async def test_without_identifier_always_inserts(self, data_access, raw_collection):
        await data_access.add_or_update_item({"name": "a"})
        await data_access.add_or_update_item({"name": "a"})
        assert await raw_collection.count_documents({"name": "a"}) == 2

    @pytest.mark.asyncio
    async def test_rejected_upsert_is_swallowed(self, failing_data_access):
        item = {"name": "a"}
        assert await failing_data_access.add_or_update_item(item, {"id": "k"}) is item


class TestBulkAddItems:
    @pytest.mark.asyncio
    async def test_identifier_from_field(self, data_access, raw_collection):
        items = [{"sku": 100, "name": "a"}, {"sku": 200, "name": "b"}]
        await data_access.bulk_add_items(items, "sku")

        assert (await raw_collection.find_one({"_id": "100"}))["name"] == "a"
        assert await data_access.get_by_id({"sku": 200}) == {"sku": 200, "name": "b"}

    @pytest.mark.asyncio
    async def test_stringified_identifier_is_retrievable(self, data_access, raw_collection):
        await data_access.bulk_add_items([{"id": "A-1"}, {"id": "A-2"}], "id")
        assert await data_access.get_by_id({"id": "A-2"}) == {"id": "A-2"}
        assert await raw_collection.find_one({"_id": "A-2"}) is not None

    @pytest.mark.asyncio
    async def test_pydantic_items(self, data_access, raw_collection):
        await data_access.bulk_add_items([Product(sku=1, name="x")], "sku")
        assert (await raw_collection.find_one({"_id": "1"}))["name"] == "x"

    @pytest.mark.asyncio
    async def test_auto_generated_identifiers(self, data_access, raw_collection):
        await data_access.bulk_add_items([{"n": 1}, {"n": 2}])
        assert await raw_collection.count_documents({}) == 2

    @pytest.mark.asyncio
    async def test_empty_batch_is_a_no_op(self, failing_data_access, failing_collection):
        await failing_data_access.bulk_add_items([])
        failing_collection.insert_many.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_id_field_is_swallowed(self, data_access, raw_collection):
        await data_access.bulk_add_items([{"name": "no sku"}], "sku")
        assert await raw_collection.count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_rejected_batch_is_swallowed(self, failing_data_access):
        assert await failing_data_access.bulk_add_items([{"n": 1}]) is None

    @pytest.mark.asyncio
    async def test_swallowed_write_is_logged_once(
        self, failing_data_access, failing_collection, caplog
    ):
        with caplog.at_level(logging.ERROR, logger="mongo_data_access.data_access"):
            result = await failing_data_access._write(
                "bulk_add_items", failing_collection.insert_many([{"n": 1}])
            )
        assert result is None
        assert caplog.text.count("bulk_add_items failed; write ignored") == 1


class TestAccessorConstruction:
    def test_binds_initial_collection(self, mongo_connection):
        access = MongoDataAccess(mongo_connection, "items")
        assert access.collection_name == "items"
        assert access.database_name == "test-db"
