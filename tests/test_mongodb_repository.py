# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the MongoDB repository with a mocked client.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from bson.decimal128 import Decimal128
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, OperationFailure, ServerSelectionTimeoutError

from relief_api.domain.errors import PersistenceError, UniqueConstraintError
from relief_api.services.mongodb import DecimalCodec, MongoRepository, _to_mongo_query


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def collection(client):
    collection = MagicMock()
    client.get_database.return_value.__getitem__.return_value = collection
    return collection


@pytest.fixture
def mongo(client, collection):
    return MongoRepository("mongodb://test:27017", "relief_test", client=client)


class TestHelpers:
    """Test query translation and the decimal codec."""

    def test_id_maps_to_underscore_id(self):
        assert _to_mongo_query({"id": "abc", "status": "active"}) == {"_id": "abc", "status": "active"}
        assert _to_mongo_query(None) == {}

    def test_decimal_codec(self):
        codec = DecimalCodec()

        stored = codec.transform_python(Decimal("50.00"))

        assert isinstance(stored, Decimal128)
        assert codec.transform_bson(stored) == Decimal("50.00")


class TestMongoRepository:
    """Test document access through pymongo."""

    def test_get_maps_id(self, mongo, collection):
        collection.find_one.return_value = {"_id": "r1", "status": "pending"}

        document = mongo.get("victim_requests", "r1")

        assert document == {"id": "r1", "status": "pending"}
        assert collection.find_one.call_args[0][0] == {"_id": "r1"}

    def test_get_missing(self, mongo, collection):
        collection.find_one.return_value = None

        assert mongo.get("victim_requests", "r1") is None

    def test_insert_uses_string_id(self, mongo, collection):
        document = mongo.insert("resources", {"id": "res-1", "name": "Tents", "quantity": 4})

        inserted = collection.insert_one.call_args[0][0]
        assert inserted["_id"] == "res-1"
        assert "id" not in inserted
        assert "created_at" in inserted
        assert document["id"] == "res-1"

    def test_insert_duplicate_key(self, mongo, collection):
        collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        with pytest.raises(UniqueConstraintError):
            mongo.insert("volunteers", {"user_id": "u1"})

    def test_driver_error_becomes_persistence_error(self, mongo, collection):
        collection.count_documents.side_effect = OperationFailure("not primary")

        with pytest.raises(PersistenceError) as exc_info:
            mongo.count("volunteers")

        assert not isinstance(exc_info.value, UniqueConstraintError)

    def test_guarded_update_with_increment(self, mongo, collection):
        collection.find_one_and_update.return_value = {"_id": "res-1", "quantity": 5}

        document = mongo.update("resources", "res-1", guard={"quantity": {"$gte": 5}},
                                increments={"quantity": -5})

        query, operations = collection.find_one_and_update.call_args[0]
        assert query == {"quantity": {"$gte": 5}, "_id": "res-1"}
        assert operations["$inc"] == {"quantity": -5}
        assert "updated_at" in operations["$set"]
        assert collection.find_one_and_update.call_args[1]["return_document"] == ReturnDocument.AFTER
        assert document["id"] == "res-1"

    def test_guarded_update_no_match(self, mongo, collection):
        collection.find_one_and_update.return_value = None

        assert mongo.update("resources", "res-1", {"name": "x"}, guard={"status": "active"}) is None

    def test_list_applies_sort(self, mongo, collection):
        cursor = MagicMock()
        cursor.sort.return_value = [{"_id": "a"}, {"_id": "b"}]
        collection.find.return_value = cursor

        documents = mongo.list("resources", {"category": "Shelter"}, [("name", 1)])

        cursor.sort.assert_called_once_with([("name", 1)])
        assert [d["id"] for d in documents] == ["a", "b"]

    def test_transaction_passes_session(self, mongo, client, collection):
        session = client.start_session.return_value.__enter__.return_value
        collection.find_one.return_value = {"_id": "r1"}

        result = mongo.with_transaction(lambda repo: repo.get("victim_requests", "r1"))

        assert result == {"id": "r1"}
        session.start_transaction.assert_called_once()
        assert collection.find_one.call_args[1]["session"] is session
        assert mongo._session() is None

    def test_transaction_driver_error(self, mongo, client):
        client.start_session.side_effect = OperationFailure("Transaction numbers are only allowed on a replica set")

        with pytest.raises(PersistenceError):
            mongo.with_transaction(lambda repo: None)

    def test_other_errors_pass_through_transaction(self, mongo):
        with pytest.raises(KeyError):
            mongo.with_transaction(lambda repo: {}["missing"])

    def test_create_indexes(self, mongo, collection):
        mongo.create_indexes()

        unique_calls = [c for c in collection.create_index.call_args_list if c[1].get("unique")]
        assert [("call_id", 1), ("volunteer_id", 1)] in [c[0][0] for c in unique_calls]
        assert [("user_id", 1)] in [c[0][0] for c in unique_calls]

    def test_health_check_unhealthy(self, mongo, client):
        client.admin.command.side_effect = ServerSelectionTimeoutError("no servers")

        health = mongo.health_check()

        assert health["status"] == "unhealthy"
        assert health["database"] == "relief_test"
