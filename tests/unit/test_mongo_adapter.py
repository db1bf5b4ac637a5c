import datetime
from unittest.mock import MagicMock

import pytest
from bson import Decimal128, ObjectId
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from querygate_adapter_sdk import AdapterConnectionError, AdapterQueryError, DocumentQuery, PageRequest
from querygate_mongodb import MongoAdapter, bson_cell


def test_bson_cell_conversions():
    oid = ObjectId("5f43a1b2c3d4e5f6a7b8c9d0")

    assert bson_cell(oid) == "5f43a1b2c3d4e5f6a7b8c9d0"
    assert bson_cell(datetime.datetime(2024, 3, 1, 8, 30)) == "2024-03-01T08:30:00"
    assert bson_cell(Decimal128("2.50")) == 2.5
    assert bson_cell({"city": "Oslo"}) == '{"city": "Oslo"}'
    assert bson_cell(7) == 7


class TestMongoAdapter:

    def setup_method(self):
        self.adapter = MongoAdapter(datasource_id="docs")
        self.db = MagicMock()
        self.adapter.db = self.db
        self.collection = self.db.__getitem__.return_value

    def test_find_normalizes_documents(self):
        cursor = self.collection.find.return_value
        cursor.limit.return_value = [
            {"_id": ObjectId("5f43a1b2c3d4e5f6a7b8c9d0"), "name": "ann"},
            {"_id": ObjectId("5f43a1b2c3d4e5f6a7b8c9d1"), "age": 31},
        ]

        result = self.adapter.execute(DocumentQuery(collection="users", filter={"age": {"$gt": 18}}))

        self.collection.find.assert_called_once_with({"age": {"$gt": 18}}, None)
        cursor.limit.assert_called_once_with(200)
        assert result.columns == ["_id", "age", "name"]
        assert result.rows[0] == ["5f43a1b2c3d4e5f6a7b8c9d0", None, "ann"]
        assert result.row_count == 2
        assert result.total_rows is None

    def test_find_pages_within_limit(self):
        cursor = self.collection.find.return_value
        cursor.skip.return_value.limit.return_value = [{"a": 1}]
        self.collection.count_documents.return_value = 150

        result = self.adapter.execute(
            DocumentQuery(collection="users", limit=150), PageRequest(page=2, page_size=100)
        )

        cursor.skip.assert_called_once_with(100)
        cursor.skip.return_value.limit.assert_called_once_with(50)
        assert result.total_rows == 150
        assert result.has_more is True

    def test_page_past_limit_is_empty(self):
        self.collection.count_documents.return_value = 100

        result = self.adapter.execute(
            DocumentQuery(collection="users", limit=100), PageRequest(page=3, page_size=50)
        )
        assert result.rows == []
        assert result.has_more is False
        self.collection.find.assert_not_called()

    def test_aggregate_appends_paging_stages(self):
        self.collection.aggregate.side_effect = [[{"total": 5}], [{"count": 1}]]
        pipeline = [{"$group": {"_id": None, "total": {"$sum": 1}}}, {"$limit": 200}]

        result = self.adapter.execute(
            DocumentQuery(collection="orders", method="aggregate", pipeline=pipeline),
            PageRequest(page=1, page_size=10),
        )

        first_call = self.collection.aggregate.call_args_list[0].args[0]
        assert first_call[-2:] == [{"$skip": 0}, {"$limit": 10}]
        assert result.rows == [[5]]
        assert result.total_rows == 1

    def test_server_errors_are_query_errors(self):
        self.collection.find.side_effect = OperationFailure("unknown operator: $foo")
        with pytest.raises(AdapterQueryError):
            self.adapter.execute(DocumentQuery(collection="users"))

    def test_unreachable_server_is_connection_error(self):
        self.collection.find.side_effect = ServerSelectionTimeoutError("no servers")
        with pytest.raises(AdapterConnectionError):
            self.adapter.execute(DocumentQuery(collection="users"))

    def test_explain_returns_single_node(self):
        self.db.command.return_value = {"executionStats": {"nReturned": 4}, "queryPlanner": {}}

        response = self.adapter.explain(DocumentQuery(collection="users", filter={"a": 1}))

        command = self.db.command.call_args.args[0]
        assert command["explain"] == {"find": "users", "filter": {"a": 1}}
        assert command["verbosity"] == "executionStats"
        assert len(response.plan) == 1
        assert response.plan[0].operation == "EXPLAIN"
        assert response.plan[0].rows == 4
        assert '"nReturned": 4' in response.plan[0].detail

    def test_schema_and_indexes(self):
        self.db.list_collection_names.return_value = ["orders", "accounts"]
        self.collection.index_information.return_value = {
            "_id_": {"key": [("_id", 1)]},
            "email_1": {"key": [("email", 1)], "unique": True},
            "age_-1": {"key": [("age", -1)]},
        }

        assert self.adapter.fetch_schema() == ["accounts", "orders"]
        indexes = {i.name: i for i in self.adapter.get_indexes("users")}
        assert indexes["_id_"].is_unique
        assert indexes["email_1"].columns == ["email"]
        assert not indexes["age_-1"].is_unique
