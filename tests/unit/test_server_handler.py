"""
Unit tests for the server Lambda handler, run against an in-memory table.
"""

import importlib.util
import json
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

HANDLER_PATH = Path(__file__).resolve().parents[2] / "message_server_cdk" / "lambda_src" / "server" / "entrypoint.py"


class FakeTable:
    """Stands in for a boto3 DynamoDB Table resource."""

    def __init__(self, page_size=2):
        self.items = {}
        self.page_size = page_size
        self.fail = False

    def _check(self, operation):
        if self.fail:
            raise ClientError({"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow down"}}, operation)

    def put_item(self, Item):
        self._check("PutItem")
        self.items[Item["id"]] = dict(Item)

    def get_item(self, Key):
        self._check("GetItem")
        item = self.items.get(Key["id"])
        return {"Item": item} if item else {}

    def scan(self, Select, ExclusiveStartKey=None):
        self._check("Scan")
        keys = sorted(self.items)
        start = keys.index(ExclusiveStartKey["id"]) + 1 if ExclusiveStartKey else 0
        page = keys[start:start + self.page_size]
        result = {"Count": len(page)}
        if start + self.page_size < len(keys):
            result["LastEvaluatedKey"] = {"id": page[-1]}
        return result


@pytest.fixture
def table():
    return FakeTable()


@pytest.fixture
def server(table, monkeypatch):
    monkeypatch.setenv("MESSAGE_TABLE_NAME", "demo-MessageTable-dev")
    spec = importlib.util.spec_from_file_location("server_entrypoint", HANDLER_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    module._table = table
    return module


def _event(method, resource, body=None, message_id=None):
    return {
        "httpMethod": method,
        "resource": resource,
        "body": body,
        "pathParameters": {"message_id": message_id} if message_id else None,
    }


def _call(server, event):
    response = server.handler(event, None)
    assert response["headers"]["Access-Control-Allow-Origin"] == "*"
    return response["statusCode"], json.loads(response["body"])


def test_post_then_get_message(server, table):
    status, body = _call(server, _event("POST", "/messages", body="hello"))

    assert status == 201
    assert body["message"] == "hello"
    assert table.items[body["id"]] == {"id": body["id"], "message": "hello"}

    status, fetched = _call(server, _event("GET", "/messages/{message_id}", message_id=body["id"]))
    assert status == 200
    assert fetched == {"message": "hello", "id": body["id"]}


def test_post_rejects_empty_body(server, table):
    status, _ = _call(server, _event("POST", "/messages", body=""))

    assert status == 400
    assert table.items == {}


def test_count_follows_scan_pages(server, table):
    for i in range(5):
        table.put_item(Item={"id": f"m{i}", "message": str(i)})

    status, body = _call(server, _event("GET", "/messages"))

    assert status == 200
    assert body == {"message_count": 5}


def test_count_of_empty_table(server):
    assert _call(server, _event("GET", "/messages")) == (200, {"message_count": 0})


def test_get_unknown_message(server):
    status, body = _call(server, _event("GET", "/messages/{message_id}", message_id="nope"))

    assert status == 404
    assert "nope" in body["message"]


def test_get_without_message_id(server):
    status, _ = _call(server, _event("GET", "/messages/{message_id}"))
    assert status == 400


def test_unsupported_route(server):
    status, _ = _call(server, _event("DELETE", "/messages"))
    assert status == 400


def test_storage_errors_become_500(server, table):
    table.fail = True

    status, body = _call(server, _event("POST", "/messages", body="hello"))

    assert status == 500
    assert body == {"message": "Internal server error"}
