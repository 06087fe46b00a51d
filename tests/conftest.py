"""Pytest fixtures."""

from typing import Any, Dict, List

import pytest

from nippo_common import ddb
from nippo_common.config import settings_from_env


def _eq(cond):
    """(attribute name, value) of a boto3 ``Key(...).eq`` / ``Attr(...).eq`` condition."""
    expr = cond.get_expression()
    assert expr["operator"] == "="
    attr, value = expr["values"]
    return attr.name, value


class FakeTable:
    """In-memory stand-in for a DynamoDB Table: query with an eq key condition + eq filter, paged."""

    def __init__(self, items: List[Dict[str, Any]], page_size: int = 2, fail: Exception = None):
        self.items = items
        self.page_size = page_size
        self.fail = fail
        self.calls: List[Dict[str, Any]] = []

    def query(self, **kwargs):
        self.calls.append(kwargs)
        if self.fail:
            raise self.fail
        key_name, key_value = _eq(kwargs["KeyConditionExpression"])
        matched = [it for it in self.items if it.get(key_name) == key_value]
        if "FilterExpression" in kwargs:
            f_name, f_value = _eq(kwargs["FilterExpression"])
            matched = [it for it in matched if it.get(f_name) == f_value]
        start = (kwargs.get("ExclusiveStartKey") or {}).get("offset", 0)
        page = matched[start:start + self.page_size]
        resp = {"Items": page}
        if start + self.page_size < len(matched):
            resp["LastEvaluatedKey"] = {"offset": start + self.page_size}
        return resp


class FakeSession:
    """Stand-in for ``boto3.session.Session``: fixed credentials, Table() hands out FakeTables."""

    def __init__(self, credentials=object()):
        self.credentials = credentials
        self.tables: List[str] = []
        self.resource_kwargs: List[Dict[str, Any]] = []

    def get_credentials(self):
        return self.credentials

    def resource(self, service, **kwargs):
        assert service == "dynamodb"
        self.resource_kwargs.append(kwargs)
        session = self

        class _Resource:
            def Table(self, name):
                session.tables.append(name)
                return FakeTable([])

        return _Resource()


def make_item(app_id: str, user_id: str, date: str, **fields) -> Dict[str, Any]:
    item = {"PK": ddb.collection_path(app_id), "SK": f"{user_id}#{date}", "userId": user_id, "date": date}
    item.update(fields)
    return item


@pytest.fixture
def fake_table() -> FakeTable:
    return FakeTable([])


@pytest.fixture
def store(monkeypatch, fake_table):
    """Install a RecordStore over ``fake_table`` as the process-wide store."""
    s = ddb.RecordStore(fake_table)
    monkeypatch.setattr(ddb, "_store", s)
    monkeypatch.setattr(ddb, "_init_error", None)
    return s


@pytest.fixture
def no_store(monkeypatch):
    monkeypatch.setattr(ddb, "_store", None)
    monkeypatch.setattr(ddb, "_init_error", "DDB_TABLE is not set")


@pytest.fixture
def fresh_store(monkeypatch):
    """Forget any process-wide store so init_store runs again."""
    monkeypatch.setattr(ddb, "_store", None)
    monkeypatch.setattr(ddb, "_init_error", None)


@pytest.fixture
def settings():
    return settings_from_env({"DDB_TABLE": "records-test", "GEMINI_API_KEY": "test-key"})
