from datetime import date

import pytest

from conftest import FakeSession, make_item
from nippo_common import ddb
from nippo_common.config import settings_from_env
from nippo_common.errors import StoreNotInitialized


def test_returns_five_newest_first(store, fake_table):
    days = ["2025-06-03", "2025-06-10", "2025-05-30", "2025-06-01", "2025-06-07", "2025-06-09", "2025-06-05"]
    fake_table.items = [make_item("a1", "u1", d, homework=f"hw {d}") for d in days]

    records = ddb.get_recent_records_for_user("a1", "u1")

    assert [r.date for r in records] == ["2025-06-10", "2025-06-09", "2025-06-07", "2025-06-05", "2025-06-03"]
    assert records[0].homework == "hw 2025-06-10"


def test_follows_pagination_before_sorting(store, fake_table):
    # newest record sits on the last page
    fake_table.page_size = 1
    fake_table.items = [make_item("a1", "u1", d) for d in ["2025-01-01", "2025-01-02", "2025-01-03"]]

    records = ddb.get_recent_records_for_user("a1", "u1")

    assert records[0].date == "2025-01-03"
    assert len(fake_table.calls) == 3


def test_scoped_to_app_and_user(store, fake_table):
    fake_table.items = [
        make_item("a1", "u1", "2025-06-01"),
        make_item("a1", "u2", "2025-06-02"),
        make_item("a2", "u1", "2025-06-03"),
    ]

    records = ddb.get_recent_records_for_user("a1", "u1")

    assert [(r.userId, r.date) for r in records] == [("u1", "2025-06-01")]


def test_unknown_app_yields_empty(store, fake_table):
    fake_table.items = [make_item("a1", "u1", "2025-06-01")]
    assert ddb.get_recent_records_for_user("nope", "u1") == []


def test_empty_identifiers_skip_query(store, fake_table):
    assert ddb.get_recent_records_for_user("", "u1") == []
    assert ddb.get_recent_records_for_user("a1", "") == []
    assert fake_table.calls == []


def test_store_failure_degrades_to_empty(store, fake_table):
    fake_table.fail = RuntimeError("ProvisionedThroughputExceeded")
    assert ddb.get_recent_records_for_user("a1", "u1") == []


def test_missing_store_degrades_to_empty(no_store):
    assert ddb.get_recent_records_for_user("a1", "u1") == []


def test_slash_dates_and_garbage_sort_last(store, fake_table):
    fake_table.items = [
        make_item("a1", "u1", "not a date"),
        make_item("a1", "u1", "2025/6/2"),
        make_item("a1", "u1", "2025-06-01T09:00:00Z"),
    ]

    records = ddb.get_recent_records_for_user("a1", "u1")

    assert [r.date for r in records] == ["2025/6/2", "2025-06-01T09:00:00Z", "not a date"]


@pytest.mark.parametrize("raw, expected", [
    ("2025-06-01", date(2025, 6, 1)),
    ("2025/12/31", date(2025, 12, 31)),
    ("2025-02-30", date.min),
    ("", date.min),
    (None, date.min),
])
def test_parse_record_date(raw, expected):
    assert ddb.parse_record_date(raw) == expected


def test_get_store_raises_when_not_initialized(no_store):
    with pytest.raises(StoreNotInitialized):
        ddb.get_store()


def test_init_store_records_config_problems(monkeypatch):
    monkeypatch.setattr(ddb, "_store", None)
    monkeypatch.setattr(ddb, "_init_error", None)

    ddb.init_store(settings_from_env({}))

    assert not ddb.store_ready()
    assert "DDB_TABLE is not set" in ddb.store_init_error()


def test_init_store_is_idempotent(monkeypatch, fresh_store):
    session = FakeSession()
    monkeypatch.setattr(ddb, "_session", lambda settings: session)
    s = settings_from_env({"DDB_TABLE": "records"})

    ddb.init_store(s)
    first = ddb.get_store()
    ddb.init_store(s)

    assert session.tables == ["records"]
    assert ddb.get_store() is first


def test_init_store_without_aws_credentials(monkeypatch, fresh_store):
    monkeypatch.setattr(ddb, "_session", lambda settings: FakeSession(credentials=None))

    ddb.init_store(settings_from_env({"DDB_TABLE": "records"}))

    assert not ddb.store_ready()
    assert ddb.store_init_error() == "AWS credentials are not configured"


def test_local_ddb_skips_credential_check(monkeypatch, fresh_store):
    session = FakeSession(credentials=None)
    monkeypatch.setattr(ddb, "_session", lambda settings: session)

    ddb.init_store(settings_from_env({
        "DDB_TABLE": "records",
        "USE_LOCAL_DDB": "true",
        "DDB_ENDPOINT_URL": "http://localhost:8000",
    }))

    assert ddb.store_ready()
    assert session.resource_kwargs == [{"endpoint_url": "http://localhost:8000"}]
