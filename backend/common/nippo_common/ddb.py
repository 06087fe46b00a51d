# backend/common/nippo_common/ddb.py
import logging, re
from datetime import date
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key

from nippo_common.config import Settings, load_settings
from nippo_common.errors import ConfigError, StoreNotInitialized
from nippo_common.logging import get_logger, log_event
from nippo_common.models import Record

log = get_logger("nippo.ddb")

RECENT_LIMIT = 5

INIT_ERROR_MESSAGE = "サーバー内部エラー: レコードストアが初期化されていません。"

_DATE_RE = re.compile(r"^\s*(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})")


def collection_path(app_id: str) -> str:
    return f"artifacts/{app_id}/public/data/records"


def parse_record_date(value: Any) -> date:
    """Calendar date of a record; unparseable values sort as the oldest."""
    m = _DATE_RE.match(str(value or ""))
    if not m:
        return date.min
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return date.min


class RecordStore:
    """Read-only access to activity records.

    Items live under partition key ``PK = artifacts/{appId}/public/data/records``,
    one item per record, with ``userId``, ``date`` and the category fields as
    plain attributes.
    """

    def __init__(self, table):
        self._table = table

    def query_user_records(self, app_id: str, user_id: str) -> List[Dict[str, Any]]:
        kwargs = {
            "KeyConditionExpression": Key("PK").eq(collection_path(app_id)),
            "FilterExpression": Attr("userId").eq(user_id),
        }
        items: List[Dict[str, Any]] = []
        while True:
            resp = self._table.query(**kwargs)
            items.extend(resp.get("Items", []))
            last = resp.get("LastEvaluatedKey")
            if not last:
                return items
            kwargs["ExclusiveStartKey"] = last

    def recent_records(self, app_id: str, user_id: str, limit: int = RECENT_LIMIT) -> List[Record]:
        records = [Record.from_item(it) for it in self.query_user_records(app_id, user_id)]
        records.sort(key=lambda r: parse_record_date(r.date), reverse=True)
        return records[:limit]


# ---- process-wide client (created once) ----

_store: Optional[RecordStore] = None
_init_error: Optional[str] = None


def _session(settings: Settings):
    return boto3.session.Session(region_name=settings.aws_region)


def _resource(session, settings: Settings):
    # DynamoDB Local takes any credentials
    if not settings.use_local_ddb and session.get_credentials() is None:
        raise ConfigError("AWS credentials are not configured")
    return session.resource(
        "dynamodb",
        endpoint_url=settings.ddb_endpoint_url if settings.use_local_ddb else None,
    )


def init_store(settings: Optional[Settings] = None) -> None:
    """Create the store once; later calls are no-ops whether or not the first one succeeded."""
    global _store, _init_error
    if _store is not None or _init_error is not None:
        return
    settings = settings or load_settings()
    try:
        if settings.problems:
            raise ConfigError("; ".join(settings.problems))
        _store = RecordStore(_resource(_session(settings), settings).Table(settings.ddb_table))
        log_event(log, logging.INFO, store="initialized", table=settings.ddb_table)
    except Exception as e:
        _init_error = str(e) or e.__class__.__name__
        log_event(log, logging.ERROR, store="init_failed", error=_init_error)


def get_store() -> RecordStore:
    if _store is None:
        raise StoreNotInitialized(INIT_ERROR_MESSAGE)
    return _store


def store_ready() -> bool:
    return _store is not None


def store_init_error() -> Optional[str]:
    return _init_error


def get_recent_records_for_user(app_id: str, user_id: str) -> List[Record]:
    """Five most recent records, newest first. History is best effort: failures yield []."""
    if not app_id or not user_id:
        return []
    try:
        return get_store().recent_records(app_id, user_id)
    except Exception as e:
        log_event(log, logging.WARNING, records="fetch_failed", app_id=app_id, error=str(e))
        return []
