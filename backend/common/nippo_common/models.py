# backend/common/nippo_common/models.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from nippo_common.schema import validate

# category fields of a stored record, in the order they are rendered
RECORD_FIELDS = ("homework", "worksheet", "learning", "program", "freetime", "notes")


@dataclass(frozen=True)
class Record:
    userId: str
    date: str
    homework: Optional[str] = None
    worksheet: Optional[str] = None
    learning: Optional[str] = None
    program: Optional[str] = None
    freetime: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "Record":
        """Build from a raw store item; unknown attributes are ignored."""
        def _s(key):
            v = item.get(key)
            return None if v is None else str(v)

        return cls(
            userId=str(item.get("userId") or ""),
            date=str(item.get("date") or ""),
            **{k: _s(k) for k in RECORD_FIELDS},
        )


@dataclass(frozen=True)
class User:
    id: str
    nickname: str


@dataclass(frozen=True)
class RevisionRequest:
    instruction: str
    originalReport: str


@dataclass(frozen=True)
class ReportRequest:
    appId: str
    user: User
    staffName: str
    activityNotes: str
    revisionRequest: Optional[RevisionRequest] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ReportRequest":
        """Validate against ``generate_report.schema.json`` and convert.

        Raises RequestValidationError when a required field is missing or mistyped.
        """
        validate("generate_report", payload)
        rev = payload.get("revisionRequest")
        return cls(
            appId=payload["appId"],
            user=User(id=payload["user"]["id"], nickname=payload["user"]["nickname"]),
            staffName=payload["staffName"],
            activityNotes=payload["activityNotes"],
            revisionRequest=(
                RevisionRequest(instruction=rev["instruction"], originalReport=rev["originalReport"])
                if rev else None
            ),
        )
