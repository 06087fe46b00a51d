# backend/lambdas/generate_report/handler.py
import base64, binascii, json, logging
from typing import Any, Dict

from nippo_common import ddb
from nippo_common.errors import RequestValidationError, StoreNotInitialized
from nippo_common.gemini import generate_report
from nippo_common.logging import get_logger, log_event
from nippo_common.models import ReportRequest

log = get_logger("nippo.generate_report")

BAD_REQUEST = "Bad Request: 必須パラメータが不足しています。"
INTERNAL_ERROR = "サーバー内部エラー: "

# created once per process; failures are reported on every POST
ddb.init_store()


# ---------- small utils ----------

def _cors_headers() -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Allow-Methods": "POST, OPTIONS",
    }


def _json(status: int, obj: Dict[str, Any]) -> Dict[str, Any]:
    headers = _cors_headers()
    headers["Content-Type"] = "application/json; charset=utf-8"
    return {"statusCode": status, "headers": headers, "body": json.dumps(obj, ensure_ascii=False)}


def _method(event) -> str:
    # Netlify / API Gateway REST, then HTTP API v2
    if not isinstance(event, dict):
        return ""
    m = event.get("httpMethod") or ((event.get("requestContext") or {}).get("http") or {}).get("method")
    return str(m or "").upper()


def _parse_body(event) -> Dict[str, Any]:
    body = event.get("body") if isinstance(event, dict) else None
    if isinstance(body, dict):
        return body
    if not body:
        raise RequestValidationError("empty body")
    try:
        if event.get("isBase64Encoded"):
            body = base64.b64decode(body).decode("utf-8")
        payload = json.loads(body)
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise RequestValidationError(f"malformed JSON: {e}") from None
    if not isinstance(payload, dict):
        raise RequestValidationError("body must be a JSON object")
    return payload


# ---------- handler ----------

def handler(event, context):
    method = _method(event)

    # CORS preflight
    if method == "OPTIONS":
        return {"statusCode": 204, "headers": _cors_headers(), "body": ""}

    if method != "POST":
        log_event(log, logging.INFO, rejected="method_not_allowed", method=method)
        headers = _cors_headers()
        headers["Content-Type"] = "text/plain; charset=utf-8"
        headers["Allow"] = "POST, OPTIONS"
        return {"statusCode": 405, "headers": headers, "body": "Method Not Allowed"}

    try:
        ddb.get_store()
    except StoreNotInitialized as e:
        log_event(log, logging.ERROR, rejected="store_not_initialized", cause=ddb.store_init_error())
        return _json(500, {"error": str(e)})

    try:
        try:
            req = ReportRequest.from_payload(_parse_body(event))
        except RequestValidationError as ve:
            log_event(log, logging.INFO, rejected="bad_request", detail=str(ve))
            return _json(400, {"error": f"{BAD_REQUEST} ({ve})"})

        # 1) recent records (best effort)
        records = ddb.get_recent_records_for_user(req.appId, req.user.id)

        # 2) generate / revise
        text = generate_report(
            req.user,
            req.staffName,
            req.activityNotes,
            req.revisionRequest,
            records,
        )

        # 3) respond
        return _json(200, {"report": text})

    except Exception as e:
        log.exception("generate_report failed")
        return _json(500, {"error": f"{INTERNAL_ERROR}{e}"})
