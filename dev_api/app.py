from dotenv import load_dotenv; load_dotenv()
import base64, os
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

# local env defaults (override via exported env vars)
os.environ.setdefault("DDB_TABLE", "nippo-dev")
os.environ.setdefault("USE_LOCAL_DDB", "true")
os.environ.setdefault("DDB_ENDPOINT_URL", "http://localhost:8000")
os.environ.setdefault("AWS_REGION", "us-east-1")

# reuse the lambda handler
from backend.lambdas.generate_report.handler import handler as report_handler
from nippo_common import ddb

app = FastAPI(title="Nippo Local API")


async def _forward(req: Request) -> Response:
    raw = await req.body()
    # raw bytes; the handler decodes them and answers 400 on bad UTF-8
    event = {
        "httpMethod": req.method,
        "path": req.url.path,
        "headers": dict(req.headers),
        "body": base64.b64encode(raw).decode("ascii") if raw else "",
        "isBase64Encoded": bool(raw),
    }
    # the Gemini call blocks for seconds
    resp = await run_in_threadpool(report_handler, event, None)
    return Response(
        content=resp.get("body", ""),
        status_code=resp["statusCode"],
        headers=resp.get("headers") or {},
    )


@app.api_route("/.netlify/functions/generate-report", methods=["POST", "OPTIONS"])
async def netlify_generate_report(req: Request):
    return await _forward(req)


@app.api_route("/api/generate-report", methods=["POST", "OPTIONS"])
async def generate_report(req: Request):
    return await _forward(req)


@app.get("/health")
def health():
    err = ddb.store_init_error()
    return {"ok": ddb.store_ready(), "store_error": err}
