# backend/common/nippo_common/gemini.py
from __future__ import annotations

import logging, time
from typing import Any, Dict, Optional, Sequence

import httpx

from nippo_common.config import Settings, load_settings
from nippo_common.errors import GenerationError
from nippo_common.logging import get_logger, log_event
from nippo_common.models import Record, RevisionRequest, User
from nippo_common.prompts import PROMPT_VERSION, ReportContext, build_prompts

log = get_logger("nippo.gemini")

GENERATION_FAILED = "エラー: レポートの生成に失敗しました。"

# ---------------------------------------------------------------------
# Small helpers
# ---------------------------------------------------------------------

def _safe_get(d, *keys, default=None):
    cur = d
    for k in keys:
        if isinstance(cur, dict):
            cur = cur.get(k)
        elif isinstance(cur, list) and isinstance(k, int) and -len(cur) <= k < len(cur):
            cur = cur[k]
        else:
            return default
    return default if cur is None else cur


def extract_text(data: Dict[str, Any]) -> str:
    """First candidate's text, or GenerationError naming the block reason when there is one."""
    text = _safe_get(data, "candidates", 0, "content", "parts", 0, "text")
    if isinstance(text, str) and text:
        return text
    msg = GENERATION_FAILED
    reason = _safe_get(data, "promptFeedback", "blockReason")
    if reason:
        msg += f" 理由: {reason}"
    raise GenerationError(msg)


# ---------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------

class GeminiClient:
    """Calls the Gemini generateContent endpoint: POST {base}/v1beta/models/{model}:generateContent?key=..."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def url(self) -> str:
        return f"{self._base_url}/v1beta/models/{self._model}:generateContent"

    def complete(self, *, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "contents": [{"parts": [{"text": user_prompt}]}],
            "systemInstruction": {"parts": [{"text": system_prompt}]},
        }
        with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
            resp = client.post(
                self.url,
                params={"key": self._api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
            )
        if not resp.is_success:
            raise GenerationError(f"API request failed with status {resp.status_code}: {resp.text}")
        try:
            data = resp.json()
        except ValueError:
            raise GenerationError(f"{GENERATION_FAILED} 理由: invalid JSON response") from None
        return extract_text(data)


def build_client(settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> GeminiClient:
    if not settings.gemini_api_key:
        raise GenerationError("GEMINI_API_KEY is not set in environment variables.")
    return GeminiClient(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        timeout=settings.gemini_timeout_sec,
        transport=transport,
    )


# ---------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------

def generate_report(
    user: User,
    staff_name: str,
    activity_notes: str,
    revision: Optional[RevisionRequest],
    recent_records: Sequence[Record],
    *,
    settings: Optional[Settings] = None,
    client: Optional[GeminiClient] = None,
) -> str:
    """
    Generate (or revise) a daily report.
      - revision is None  => new report from today's notes + recent records.
      - revision present  => rewrite revision.originalReport per its instruction.
    Raises GenerationError on missing key, HTTP failure, or an empty/blocked candidate.
    """
    settings = settings or load_settings()
    client = client or build_client(settings)

    ctx = ReportContext(
        user=user,
        staff_name=staff_name,
        activity_notes=activity_notes,
        recent_records=tuple(recent_records),
        revision=revision,
    )
    system_prompt, user_prompt = build_prompts(ctx)

    mode = "revision" if ctx.is_revision else "generate"
    started = time.monotonic()
    try:
        text = client.complete(system_prompt=system_prompt, user_prompt=user_prompt)
    except httpx.HTTPError as e:
        log_event(log, logging.ERROR, generation="failed", mode=mode, error=str(e))
        raise GenerationError(f"API request failed: {e}") from e
    except GenerationError as e:
        log_event(log, logging.ERROR, generation="failed", mode=mode, error=str(e))
        raise
    log_event(
        log, logging.INFO,
        generation="ok",
        mode=mode,
        model=settings.gemini_model,
        prompt_version=PROMPT_VERSION,
        records=len(ctx.recent_records),
        elapsed_ms=int((time.monotonic() - started) * 1000),
    )
    return text
