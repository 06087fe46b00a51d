# backend/common/nippo_common/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional, Tuple

# ---------------------------------------------------------------------
# Env / config
# ---------------------------------------------------------------------

DEFAULT_REGION       = "us-east-1"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_GEMINI_BASE  = "https://generativelanguage.googleapis.com"
DEFAULT_TIMEOUT_SEC  = 60.0


def _bool(v) -> bool:
    return str(v).lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    ddb_table: str = ""
    aws_region: str = DEFAULT_REGION
    use_local_ddb: bool = False
    ddb_endpoint_url: Optional[str] = None
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_base_url: str = DEFAULT_GEMINI_BASE
    gemini_timeout_sec: float = DEFAULT_TIMEOUT_SEC
    log_level: str = "INFO"
    # validation problems collected while reading the environment
    problems: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.problems


def settings_from_env(env=None) -> Settings:
    """Read every setting from ``env`` (default ``os.environ``) and collect problems instead of raising."""
    env = os.environ if env is None else env
    problems = []

    ddb_table = (env.get("DDB_TABLE") or "").strip()
    if not ddb_table:
        problems.append("DDB_TABLE is not set")

    use_local = _bool(env.get("USE_LOCAL_DDB", "false"))
    endpoint = (env.get("DDB_ENDPOINT_URL") or "").strip() or None
    if use_local and not endpoint:
        problems.append("USE_LOCAL_DDB is on but DDB_ENDPOINT_URL is not set")

    raw_timeout = env.get("GEMINI_TIMEOUT_SEC")
    timeout = DEFAULT_TIMEOUT_SEC
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
            if timeout <= 0:
                raise ValueError(raw_timeout)
        except ValueError:
            problems.append(f"GEMINI_TIMEOUT_SEC must be a positive number (got {raw_timeout!r})")
            timeout = DEFAULT_TIMEOUT_SEC

    return Settings(
        ddb_table=ddb_table,
        aws_region=env.get("AWS_REGION") or DEFAULT_REGION,
        use_local_ddb=use_local,
        ddb_endpoint_url=endpoint if use_local else None,
        gemini_api_key=(env.get("GEMINI_API_KEY") or "").strip() or None,
        gemini_model=env.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        gemini_base_url=(env.get("GEMINI_BASE_URL") or DEFAULT_GEMINI_BASE).rstrip("/"),
        gemini_timeout_sec=timeout,
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        problems=tuple(problems),
    )


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    return settings_from_env()
