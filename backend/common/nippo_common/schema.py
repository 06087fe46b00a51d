# backend/common/nippo_common/schema.py
import json, os
from pathlib import Path
from typing import List

from jsonschema import Draft202012Validator as Validator

from nippo_common.errors import RequestValidationError

_validators = {}


def _schemas_dir() -> Path:
    env = os.getenv("SCHEMAS_DIR")
    if env:
        return Path(env)
    return Path(__file__).resolve().parent / "schemas"


def _get_validator(kind: str):
    v = _validators.get(kind)
    if v:
        return v
    with open(_schemas_dir() / f"{kind}.schema.json", "r", encoding="utf-8") as f:
        v = Validator(json.load(f))
    _validators[kind] = v
    return v


def _field(path, name=None) -> str:
    parts = [str(p) for p in path]
    if name is not None:
        parts.append(name)
    return ".".join(parts) or "body"


def _describe(e) -> List[str]:
    """Request-level wording for one jsonschema error, e.g. ``missing user.nickname``."""
    if e.validator == "required":
        present = e.instance if isinstance(e.instance, dict) else {}
        return [f"missing {_field(e.absolute_path, n)}" for n in e.validator_value if n not in present]
    where = _field(e.absolute_path)
    if e.validator == "minLength":
        # empty strings count as missing
        return [f"missing {where}"]
    if e.validator == "enum":
        return [f"{where} must be one of {', '.join(map(str, e.validator_value))}"]
    if e.validator == "type":
        expected = e.validator_value if isinstance(e.validator_value, list) else [e.validator_value]
        return [f"{where} must be {' or '.join(expected)}"]
    return [f"{where}: {e.message}"]


def validate(kind: str, payload) -> None:
    errors = sorted(_get_validator(kind).iter_errors(payload), key=lambda e: list(e.path))
    problems: List[str] = []
    for e in errors:
        problems.extend(_describe(e))
    if problems:
        more = "" if len(problems) <= 5 else f" (+{len(problems)-5} more)"
        raise RequestValidationError("; ".join(problems[:5]) + more)
