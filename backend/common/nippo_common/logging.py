# backend/common/nippo_common/logging.py
import json, logging, sys

from nippo_common.config import load_settings


class JsonFormatter(logging.Formatter):
    def format(self, record):
        base = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        if record.args and isinstance(record.args, dict):
            base.update(record.args)  # rarely used
        if record.exc_info:
            base["exc"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False)


def get_logger(name="nippo"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(JsonFormatter())
        logger.addHandler(h)
        logger.setLevel(getattr(logging, load_settings().log_level, logging.INFO))
        logger.propagate = False
    return logger


def log_event(logger, level: int, **fields) -> None:
    """Emit one JSON line built from ``fields`` (the ``log.info(json.dumps({...}))`` pattern)."""
    logger.log(level, json.dumps(fields, ensure_ascii=False, default=str))
