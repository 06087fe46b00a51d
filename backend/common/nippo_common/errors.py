# backend/common/nippo_common/errors.py


class ConfigError(Exception):
    """Environment is missing or has invalid settings."""


class StoreNotInitialized(Exception):
    """The record store client could not be created at process start."""


class GenerationError(Exception):
    """The generation API could not produce a report."""


class RequestValidationError(ValueError):
    """Inbound body is not valid JSON or misses required fields."""
