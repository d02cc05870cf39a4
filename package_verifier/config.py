"""Configuration helpers for the verification runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def env_bool(name: str, *, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return default


def env_int(name: str, *, default: int | None = None) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_float(name: str, *, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if value < 0:
        return default
    return value


@dataclass(frozen=True)
class VerifierConfig:
    table_name: str | None
    aws_region: str
    max_retries: int
    base_delay: float
    request_delay: float
    http_timeout: float
    store_results: bool
    catalog_path: str | None
    log_level: str


def read_verifier_config() -> VerifierConfig:
    max_retries = env_int("VERIFY_MAX_RETRIES", default=3)
    if max_retries is None or max_retries < 1:
        max_retries = 3
    return VerifierConfig(
        table_name=os.getenv("DDB_TABLE_NAME") or None,
        aws_region=os.getenv("AWS_REGION", "us-east-1"),
        max_retries=max_retries,
        base_delay=env_float("VERIFY_BASE_DELAY_SECONDS", default=1.0),
        request_delay=env_float("VERIFY_REQUEST_DELAY_SECONDS", default=0.1),
        http_timeout=env_float("VERIFY_HTTP_TIMEOUT_SECONDS", default=10.0),
        store_results=env_bool("VERIFY_STORE_RESULTS", default=True),
        catalog_path=os.getenv("CATALOG_PATH") or None,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
