"""
payroll_engines.tracer -- PAYROLL_ENGINE_TRACE records for engine calls.

Every payroll engine entry point is wrapped in ``@traced_engine``.  A call
emits one structured log record naming the engine and its version, a
fingerprint of the selected keyword inputs, the duration and the outcome.
When two payslips disagree, matching fingerprints tell whether the engines
saw the same inputs.

The fingerprint is a SHA-256 prefix (16 hex chars) over a canonical form:
mappings are key-sorted, dataclasses (``Attendance``, ``Overtime``) are
expanded field by field, enums use their value and Decimals are normalized,
so ``Decimal("15300")`` and ``Decimal("15300.00")`` fingerprint alike.
Fields missing from the call are recorded as ``null``.

A failing call is traced with ``outcome="error"`` and the error code, then
the exception propagates unchanged.
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import time
from collections.abc import Callable, Mapping
from decimal import Decimal
from enum import Enum
from typing import Any

from payroll_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

TRACE_TYPE = "PAYROLL_ENGINE_TRACE"


def _canonicalize(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return _canonicalize(value.value)
    if isinstance(value, Decimal):
        return str(value.normalize()) if value.is_finite() else str(value)
    if isinstance(value, (bool, int, float, str)):
        return str(value)
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        return type(value).__name__ + _canonicalize(fields)
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    canonical = "|".join(
        f"{name}={_canonicalize(kwargs.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Wrap an engine entry point so each call emits a trace record.

    Engines are called with keyword arguments; only those are fingerprinted.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            trace = {
                "trace_type": TRACE_TYPE,
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": (
                    compute_input_fingerprint(fingerprint_fields, kwargs)
                    if fingerprint_fields else ""
                ),
                "function": func.__qualname__,
            }
            started = time.monotonic()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                trace["duration_ms"] = round((time.monotonic() - started) * 1000, 2)
                trace["outcome"] = "error"
                trace["error_code"] = getattr(exc, "code", type(exc).__name__)
                _logger.warning(TRACE_TYPE, extra=trace)
                raise
            trace["duration_ms"] = round((time.monotonic() - started) * 1000, 2)
            trace["outcome"] = "ok"
            _logger.info(TRACE_TYPE, extra=trace)
            return result

        return wrapper

    return decorator
