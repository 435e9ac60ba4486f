"""
gitgov_engines.tracer -- Engine invocation tracer emitting GITGOV_ENGINE_TRACE.

Responsibility:
    Provide a lightweight decorator (``@traced_engine``) that wraps pure
    evaluation functions with structured trace logging.  The trace captures
    engine_name, engine_version, input_fingerprint (deterministic SHA-256
    hash of selected arguments), the outcome, and duration_ms.

Architecture position:
    Engines -- infrastructure support for the pure evaluation layer.
    Does NOT introduce I/O into engines; emits a log record only.

Invariants enforced:
    - Fingerprints are deterministic: ``_canonicalize`` produces stable
      strings; mapping keys are sorted; the hash is SHA-256 truncated to
      16 hex chars.
    - The decorator binds positional and keyword arguments to parameter
      names before fingerprinting, so call style does not change the hash.
    - Engine purity: the decorator never mutates inputs or results.

Failure modes:
    - Fingerprint fields naming absent arguments are recorded as "null".
    - Exceptions raised by the engine propagate unchanged; no trace is
      emitted for them.

Usage:
    from gitgov_engines.tracer import traced_engine

    @traced_engine("transition_resolver", "1.0", ("from_state", "to_state"))
    def resolve_transition(model, from_state, to_state, context=None):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import logging
import time
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

_logger = logging.getLogger("gitgov_kernel.engines.tracer")


def _canonicalize(value: Any) -> str:
    """Produce a stable string representation of a value for fingerprinting.

    Returns a deterministic string for None, bool, int, str, enums,
    mappings (sorted keys) and sequences (order-preserved).  Unknown types
    fall back to ``repr(value)``; frozen dataclasses have a stable repr.
    """
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return _canonicalize(value.value)
    if isinstance(value, (bool, int, float)):
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return repr(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """Compute a 16-char SHA-256 prefix over the selected arguments."""
    parts = [f"{name}={_canonicalize(arguments.get(name))}" for name in fingerprint_fields]
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()[:16]


def _outcome(result: Any) -> Any:
    if result is None or isinstance(result, bool):
        return result
    eligible = getattr(result, "eligible", None)
    if isinstance(eligible, bool):
        return eligible
    return type(result).__name__


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits GITGOV_ENGINE_TRACE for pure engine invocations.

    Args:
        engine_name: Engine identifier (e.g., "signature_eligibility").
        engine_version: Engine version (e.g., "1.0").
        fingerprint_fields: Parameter names to include in the input
            fingerprint hash.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs)
                fp = compute_input_fingerprint(fingerprint_fields, bound.arguments)

            t0 = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 3)

            _logger.debug(
                "GITGOV_ENGINE_TRACE",
                extra={
                    "trace_type": "GITGOV_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fp,
                    "outcome": _outcome(result),
                    "duration_ms": duration_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
