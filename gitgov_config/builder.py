"""
Methodology Builder (``gitgov_config.builder``).

Responsibility
--------------
Turns a raw methodology document into a model that is safe to hand to the
engine: parse, validate, refuse on errors, log warnings.  Every path that
produces a ``MethodologyModel`` from data (presets, project files, callers
building one in code) goes through ``build_methodology``.

Failure modes
-------------
* ``KeyError`` / ``ValueError`` -- the document cannot be parsed.
* ``InvalidMethodologyError`` -- parsed, but failed validation.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from gitgov_config.loader import parse_methodology
from gitgov_config.validator import validate_methodology
from gitgov_kernel.domain.methodology import MethodologyModel
from gitgov_kernel.exceptions import InvalidMethodologyError
from gitgov_kernel.logging_config import get_logger

logger = get_logger("config.builder")


def build_methodology(
    data: Mapping[str, Any],
    source_name: str | None = None,
) -> MethodologyModel:
    """Parse and validate a methodology document.

    Args:
        data: Document in the methodology file format.
        source_name: Label used in errors and logs (defaults to the
            methodology name).

    Returns:
        A validated, frozen ``MethodologyModel``.

    Raises:
        KeyError: required keys missing.
        ValueError: a value violates a model invariant.
        InvalidMethodologyError: cross-reference validation failed.
    """
    model = parse_methodology(data)
    label = source_name or model.name

    validation = validate_methodology(model)
    for warning in validation.warnings:
        logger.warning(
            "methodology_validation_warning",
            extra={"methodology_name": label, "warning": warning},
        )
    if not validation.is_valid:
        raise InvalidMethodologyError(label, validation.errors)
    return model
