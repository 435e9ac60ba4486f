"""MethodologySource -- Abstract source of a project's MethodologyModel.

The adapter in ``gitgov_services`` asks a source for the project
methodology lazily, on first use.  A source reports what happened as a
``MethodologyLoadResult`` instead of raising, so a malformed project file
can never break an evaluation: the caller falls back to the built-in
default.

Implementations: ProjectMethodologySource (``gitgov_config.project``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable

from gitgov_kernel.domain.methodology import MethodologyModel


class LoadStatus(str, Enum):
    """Outcome of a methodology load attempt."""

    LOADED = "loaded"
    NOT_FOUND = "not_found"
    NOT_A_PROJECT = "not_a_project"
    PARSE_ERROR = "parse_error"
    INVALID = "invalid"


@dataclass(frozen=True)
class MethodologyLoadResult:
    """What a source produced. ``model`` is set only when ``LOADED``."""

    status: LoadStatus
    model: MethodologyModel | None = None
    reason: str | None = None
    path: Path | None = None

    def __post_init__(self) -> None:
        if (self.status is LoadStatus.LOADED) != (self.model is not None):
            raise ValueError(
                f"MethodologyLoadResult: model must be set iff status is loaded "
                f"(status={self.status.value})"
            )

    @property
    def is_loaded(self) -> bool:
        return self.status is LoadStatus.LOADED

    @classmethod
    def loaded(cls, model: MethodologyModel, path: Path | None = None) -> MethodologyLoadResult:
        return cls(status=LoadStatus.LOADED, model=model, path=path)

    @classmethod
    def failed(
        cls, status: LoadStatus, reason: str, path: Path | None = None
    ) -> MethodologyLoadResult:
        return cls(status=status, reason=reason, path=path)


@runtime_checkable
class MethodologySource(Protocol):
    """Protocol for obtaining a project methodology.

    Implementations MUST NOT raise from ``load``; every failure is a
    non-``LOADED`` status with a human-readable ``reason``.
    """

    def load(self) -> MethodologyLoadResult:
        ...
