"""
gitgov_services.workflow_methodology -- Methodology resolution strategy.

Responsibility:
    Facade that binds one methodology to the pure engines.  Decides WHICH
    methodology governs evaluation (explicit model, built-in preset, or
    the project's own file with fallback to the default) and forwards
    every evaluation call to ``gitgov_engines`` with that model.

Architecture position:
    Services -- the only layer that may trigger file I/O.  May import from
    gitgov_engines/, gitgov_config/ and gitgov_kernel/.

Invariants enforced:
    - Priority: an explicit model beats a preset, which beats the project
      file.  Only ``with_project_override`` touches the file system.
    - Single-flight: the project methodology is loaded at most once per
      adapter, under a lock with a double-checked cache.  Every caller,
      from any thread, sees the same model.
    - Fail safe: a missing, unreadable or invalid project methodology
      falls back to the built-in default and never raises to evaluators.

Failure modes:
    - ``UnknownPresetError`` -- ``from_preset`` with an unknown name.
    - ``InvalidMethodologyError`` -- ``from_model`` with a model that fails
      cross-reference validation.

Audit relevance:
    Every methodology resolution emits a ``METHODOLOGY_TRACE`` log entry
    with the methodology name, version, checksum and origin.  The checksum
    ties each authorization decision to the exact methodology that made it.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

from gitgov_config.loader import compute_checksum
from gitgov_config.presets import DEFAULT_PRESET, get_preset
from gitgov_config.project import ProjectMethodologySource
from gitgov_config.validator import validate_methodology
from gitgov_engines.custom_rules import (
    CustomRuleRegistry,
    CustomValidator,
    are_custom_rules_satisfied,
    default_rule_registry,
)
from gitgov_engines.signatures import SignatureEligibility, evaluate_signature
from gitgov_engines.transitions import (
    AvailableTransition,
    available_transitions,
    resolve_transition,
)
from gitgov_engines.views import project_view
from gitgov_kernel.domain.methodology import (
    MethodologyModel,
    TransitionRequirement,
    ViewConfig,
)
from gitgov_kernel.domain.methodology_source import MethodologySource
from gitgov_kernel.domain.records import Signature, ValidationContext
from gitgov_kernel.exceptions import InvalidMethodologyError
from gitgov_kernel.logging_config import get_logger

logger = get_logger("services.workflow_methodology")

TRACE_TYPE_METHODOLOGY = "METHODOLOGY_TRACE"


class MethodologyOrigin(str, Enum):
    """Where the governing methodology came from."""

    EXPLICIT = "explicit"
    PRESET = "preset"
    PROJECT = "project"
    FALLBACK = "fallback"


class WorkflowMethodologyAdapter:
    """Evaluates workflow authorization questions against one methodology.

    Construct with ``from_model``, ``from_preset`` or
    ``with_project_override``; the constructor itself is internal.
    """

    def __init__(
        self,
        *,
        model: MethodologyModel | None = None,
        origin: MethodologyOrigin | None = None,
        source: MethodologySource | None = None,
        registry: CustomRuleRegistry | None = None,
        diagnostic_sink: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        if (model is None) == (source is None):
            raise ValueError("Exactly one of model or source is required")
        self._model = model
        self._origin = origin if origin is not None or model is None else MethodologyOrigin.EXPLICIT
        self._source = source
        self._registry = registry if registry is not None else default_rule_registry()
        self._diagnostic_sink = diagnostic_sink
        self._lock = threading.Lock()
        if model is not None:
            self._emit_methodology_trace(model, self._origin)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_model(
        cls,
        model: MethodologyModel,
        *,
        registry: CustomRuleRegistry | None = None,
        diagnostic_sink: Callable[[dict[str, Any]], None] | None = None,
    ) -> WorkflowMethodologyAdapter:
        """Use ``model`` as is. No I/O.

        Raises:
            TypeError: ``model`` is not a ``MethodologyModel``.
            InvalidMethodologyError: ``model`` fails validation.
        """
        if not isinstance(model, MethodologyModel):
            raise TypeError(f"model must be a MethodologyModel, got {type(model).__name__}")
        validation = validate_methodology(model)
        if not validation.is_valid:
            raise InvalidMethodologyError(model.name, validation.errors)
        return cls(
            model=model,
            origin=MethodologyOrigin.EXPLICIT,
            registry=registry,
            diagnostic_sink=diagnostic_sink,
        )

    @classmethod
    def from_preset(
        cls,
        name: str = DEFAULT_PRESET,
        *,
        registry: CustomRuleRegistry | None = None,
        diagnostic_sink: Callable[[dict[str, Any]], None] | None = None,
    ) -> WorkflowMethodologyAdapter:
        """Use a built-in methodology. No I/O.

        Raises:
            UnknownPresetError: ``name`` is not a preset.
        """
        return cls(
            model=get_preset(name),
            origin=MethodologyOrigin.PRESET,
            registry=registry,
            diagnostic_sink=diagnostic_sink,
        )

    @classmethod
    def with_project_override(
        cls,
        source: MethodologySource | None = None,
        *,
        registry: CustomRuleRegistry | None = None,
        diagnostic_sink: Callable[[dict[str, Any]], None] | None = None,
    ) -> WorkflowMethodologyAdapter:
        """Load the project methodology on first use, else the default."""
        return cls(
            source=source if source is not None else ProjectMethodologySource(),
            registry=registry,
            diagnostic_sink=diagnostic_sink,
        )

    # ------------------------------------------------------------------
    # Methodology resolution
    # ------------------------------------------------------------------

    @property
    def model(self) -> MethodologyModel:
        """The governing methodology, loading it on first access."""
        return self._ensure_loaded()

    def _ensure_loaded(self) -> MethodologyModel:
        model = self._model
        if model is not None:
            return model
        with self._lock:
            if self._model is None:
                loaded, origin = self._load_from_source()
                self._emit_methodology_trace(loaded, origin)
                self._origin = origin
                self._model = loaded
            return self._model

    @property
    def origin(self) -> MethodologyOrigin:
        """Where the methodology came from (resolves it if needed)."""
        self._ensure_loaded()
        assert self._origin is not None
        return self._origin

    @property
    def registry(self) -> CustomRuleRegistry:
        return self._registry

    def register_custom_rule(self, key: str, validator: CustomValidator) -> None:
        """Register a validator for ``custom`` rules keyed by ``key``."""
        self._registry.register(key, validator)

    def _load_from_source(self) -> tuple[MethodologyModel, MethodologyOrigin]:
        assert self._source is not None
        try:
            result = self._source.load()
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "methodology_source_error",
                extra={"source": type(self._source).__name__, "error": str(e)},
            )
            return get_preset(DEFAULT_PRESET), MethodologyOrigin.FALLBACK

        if result.is_loaded and result.model is not None:
            return result.model, MethodologyOrigin.PROJECT

        logger.info(
            "methodology_fallback",
            extra={
                "status": result.status.value,
                "reason": result.reason,
                "fallback_preset": DEFAULT_PRESET,
            },
        )
        return get_preset(DEFAULT_PRESET), MethodologyOrigin.FALLBACK

    @staticmethod
    def _emit_methodology_trace(model: MethodologyModel, origin: MethodologyOrigin) -> None:
        logger.info(
            TRACE_TYPE_METHODOLOGY,
            extra={
                "trace_type": TRACE_TYPE_METHODOLOGY,
                "methodology_name": model.name,
                "methodology_version": model.version,
                "checksum": compute_checksum(model),
                "origin": origin.value,
                "transition_count": len(model.state_transitions),
                "custom_rule_count": len(model.custom_rules),
            },
        )

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def resolve_transition(
        self,
        from_state: str,
        to_state: str,
        context: ValidationContext | None = None,
    ) -> TransitionRequirement | None:
        """Requirement guarding ``from_state -> to_state``, or None."""
        return resolve_transition(self.model, from_state, to_state, context)

    def available_transitions(self, from_state: str) -> tuple[AvailableTransition, ...]:
        """Edges leaving ``from_state``, in declaration order."""
        return available_transitions(self.model, from_state)

    def evaluate_signature(
        self, signature: Signature, context: ValidationContext
    ) -> SignatureEligibility:
        """Eligibility of ``signature`` with the groups it counts toward."""
        return evaluate_signature(self.model, signature, context)

    def is_signature_eligible(self, signature: Signature, context: ValidationContext) -> bool:
        """True when ``signature`` may count toward the transition in ``context``."""
        return evaluate_signature(self.model, signature, context).eligible

    def are_custom_rules_satisfied(
        self, rule_names: Sequence[str], context: ValidationContext
    ) -> bool:
        """True when every named custom rule holds for ``context``."""
        return are_custom_rules_satisfied(
            self.model,
            rule_names,
            context,
            registry=self._registry,
            diagnostic_sink=self._diagnostic_sink,
        )

    def project_view(self, view_name: str) -> ViewConfig | None:
        """Merged column layout for ``view_name``, or None if unknown."""
        return project_view(self.model, view_name)
