"""
Module: gitgov_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    evaluation engines.  This is the canonical import surface for higher
    layers (gitgov_services).

Architecture position:
    Engines -- pure evaluation layer, zero I/O.
    May only import gitgov_kernel (and sibling engine modules).
    MUST NOT import gitgov_config or gitgov_services.

Invariants enforced:
    - Purity: engines read the methodology and the caller-supplied
      ``ValidationContext`` only; they never load files or records.
    - Determinism: identical inputs always produce identical outputs.
    - Authorization negatives are ``False``/``None`` results, never
      exceptions.

Audit relevance:
    Engine invocations are traced via the ``@traced_engine`` decorator
    (see ``gitgov_engines.tracer``), emitting GITGOV_ENGINE_TRACE debug
    records with engine name, version, input fingerprint and outcome.

Usage:
    from gitgov_engines.transitions import resolve_transition
    from gitgov_engines.signatures import is_signature_eligible
    from gitgov_engines.custom_rules import are_custom_rules_satisfied
    from gitgov_engines.views import project_view
"""

from gitgov_kernel.logging_config import get_logger

logger = get_logger("engines")

from gitgov_engines.custom_rules import (
    CustomRuleRegistry,
    CustomValidator,
    are_custom_rules_satisfied,
    default_rule_registry,
    evaluate_rule,
)
from gitgov_engines.signatures import (
    SignatureEligibility,
    evaluate_signature,
    group_accepts_actor,
    is_signature_eligible,
)
from gitgov_engines.tracer import compute_input_fingerprint, traced_engine
from gitgov_engines.transitions import (
    AvailableTransition,
    available_transitions,
    resolve_transition,
)
from gitgov_engines.views import (
    DEFAULT_COLUMN_LABELS,
    default_column_label,
    project_view,
    state_universe,
)

__all__ = [
    # Transitions
    "AvailableTransition",
    "available_transitions",
    "resolve_transition",
    # Signatures
    "SignatureEligibility",
    "evaluate_signature",
    "group_accepts_actor",
    "is_signature_eligible",
    # Custom rules
    "CustomRuleRegistry",
    "CustomValidator",
    "are_custom_rules_satisfied",
    "default_rule_registry",
    "evaluate_rule",
    # Views
    "DEFAULT_COLUMN_LABELS",
    "default_column_label",
    "project_view",
    "state_universe",
    # Tracing
    "compute_input_fingerprint",
    "traced_engine",
]
