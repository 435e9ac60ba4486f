"""
Methodology Validator (``gitgov_config.validator``).

Responsibility
--------------
Cross-reference checks on a parsed ``MethodologyModel`` that the frozen
dataclasses cannot express on their own: rules referenced but never
defined, quorums that can never be reached, views and states that drift
away from the canonical task lifecycle.

Architecture position
---------------------
**Config layer** -- build-time validation.  Called by
``gitgov_config.build_methodology`` after parsing and before a model is
handed to the engine.

Invariants enforced
-------------------
* Rule coverage -- when a methodology declares a ``custom_rules`` section,
  every rule referenced by a transition must be defined there.
* Reachable quorum -- a signature group restricted to ``specific_actors``
  must list at least ``min_approvals`` actors.

Failure modes
-------------
* Errors (``MethodologyValidationResult.errors``) -> the methodology MUST
  NOT be used.
* Warnings -> usable, but should be reviewed.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from gitgov_kernel.domain.methodology import MethodologyModel, ValidationKind
from gitgov_kernel.domain.records import TASK_STATUSES


@dataclass
class MethodologyValidationResult:
    """
    Result of methodology validation.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    * Warnings do not block use but should be reviewed.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_methodology(model: MethodologyModel) -> MethodologyValidationResult:
    """
    Validate a methodology.

    Preconditions:
        - ``model`` is a fully parsed ``MethodologyModel``.
    Postconditions:
        - Returns a ``MethodologyValidationResult`` with errors and warnings.
    """
    result = MethodologyValidationResult()

    _validate_canonical_states(model, result)
    _validate_rule_references(model, result)
    _validate_signature_quorums(model, result)
    _validate_custom_rule_keys(model, result)
    _validate_view_states(model, result)

    return result


def _validate_canonical_states(
    model: MethodologyModel, result: MethodologyValidationResult
) -> None:
    """Warn about states outside the canonical task lifecycle."""
    for to_state, rule in model.state_transitions.items():
        if to_state not in TASK_STATUSES:
            result.add_warning(
                f"state_transitions.{to_state}: target state is not a canonical task status"
            )
        for from_state in rule.from_states:
            if from_state not in TASK_STATUSES:
                result.add_warning(
                    f"state_transitions.{to_state}.from: source state '{from_state}' "
                    f"is not a canonical task status"
                )


def _validate_rule_references(
    model: MethodologyModel, result: MethodologyValidationResult
) -> None:
    """Referenced custom rules must exist when the section is declared."""
    if not model.custom_rules:
        return
    for to_state, rule in model.state_transitions.items():
        for rule_id in rule.requires.custom_rules:
            if rule_id not in model.custom_rules:
                result.add_error(
                    f"state_transitions.{to_state}.requires.custom_rules: "
                    f"custom rule '{rule_id}' not defined in custom_rules section"
                )


def _validate_signature_quorums(
    model: MethodologyModel, result: MethodologyValidationResult
) -> None:
    """A group limited to specific actors must be able to reach its quorum."""
    for to_state, rule in model.state_transitions.items():
        for group, sig in rule.requires.signatures.items():
            if sig.specific_actors is None:
                continue
            if len(set(sig.specific_actors)) < sig.min_approvals:
                result.add_error(
                    f"state_transitions.{to_state}.requires.signatures.{group}: "
                    f"min_approvals={sig.min_approvals} exceeds the "
                    f"{len(set(sig.specific_actors))} specific actor(s) allowed to sign"
                )


def _validate_custom_rule_keys(
    model: MethodologyModel, result: MethodologyValidationResult
) -> None:
    """Custom rules without a lookup key fall back to their own name."""
    for rule_id, rule in model.custom_rules.items():
        if rule.validation is ValidationKind.CUSTOM and rule.validator_key is None:
            result.add_warning(
                f"custom_rules.{rule_id}: no module_path or expression; "
                f"the rule name is used as the validator key"
            )


def _validate_view_states(
    model: MethodologyModel, result: MethodologyValidationResult
) -> None:
    """View columns should only name states the lifecycle knows about."""
    known = set(TASK_STATUSES) | set(model.graph_states)
    for view, cfg in model.view_configs.items():
        for label, states in cfg.columns.items():
            for state in states:
                if state not in known:
                    result.add_warning(
                        f"view_configs.{view}.columns.{label}: unknown state '{state}'"
                    )
