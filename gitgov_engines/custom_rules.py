"""
gitgov_engines.custom_rules -- Custom business rule engine.

Responsibility:
    Evaluate the named custom rules a transition requires against a
    ``ValidationContext``.  Rules are declared in the methodology
    (``custom_rules``) and dispatched by their ``validation`` kind to a
    built-in validator, or, for ``custom`` rules, to a validator registered
    under a lookup key in a ``CustomRuleRegistry``.

Architecture position:
    Engines -- pure evaluation layer, zero I/O.
    May only import gitgov_kernel/domain/ types and sibling engines.

Invariants enforced:
    - Conjunction: every named rule must hold; an empty list holds.
    - Fail closed: an unknown rule name, an unregistered custom key, or a
      validator that raises makes the rule unsatisfied.  Each of these is
      logged; unknown rule names are also reported to the diagnostic sink.
      Malformed parameters are a configuration error and are raised instead.
    - Configuration never supplies code: ``module_path`` and ``expression``
      are registry keys, nothing is imported or evaluated from them.
    - Validators are pure functions ``(context, parameters) -> bool``.

Failure modes:
    - ``TypeError`` when ``rule_names`` is not a list/tuple of strings or
      ``context`` is not a ``ValidationContext`` (caller contract
      violation).
    - ``InvalidRuleParametersError`` when a built-in validator is handed
      malformed ``parameters`` (configuration error).  Everything else is
      a ``False`` result.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from gitgov_engines.tracer import traced_engine
from gitgov_kernel.domain.methodology import CustomRuleDef, MethodologyModel, ValidationKind
from gitgov_kernel.domain.records import ValidationContext
from gitgov_kernel.exceptions import InvalidRuleParametersError
from gitgov_kernel.logging_config import get_logger

logger = get_logger("engines.custom_rules")

CustomValidator = Callable[[ValidationContext, Mapping[str, Any]], bool]
DiagnosticSink = Callable[[dict[str, Any]], None]

DEFAULT_EPIC_TAG_PREFIX = "epic:"


# ---------------------------------------------------------------------------
# Built-in validators, one per ValidationKind
# ---------------------------------------------------------------------------


def assignment_required(context: ValidationContext, parameters: Mapping[str, Any]) -> bool:
    """A resolved assignment feedback exists for this task."""
    return any(
        fb.entity_type == "task"
        and fb.type == "assignment"
        and fb.status == "resolved"
        and fb.entity_id == context.task.id
        for fb in context.feedbacks
    )


def sprint_capacity(context: ValidationContext, parameters: Mapping[str, Any]) -> bool:
    """The task belongs to an active cycle (within ``max_tasks`` if given)."""
    max_tasks = parameters.get("max_tasks")
    if max_tasks is not None and (isinstance(max_tasks, bool) or not isinstance(max_tasks, int)):
        raise InvalidRuleParametersError("max_tasks", max_tasks, "an int")

    task_cycles = set(context.task.cycle_ids)
    for cycle in context.cycles:
        if cycle.status != "active" or cycle.id not in task_cycles:
            continue
        if max_tasks is None or len(cycle.task_ids) <= max_tasks:
            return True
    return False


def epic_complexity(context: ValidationContext, parameters: Mapping[str, Any]) -> bool:
    """Epics may only move on once paused and decomposed into cycles."""
    prefix = parameters.get("epic_tag_prefix", DEFAULT_EPIC_TAG_PREFIX)
    task = context.task
    if not any(tag.startswith(prefix) for tag in task.tags):
        return True
    return task.status == "paused" and len(task.cycle_ids) > 0


_KIND_VALIDATORS: dict[ValidationKind, CustomValidator] = {
    ValidationKind.ASSIGNMENT_REQUIRED: assignment_required,
    ValidationKind.SPRINT_CAPACITY: sprint_capacity,
    ValidationKind.EPIC_COMPLEXITY: epic_complexity,
}


# ---------------------------------------------------------------------------
# Registered validators for ``custom`` rules
# ---------------------------------------------------------------------------


def task_has_tags(context: ValidationContext, parameters: Mapping[str, Any]) -> bool:
    """Task carries every tag in ``parameters.tags`` (any tag when unset)."""
    required = parameters.get("tags")
    if required is None:
        return len(context.task.tags) > 0
    if isinstance(required, str) or not isinstance(required, (list, tuple)):
        raise InvalidRuleParametersError("tags", required, "a list of tags")
    return all(tag in context.task.tags for tag in required)


def no_open_blocking_feedback(context: ValidationContext, parameters: Mapping[str, Any]) -> bool:
    """No open blocking feedback is attached to the task."""
    return not any(
        fb.type == "blocking" and fb.status == "open" and fb.entity_id == context.task.id
        for fb in context.feedbacks
    )


def actor_has_capability(context: ValidationContext, parameters: Mapping[str, Any]) -> bool:
    """The acting actor holds one of ``parameters.roles``."""
    if context.actor is None:
        return False
    return context.actor.has_any_role(tuple(parameters["roles"]))


class CustomRuleRegistry:
    """Validators for ``custom`` rules, keyed by the rule's lookup key.

    The key is the rule's ``module_path``, else its ``expression``, else
    the rule name.
    """

    def __init__(self) -> None:
        self._validators: dict[str, CustomValidator] = {}

    def register(self, key: str, validator: CustomValidator) -> None:
        """Register ``validator`` under ``key`` (replacing any previous one)."""
        if not isinstance(key, str) or not key:
            raise ValueError("Custom rule key must be a non-empty string")
        if not callable(validator):
            raise TypeError(f"Validator for '{key}' must be callable")
        self._validators[key] = validator

    def get(self, key: str) -> CustomValidator | None:
        return self._validators.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._validators

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(self._validators)


def default_rule_registry() -> CustomRuleRegistry:
    """Return a CustomRuleRegistry with the built-in custom validators."""
    registry = CustomRuleRegistry()
    registry.register("task_has_tags", task_has_tags)
    registry.register("no_open_blocking_feedback", no_open_blocking_feedback)
    registry.register("actor_has_capability", actor_has_capability)
    return registry


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def _report_unknown_rule(
    model: MethodologyModel,
    rule_name: str,
    context: ValidationContext,
    diagnostic_sink: DiagnosticSink | None,
) -> None:
    record = {
        "event": "custom_rule_unknown",
        "rule_name": rule_name,
        "methodology_name": model.name,
        "task_id": context.task.id,
    }
    logger.warning("custom_rule_unknown", extra={k: v for k, v in record.items() if k != "event"})
    if diagnostic_sink is not None:
        diagnostic_sink(record)


def _resolve_validator(
    rule_name: str,
    rule: CustomRuleDef,
    registry: CustomRuleRegistry,
) -> CustomValidator | None:
    if rule.validation is not ValidationKind.CUSTOM:
        return _KIND_VALIDATORS[rule.validation]
    key = rule.validator_key or rule_name
    validator = registry.get(key)
    if validator is None:
        logger.warning(
            "custom_rule_unregistered",
            extra={"rule_name": rule_name, "validator_key": key},
        )
    return validator


def evaluate_rule(
    rule_name: str,
    rule: CustomRuleDef,
    context: ValidationContext,
    registry: CustomRuleRegistry | None = None,
) -> bool:
    """Evaluate one defined rule.

    Raises:
        InvalidRuleParametersError: the rule's parameters are malformed.
    """
    if registry is None:
        registry = default_rule_registry()
    validator = _resolve_validator(rule_name, rule, registry)
    if validator is None:
        return False
    try:
        return bool(validator(context, rule.parameters))
    except InvalidRuleParametersError:
        raise
    except Exception as e:  # noqa: BLE001
        logger.warning(
            "custom_rule_error",
            extra={
                "rule_name": rule_name,
                "validation": rule.validation.value,
                "error": str(e),
            },
        )
        return False


@traced_engine("custom_rules", "1.0", ("rule_names", "context"))
def are_custom_rules_satisfied(
    model: MethodologyModel,
    rule_names: Sequence[str],
    context: ValidationContext,
    registry: CustomRuleRegistry | None = None,
    diagnostic_sink: DiagnosticSink | None = None,
) -> bool:
    """True when every named rule holds for ``context``.

    Args:
        model: Methodology declaring the rules.
        rule_names: Names from a transition's ``requires.custom_rules``.
        context: Entity data for this evaluation.
        registry: Validators for ``custom`` rules (default: built-ins).
        diagnostic_sink: Called with a record for each unknown rule name.
    """
    if isinstance(rule_names, str) or not isinstance(rule_names, (list, tuple)):
        raise TypeError(f"rule_names must be a list of strings, got {type(rule_names).__name__}")
    for name in rule_names:
        if not isinstance(name, str):
            raise TypeError(f"rule names must be strings, got {name!r}")
    if not isinstance(context, ValidationContext):
        raise TypeError(f"context must be a ValidationContext, got {type(context).__name__}")

    if not rule_names:
        return True

    if registry is None:
        registry = default_rule_registry()
    for name in rule_names:
        rule = model.custom_rules.get(name)
        if rule is None:
            _report_unknown_rule(model, name, context, diagnostic_sink)
            return False
        if not evaluate_rule(name, rule, context, registry):
            return False
    return True
