"""
gitgov_services.transition_gate -- Caller-side transition authorization.

Responsibility:
    Decides whether a task may move to ``context.transition_to`` given the
    signatures presented with the request.  Thin coordinator: transition
    lookup, signature eligibility and custom rules are delegated to the
    engines through ``WorkflowMethodologyAdapter``; this module only adds
    the quorum aggregation the engines deliberately leave to callers.

Architecture position:
    Services layer.  May import from gitgov_engines/ and gitgov_kernel/.

Invariants enforced:
    - Quorum counts are per signature group and distinct by actor id; an
      actor signing twice counts once.
    - ``QuorumMode.ANY``: groups are alternative approval paths, one
      satisfied group suffices.  ``QuorumMode.ALL``: every group must be
      satisfied.
    - Checks run in a fixed order (transition, trigger, custom rules,
      signatures); the first failing check decides the outcome.
    - Every check emits exactly one ``workflow_transition`` trace record.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

from gitgov_kernel.domain.methodology import TransitionRequirement
from gitgov_kernel.domain.records import ActorRecord, Signature, ValidationContext
from gitgov_kernel.logging_config import LogContext, get_logger
from gitgov_services.workflow_methodology import WorkflowMethodologyAdapter

logger = get_logger("services.transition_gate")

# Trace message and outcome codes for structured logging and traceability
TRACE_TYPE_WORKFLOW_TRANSITION = "WORKFLOW_TRANSITION"
OUTCOME_ALLOWED = "allowed"
OUTCOME_NO_TRANSITION = "no_transition"
OUTCOME_TRIGGER_MISMATCH = "trigger_mismatch"
OUTCOME_CUSTOM_RULES_FAILED = "custom_rules_failed"
OUTCOME_SIGNATURES_MISSING = "signatures_missing"


class QuorumMode(str, Enum):
    """How signature groups combine."""

    ANY = "any"
    ALL = "all"


@dataclass(frozen=True)
class SignedBy:
    """A verified signature together with the actor who produced it."""

    signature: Signature
    actor: ActorRecord


@dataclass(frozen=True)
class TransitionCheck:
    """Outcome of a gate check.

    ``missing_signatures`` holds one label per unsatisfied group that
    blocks the transition: the group's capability roles joined by ``|``
    (e.g. ``approver:product``).
    """

    allowed: bool
    outcome: str
    requirement: TransitionRequirement | None = None
    group_counts: Mapping[str, int] = field(default_factory=dict)
    missing_signatures: tuple[str, ...] = ()
    reasons: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "group_counts", MappingProxyType(dict(self.group_counts)))
        object.__setattr__(self, "missing_signatures", tuple(self.missing_signatures))
        object.__setattr__(self, "reasons", tuple(self.reasons))


def _emit_workflow_trace(
    methodology_name: str,
    task_id: str,
    from_state: str,
    to_state: str | None,
    outcome: str,
    reason: str,
    duration_ms: float,
    trigger: str | None = None,
    group_counts: Mapping[str, int] | None = None,
    outcome_sink: Callable[[dict], None] | None = None,
) -> None:
    """Emit a structured workflow transition record for traceability."""
    record: dict[str, Any] = {
        "trace_type": TRACE_TYPE_WORKFLOW_TRANSITION,
        "ts": datetime.now(UTC).isoformat(),
        "methodology_name": methodology_name,
        "entity_type": "task",
        "entity_id": task_id,
        "from_state": from_state,
        "outcome": outcome,
        "reason": reason,
        "duration_ms": round(duration_ms, 3),
    }
    if to_state is not None:
        record["to_state"] = to_state
    if trigger is not None:
        record["trigger"] = trigger
    if group_counts:
        record["group_counts"] = dict(group_counts)
    record.update(LogContext.get_all())
    # LogRecord reserves "message"; use log msg as first arg, not in extra
    extra_for_log = {k: v for k, v in record.items() if k != "message"}
    logger.info("workflow_transition", extra=extra_for_log)
    record["message"] = "workflow_transition"
    if outcome_sink is not None:
        outcome_sink(record)


def _missing_label(capability_roles: tuple[str, ...]) -> str:
    return "|".join(capability_roles)


class TransitionGate:
    """Aggregates engine answers into one allow/deny decision."""

    def __init__(
        self,
        adapter: WorkflowMethodologyAdapter,
        quorum_mode: QuorumMode = QuorumMode.ANY,
        outcome_sink: Callable[[dict], None] | None = None,
    ) -> None:
        self._adapter = adapter
        self._quorum_mode = QuorumMode(quorum_mode)
        self._outcome_sink = outcome_sink

    @property
    def quorum_mode(self) -> QuorumMode:
        return self._quorum_mode

    def count_signatures(
        self,
        requirement: TransitionRequirement,
        context: ValidationContext,
        signed: tuple[SignedBy, ...] | list[SignedBy],
    ) -> dict[str, int]:
        """Distinct eligible signers per signature group."""
        signers: dict[str, set[str]] = {group: set() for group in requirement.signatures}
        for item in signed:
            if not isinstance(item, SignedBy):
                raise TypeError(f"signed entries must be SignedBy, got {type(item).__name__}")
            eligibility = self._adapter.evaluate_signature(
                item.signature, replace(context, actor=item.actor)
            )
            for group in eligibility.groups:
                signers[group].add(item.actor.id)
        return {group: len(actors) for group, actors in signers.items()}

    def check(
        self,
        context: ValidationContext,
        signed: tuple[SignedBy, ...] | list[SignedBy] = (),
        trigger: str | None = None,
    ) -> TransitionCheck:
        """Decide whether ``context.task`` may move to ``context.transition_to``.

        Args:
            context: Task, target state and entity data for rule evaluation.
            signed: Verified signatures with their signing actors.
            trigger: The command or event driving the transition, if known.

        Returns:
            TransitionCheck with the outcome and, when signatures are
            lacking, the labels of the groups still to be satisfied.
        """
        t0 = time.monotonic()
        model = self._adapter.model
        from_state = context.task.status
        to_state = context.transition_to

        with LogContext.bind(task_id=context.task.id, methodology=model.name):
            check = self._evaluate(context, tuple(signed), trigger)
            _emit_workflow_trace(
                methodology_name=model.name,
                task_id=context.task.id,
                from_state=from_state,
                to_state=to_state,
                outcome=check.outcome,
                reason="; ".join(check.reasons),
                duration_ms=(time.monotonic() - t0) * 1000,
                trigger=trigger,
                group_counts=check.group_counts,
                outcome_sink=self._outcome_sink,
            )
        return check

    def _evaluate(
        self,
        context: ValidationContext,
        signed: tuple[SignedBy, ...],
        trigger: str | None,
    ) -> TransitionCheck:
        from_state = context.task.status
        to_state = context.transition_to

        # 1. The edge must exist
        requirement = (
            self._adapter.resolve_transition(from_state, to_state, context)
            if to_state is not None
            else None
        )
        if requirement is None:
            return TransitionCheck(
                allowed=False,
                outcome=OUTCOME_NO_TRANSITION,
                reasons=(f"No transition from '{from_state}' to '{to_state}'",),
            )

        # 2. The trigger must match the declared command or event
        declared = tuple(t for t in (requirement.command, requirement.event) if t is not None)
        if trigger is not None and declared and trigger not in declared:
            return TransitionCheck(
                allowed=False,
                outcome=OUTCOME_TRIGGER_MISMATCH,
                requirement=requirement,
                reasons=(
                    f"Trigger '{trigger}' does not match required "
                    f"{' / '.join(repr(t) for t in declared)}",
                ),
            )

        # 3. Custom rules
        if not self._adapter.are_custom_rules_satisfied(requirement.custom_rules, context):
            return TransitionCheck(
                allowed=False,
                outcome=OUTCOME_CUSTOM_RULES_FAILED,
                requirement=requirement,
                reasons=(
                    f"Custom rules not satisfied: {', '.join(requirement.custom_rules)}",
                ),
            )

        # 4. Signature quorum
        if not requirement.signatures:
            return TransitionCheck(
                allowed=True,
                outcome=OUTCOME_ALLOWED,
                requirement=requirement,
                reasons=("No signatures required",),
            )

        counts = self.count_signatures(requirement, context, signed)
        unsatisfied = [
            (group, req)
            for group, req in requirement.signatures.items()
            if counts[group] < req.min_approvals
        ]
        satisfied_any = len(unsatisfied) < len(requirement.signatures)

        if self._quorum_mode is QuorumMode.ANY and satisfied_any:
            allowed = True
        else:
            allowed = not unsatisfied

        if allowed:
            return TransitionCheck(
                allowed=True,
                outcome=OUTCOME_ALLOWED,
                requirement=requirement,
                group_counts=counts,
                reasons=("Signature quorum met",),
            )
        return TransitionCheck(
            allowed=False,
            outcome=OUTCOME_SIGNATURES_MISSING,
            requirement=requirement,
            group_counts=counts,
            missing_signatures=tuple(
                _missing_label(req.capability_roles) for _, req in unsatisfied
            ),
            reasons=tuple(
                f"Group '{group}' has {counts[group]}/{req.min_approvals} eligible signatures"
                for group, req in unsatisfied
            ),
        )
