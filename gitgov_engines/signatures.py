"""
gitgov_engines.signatures -- Signature eligibility evaluator.

Responsibility:
    Decide whether ONE presented signature may count toward authorizing the
    transition described by a ``ValidationContext``
    (``context.task.status -> context.transition_to``).

Architecture position:
    Engines -- pure evaluation layer, zero I/O.
    May only import gitgov_kernel/domain/ types and sibling engines.

Invariants enforced:
    - Groups are matched by the signature's declared ``role``; group keys
      are labels only.  Several groups may share a role: the signature is
      eligible when any of them accepts the actor.
    - A group accepts an actor only when every declared constraint holds:
      ``actor_type``, ``specific_actors`` membership and at least one
      shared capability role.
    - No cryptographic checks (signatures arrive verified) and no quorum
      counting (the caller aggregates per group).

Failure modes:
    - Ineligibility is a ``False`` result with a reason, never an exception.
    - ``TypeError`` when ``signature`` is not a ``Signature`` or ``context``
      is not a ``ValidationContext`` (caller contract violation).
"""

from __future__ import annotations

from dataclasses import dataclass

from gitgov_engines.tracer import traced_engine
from gitgov_engines.transitions import resolve_transition
from gitgov_kernel.domain.methodology import MethodologyModel, SignatureRequirement
from gitgov_kernel.domain.records import ActorRecord, Signature, ValidationContext

REASON_ELIGIBLE = "eligible"
REASON_NO_TARGET = "no_transition_target"
REASON_NO_TRANSITION = "transition_not_declared"
REASON_NO_SIGNATURES = "transition_requires_no_signatures"
REASON_NO_ROLE_GROUP = "no_group_for_role"
REASON_NO_ACTOR = "no_actor"
REASON_GROUP_REJECTED = "actor_rejected_by_all_groups"


@dataclass(frozen=True)
class SignatureEligibility:
    """Outcome of evaluating one signature.

    ``groups`` lists every signature group key the signature counts toward.
    It is empty whenever ``eligible`` is False.
    """

    eligible: bool
    groups: tuple[str, ...] = ()
    reason: str = REASON_ELIGIBLE


def group_accepts_actor(requirement: SignatureRequirement, actor: ActorRecord) -> bool:
    """Apply one group's actor constraints."""
    if requirement.actor_type is not None and actor.type != requirement.actor_type:
        return False
    if requirement.specific_actors is not None and actor.id not in requirement.specific_actors:
        return False
    return actor.has_any_role(requirement.capability_roles)


@traced_engine("signature_eligibility", "1.0", ("signature", "context"))
def evaluate_signature(
    model: MethodologyModel,
    signature: Signature,
    context: ValidationContext,
) -> SignatureEligibility:
    """Evaluate ``signature`` against the transition in ``context``.

    Returns:
        ``SignatureEligibility`` naming the accepting groups, or the first
        reason the signature was rejected.
    """
    if not isinstance(signature, Signature):
        raise TypeError(f"signature must be a Signature, got {type(signature).__name__}")
    if not isinstance(context, ValidationContext):
        raise TypeError(f"context must be a ValidationContext, got {type(context).__name__}")

    if context.transition_to is None:
        return SignatureEligibility(False, reason=REASON_NO_TARGET)

    requirement = resolve_transition(model, context.task.status, context.transition_to, context)
    if requirement is None:
        return SignatureEligibility(False, reason=REASON_NO_TRANSITION)
    if not requirement.signatures:
        return SignatureEligibility(False, reason=REASON_NO_SIGNATURES)

    candidates = [
        (group, req)
        for group, req in requirement.signatures.items()
        if req.role == signature.role
    ]
    if not candidates:
        return SignatureEligibility(False, reason=REASON_NO_ROLE_GROUP)

    actor = context.actor
    if actor is None:
        return SignatureEligibility(False, reason=REASON_NO_ACTOR)

    accepted = tuple(group for group, req in candidates if group_accepts_actor(req, actor))
    if not accepted:
        return SignatureEligibility(False, reason=REASON_GROUP_REJECTED)
    return SignatureEligibility(True, groups=accepted)


def is_signature_eligible(
    model: MethodologyModel,
    signature: Signature,
    context: ValidationContext,
) -> bool:
    """Boolean form of ``evaluate_signature``."""
    return evaluate_signature(model, signature, context).eligible
