"""
gitgov_engines.transitions -- Transition graph resolver.

Responsibility:
    Answer "is ``from -> to`` a legal edge in this methodology, and if so
    what does it require?", and list the edges leaving a state.

Architecture position:
    Engines -- pure evaluation layer, zero I/O.
    May only import gitgov_kernel/domain/ types.

Invariants enforced:
    - Lookup is by destination state; an edge exists only when
      ``from_state`` is listed in that destination's ``from_states``.
    - No closure: ``x -> x`` is legal only when declared, and chains of
      edges are never collapsed into one.
    - The returned requirement is the model's own (immutable) object.

Failure modes:
    - Returns ``None`` for unknown destinations and undeclared edges;
      never raises for well-typed input.
"""

from __future__ import annotations

from dataclasses import dataclass

from gitgov_engines.tracer import traced_engine
from gitgov_kernel.domain.methodology import MethodologyModel, TransitionRequirement
from gitgov_kernel.domain.records import ValidationContext


@dataclass(frozen=True)
class AvailableTransition:
    """One edge leaving a state."""

    to_state: str
    requires: TransitionRequirement


@traced_engine("transition_resolver", "1.0", ("from_state", "to_state"))
def resolve_transition(
    model: MethodologyModel,
    from_state: str,
    to_state: str,
    context: ValidationContext | None = None,
) -> TransitionRequirement | None:
    """Return the requirement guarding ``from_state -> to_state``.

    Args:
        model: Methodology to consult.
        from_state: Current state.
        to_state: Requested state.
        context: Accepted for context-dependent resolution; currently unused.

    Returns:
        The rule's ``TransitionRequirement``, or ``None`` when the edge is
        not declared.
    """
    rule = model.state_transitions.get(to_state)
    if rule is None or not rule.accepts(from_state):
        return None
    return rule.requires


def available_transitions(
    model: MethodologyModel, from_state: str
) -> tuple[AvailableTransition, ...]:
    """Edges leaving ``from_state``, in declaration order."""
    return tuple(
        AvailableTransition(to_state=to_state, requires=rule.requires)
        for to_state, rule in model.state_transitions.items()
        if rule.accepts(from_state)
    )
