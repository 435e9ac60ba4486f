"""
Workflow methodology model (``gitgov_kernel.domain.methodology``).

Responsibility
--------------
Pure value objects for a declarative workflow methodology: the transition
graph, the requirements attached to each edge (command, event, custom rules,
signature groups), custom rule definitions, and board view templates.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``gitgov_config``, ``gitgov_engines`` or ``gitgov_services``.
Parsing from JSON/YAML lives in ``gitgov_config.loader``.

Invariants enforced
-------------------
* The graph is keyed by *destination* state: ``state_transitions[to]``
  holds the rule reaching ``to`` and the origin states it accepts.
* Every state name (keys and ``from`` entries) is a non-empty identifier
  matching ``STATE_NAME_PATTERN``.
* ``TransitionRule.from_states`` and ``SignatureRequirement.capability_roles``
  are non-empty; ``min_approvals >= 1``.
* Only ``ValidationKind.CUSTOM`` rules may carry ``expression`` or
  ``module_path``, and those are lookup keys, never code.
* All mappings are exposed read-only; a model is immutable once built.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

STATE_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")

_SEMVER_PATTERN = re.compile(
    r"^\d+\.\d+\.\d+(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$"
)

_ACTOR_TYPES = ("human", "agent")


def _frozen_mapping(value: Mapping[str, Any] | None) -> Mapping[str, Any]:
    if value is None:
        return MappingProxyType({})
    if isinstance(value, MappingProxyType):
        return value
    return MappingProxyType(dict(value))


def _check_state_name(state: str, where: str) -> None:
    if not isinstance(state, str) or not STATE_NAME_PATTERN.match(state):
        raise ValueError(f"Invalid state name {state!r} in {where}")


class ValidationKind(str, Enum):
    """Validator families a custom rule can dispatch to."""

    ASSIGNMENT_REQUIRED = "assignment_required"
    SPRINT_CAPACITY = "sprint_capacity"
    EPIC_COMPLEXITY = "epic_complexity"
    CUSTOM = "custom"


# =========================================================================
# Signature groups and transition requirements
# =========================================================================


@dataclass(frozen=True)
class SignatureRequirement:
    """One signature group on a transition.

    ``role`` is matched against a presented signature's declared role;
    ``capability_roles`` against the signing actor's granted roles.
    ``min_approvals`` is the quorum, counted by the caller.
    """

    role: str
    capability_roles: tuple[str, ...]
    min_approvals: int = 1
    actor_type: str | None = None
    specific_actors: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if not self.role:
            raise ValueError("Signature requirement role must be non-empty")
        object.__setattr__(self, "capability_roles", tuple(self.capability_roles))
        if not self.capability_roles:
            raise ValueError(
                f"Signature requirement '{self.role}' needs at least one capability role"
            )
        if isinstance(self.min_approvals, bool) or not isinstance(self.min_approvals, int):
            raise ValueError(f"min_approvals must be an int, got {self.min_approvals!r}")
        if self.min_approvals < 1:
            raise ValueError(f"min_approvals must be >= 1, got {self.min_approvals}")
        if self.actor_type is not None and self.actor_type not in _ACTOR_TYPES:
            raise ValueError(f"Invalid actor_type: {self.actor_type!r}")
        if self.specific_actors is not None:
            object.__setattr__(self, "specific_actors", tuple(self.specific_actors))


@dataclass(frozen=True)
class TransitionRequirement:
    """What must hold before a transition is accepted.

    ``command`` and ``event`` are not mutually exclusive.  A requirement
    with nothing set is vacuously satisfied.
    """

    command: str | None = None
    event: str | None = None
    custom_rules: tuple[str, ...] = ()
    signatures: Mapping[str, SignatureRequirement] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "custom_rules", tuple(self.custom_rules))
        object.__setattr__(self, "signatures", _frozen_mapping(self.signatures))

    @property
    def is_vacuous(self) -> bool:
        return (
            self.command is None
            and self.event is None
            and not self.custom_rules
            and not self.signatures
        )


@dataclass(frozen=True)
class TransitionRule:
    """Edge set reaching one destination state."""

    from_states: tuple[str, ...]
    requires: TransitionRequirement = field(default_factory=TransitionRequirement)

    def __post_init__(self) -> None:
        object.__setattr__(self, "from_states", tuple(self.from_states))
        if not self.from_states:
            raise ValueError("Transition rule needs at least one 'from' state")
        for state in self.from_states:
            _check_state_name(state, "transition 'from'")

    def accepts(self, from_state: str) -> bool:
        return from_state in self.from_states


# =========================================================================
# Custom rules, views, agent integration
# =========================================================================


@dataclass(frozen=True)
class CustomRuleDef:
    """Declarative business rule referenced by name from transitions."""

    description: str
    validation: ValidationKind
    parameters: Mapping[str, Any] = field(default_factory=dict)
    expression: str | None = None
    module_path: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "validation", ValidationKind(self.validation))
        object.__setattr__(self, "parameters", _frozen_mapping(self.parameters))
        if self.validation is not ValidationKind.CUSTOM and (
            self.expression is not None or self.module_path is not None
        ):
            raise ValueError(
                f"Only 'custom' rules may declare expression/module_path "
                f"(validation={self.validation.value})"
            )

    @property
    def validator_key(self) -> str | None:
        """Registry key for ``custom`` rules: module_path first, then expression."""
        return self.module_path or self.expression


@dataclass(frozen=True)
class ViewConfig:
    """Board layout: column label -> states shown in that column."""

    columns: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    theme: str | None = None
    layout: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "columns",
            MappingProxyType({label: tuple(states) for label, states in self.columns.items()}),
        )


@dataclass(frozen=True)
class AgentIntegrationConfig:
    """References to agents a methodology expects; details live in agent records."""

    description: str | None = None
    required_agents: tuple[Mapping[str, Any], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "required_agents",
            tuple(_frozen_mapping(agent) for agent in self.required_agents),
        )


# =========================================================================
# Methodology
# =========================================================================


@dataclass(frozen=True)
class MethodologyModel:
    """A complete, immutable workflow methodology.

    Contract: ``state_transitions`` is keyed by destination state.
    Guarantees: every state name in the graph matches ``STATE_NAME_PATTERN``
    and ``version`` is a semantic version.
    Non-goals: cross-reference checks (rules referenced but undefined,
    unreachable quorums) belong to ``gitgov_config.validator``.
    """

    version: str
    name: str
    state_transitions: Mapping[str, TransitionRule] = field(default_factory=dict)
    description: str | None = None
    custom_rules: Mapping[str, CustomRuleDef] = field(default_factory=dict)
    view_configs: Mapping[str, ViewConfig] = field(default_factory=dict)
    agent_integration: AgentIntegrationConfig | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.version, str) or not _SEMVER_PATTERN.match(self.version):
            raise ValueError(f"Methodology version must be semver, got {self.version!r}")
        if not self.name:
            raise ValueError("Methodology name must be non-empty")
        for to_state in self.state_transitions:
            _check_state_name(to_state, "state_transitions")
        object.__setattr__(
            self, "state_transitions", _frozen_mapping(self.state_transitions)
        )
        object.__setattr__(self, "custom_rules", _frozen_mapping(self.custom_rules))
        object.__setattr__(self, "view_configs", _frozen_mapping(self.view_configs))

    @property
    def graph_states(self) -> tuple[str, ...]:
        """Every state named by the graph, in first-seen declaration order."""
        seen: dict[str, None] = {}
        for to_state, rule in self.state_transitions.items():
            seen.setdefault(to_state)
            for from_state in rule.from_states:
                seen.setdefault(from_state)
        return tuple(seen)
