"""
Pure domain layer.

This module contains immutable value objects with NO dependencies on:
- File system or project discovery
- Configuration loading
- Time/clock
- I/O

All domain objects are frozen and deterministic.
"""

from gitgov_kernel.domain.methodology import (
    STATE_NAME_PATTERN,
    AgentIntegrationConfig,
    CustomRuleDef,
    MethodologyModel,
    SignatureRequirement,
    TransitionRequirement,
    TransitionRule,
    ValidationKind,
    ViewConfig,
)
from gitgov_kernel.domain.methodology_source import (
    LoadStatus,
    MethodologyLoadResult,
    MethodologySource,
)
from gitgov_kernel.domain.records import (
    ACTOR_TYPES,
    TASK_STATUSES,
    ActorRecord,
    CycleRecord,
    FeedbackRecord,
    Signature,
    TaskRecord,
    ValidationContext,
)

__all__ = [
    "ACTOR_TYPES",
    "STATE_NAME_PATTERN",
    "TASK_STATUSES",
    "ActorRecord",
    "AgentIntegrationConfig",
    "CustomRuleDef",
    "CycleRecord",
    "FeedbackRecord",
    "LoadStatus",
    "MethodologyLoadResult",
    "MethodologySource",
    "MethodologyModel",
    "Signature",
    "SignatureRequirement",
    "TaskRecord",
    "TransitionRequirement",
    "TransitionRule",
    "ValidationContext",
    "ValidationKind",
    "ViewConfig",
]
