"""
gitgov_services -- Package init and public API.

Responsibility:
    Composes the pure evaluation engines (gitgov_engines/) with methodology
    resolution (gitgov_config/).  This is the **only** layer that may
    trigger file I/O (lazily, through a ``MethodologySource``) or read the
    wall clock.

Architecture position:
    Services -- orchestration over engines + config + kernel.

    Dependency direction (enforced by tests/architecture/test_layer_boundaries.py):
        gitgov_services/ -> gitgov_engines/  (allowed)
        gitgov_services/ -> gitgov_config/   (allowed)
        gitgov_services/ -> gitgov_kernel/   (allowed)
        gitgov_engines/  -> gitgov_services/ (FORBIDDEN)
        gitgov_kernel/   -> gitgov_services/ (FORBIDDEN)

Invariants enforced:
    - Layer isolation: gitgov_kernel and gitgov_engines must never import
      from this package.
    - Evaluation never raises for business negatives; a broken project
      methodology degrades to the built-in default.

Audit relevance:
    - This package is the canonical import surface for external consumers.
      Changes to __all__ must be reviewed for backwards-compatibility.
"""

from gitgov_kernel.logging_config import get_logger

logger = get_logger("services")

from gitgov_services.transition_gate import (
    QuorumMode,
    SignedBy,
    TransitionCheck,
    TransitionGate,
)
from gitgov_services.workflow_methodology import (
    MethodologyOrigin,
    WorkflowMethodologyAdapter,
)

__all__ = [
    "MethodologyOrigin",
    "QuorumMode",
    "SignedBy",
    "TransitionCheck",
    "TransitionGate",
    "WorkflowMethodologyAdapter",
]
