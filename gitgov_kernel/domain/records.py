"""
Record value objects consumed by evaluation (``gitgov_kernel.domain.records``).

Responsibility
--------------
Minimal, immutable views of the protocol records the authorization engine
reads: tasks, actors, signatures, feedback and cycles, plus the per-call
``ValidationContext`` that bundles them.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  Records arrive already
retrieved and cryptographically verified; this module neither loads nor
verifies anything.

Invariants enforced
-------------------
* ``ValidationContext.task`` is always present (programmer error otherwise).
* Collections are tuples; a context is owned by a single call.
"""

from __future__ import annotations

from dataclasses import dataclass

from gitgov_kernel.exceptions import ValidationContextError

TASK_STATUSES: tuple[str, ...] = (
    "draft",
    "review",
    "ready",
    "active",
    "done",
    "archived",
    "paused",
    "discarded",
)

ACTOR_TYPES: tuple[str, ...] = ("human", "agent")


@dataclass(frozen=True)
class TaskRecord:
    """Unit of work whose ``status`` moves through the methodology graph."""

    id: str
    title: str
    status: str
    priority: str = "medium"
    description: str = ""
    tags: tuple[str, ...] = ()
    cycle_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "cycle_ids", tuple(self.cycle_ids))


@dataclass(frozen=True)
class ActorRecord:
    """A human or agent identity and the capability roles it was granted."""

    id: str
    type: str
    display_name: str = ""
    roles: tuple[str, ...] = ()
    status: str = "active"

    def __post_init__(self) -> None:
        object.__setattr__(self, "roles", tuple(self.roles))

    def has_any_role(self, roles: tuple[str, ...]) -> bool:
        return any(role in roles for role in self.roles)


@dataclass(frozen=True)
class Signature:
    """A signature entry from a record header. Bytes are verified upstream."""

    key_id: str
    role: str
    notes: str = ""
    signature: str = ""
    timestamp: int = 0


@dataclass(frozen=True)
class FeedbackRecord:
    """Feedback attached to an entity (assignment, blocking, suggestion...)."""

    id: str
    entity_type: str
    entity_id: str
    type: str
    status: str
    content: str = ""
    assignee: str | None = None


@dataclass(frozen=True)
class CycleRecord:
    """Planning cycle (sprint, milestone) grouping tasks."""

    id: str
    status: str
    title: str = ""
    task_ids: tuple[str, ...] = ()
    child_cycle_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "task_ids", tuple(self.task_ids))
        object.__setattr__(self, "child_cycle_ids", tuple(self.child_cycle_ids))


@dataclass(frozen=True)
class ValidationContext:
    """Read-only bundle of entity data supplied fresh for one evaluation call.

    Not every field is needed by every operation: transition resolution
    ignores the context, signature eligibility needs ``actor`` and
    ``transition_to``, custom rules read ``feedbacks`` and ``cycles``.
    """

    task: TaskRecord
    actor: ActorRecord | None = None
    signatures: tuple[Signature, ...] = ()
    transition_to: str | None = None
    feedbacks: tuple[FeedbackRecord, ...] = ()
    cycles: tuple[CycleRecord, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.task, TaskRecord):
            raise ValidationContextError("task", f"expected TaskRecord, got {type(self.task).__name__}")
        object.__setattr__(self, "signatures", tuple(self.signatures))
        object.__setattr__(self, "feedbacks", tuple(self.feedbacks))
        object.__setattr__(self, "cycles", tuple(self.cycles))
