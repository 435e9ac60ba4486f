"""
Tests for the record value objects and ValidationContext
(gitgov_kernel.domain.records and gitgov_kernel.domain.methodology_source).
"""

import pytest

from gitgov_kernel.domain.methodology import MethodologyModel, TransitionRule
from gitgov_kernel.domain.methodology_source import (
    LoadStatus,
    MethodologyLoadResult,
    MethodologySource,
)
from gitgov_kernel.domain.records import (
    TASK_STATUSES,
    ActorRecord,
    CycleRecord,
    Signature,
    TaskRecord,
    ValidationContext,
)
from gitgov_kernel.exceptions import ValidationContextError


class TestTaskRecord:

    def test_sequences_normalized_to_tuples(self):
        task = TaskRecord(id="t-1", title="T", status="draft", tags=["a"], cycle_ids=["c"])

        assert task.tags == ("a",)
        assert task.cycle_ids == ("c",)

    def test_canonical_statuses(self):
        assert TASK_STATUSES == (
            "draft", "review", "ready", "active", "done", "archived", "paused", "discarded",
        )


class TestActorRecord:

    def test_has_any_role(self):
        actor = ActorRecord(id="human:alice", type="human", roles=["author", "approver:quality"])

        assert actor.has_any_role(("approver:quality", "approver:product"))
        assert not actor.has_any_role(("approver:design",))

    def test_no_roles_matches_nothing(self):
        assert not ActorRecord(id="agent:bot", type="agent").has_any_role(("author",))


class TestCycleRecord:

    def test_task_ids_normalized(self):
        cycle = CycleRecord(id="c-1", status="active", task_ids=["t-1", "t-2"])

        assert cycle.task_ids == ("t-1", "t-2")
        assert cycle.child_cycle_ids == ()


class TestValidationContext:

    def test_requires_task_record(self):
        with pytest.raises(ValidationContextError) as exc_info:
            ValidationContext(task=None)

        assert exc_info.value.field_name == "task"
        assert exc_info.value.code == "INVALID_VALIDATION_CONTEXT"

    def test_dict_task_rejected(self):
        with pytest.raises(ValidationContextError):
            ValidationContext(task={"id": "t-1", "status": "draft"})

    def test_collections_normalized(self):
        task = TaskRecord(id="t-1", title="T", status="review")
        context = ValidationContext(
            task=task,
            signatures=[Signature(key_id="human:alice", role="approver")],
        )

        assert isinstance(context.signatures, tuple)
        assert context.feedbacks == ()
        assert context.cycles == ()
        assert context.actor is None
        assert context.transition_to is None


class TestMethodologyLoadResult:

    def _model(self):
        return MethodologyModel(
            version="1.0.0",
            name="M",
            state_transitions={"review": TransitionRule(from_states=("draft",))},
        )

    def test_loaded_carries_model(self):
        result = MethodologyLoadResult.loaded(self._model())

        assert result.is_loaded
        assert result.status is LoadStatus.LOADED

    def test_failed_carries_reason(self):
        result = MethodologyLoadResult.failed(LoadStatus.NOT_FOUND, "missing")

        assert not result.is_loaded
        assert result.model is None
        assert result.reason == "missing"

    def test_loaded_without_model_rejected(self):
        with pytest.raises(ValueError):
            MethodologyLoadResult(status=LoadStatus.LOADED)

    def test_failure_with_model_rejected(self):
        with pytest.raises(ValueError):
            MethodologyLoadResult(status=LoadStatus.INVALID, model=self._model())

    def test_protocol_is_runtime_checkable(self):
        class _Source:
            def load(self):
                return MethodologyLoadResult.failed(LoadStatus.NOT_A_PROJECT, "no")

        assert isinstance(_Source(), MethodologySource)
        assert not isinstance(object(), MethodologySource)
