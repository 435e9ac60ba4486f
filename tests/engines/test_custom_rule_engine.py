"""
Tests for the custom rule engine (gitgov_engines.custom_rules).

Tests cover:
- are_custom_rules_satisfied: conjunction, vacuous truth, unknown rules
- Built-in kinds: assignment_required, sprint_capacity, epic_complexity
- custom rules: registry lookup by module_path / expression / rule name,
  unregistered keys and raising validators fail closed
- Malformed rule parameters raise InvalidRuleParametersError
- Diagnostics: logging and the optional sink
"""

import pytest

from gitgov_engines.custom_rules import (
    CustomRuleRegistry,
    are_custom_rules_satisfied,
    default_rule_registry,
    evaluate_rule,
)
from gitgov_kernel.domain.methodology import (
    CustomRuleDef,
    MethodologyModel,
    TransitionRule,
    ValidationKind,
)
from gitgov_kernel.domain.records import (
    ActorRecord,
    CycleRecord,
    FeedbackRecord,
    TaskRecord,
    ValidationContext,
)
from gitgov_kernel.exceptions import InvalidRuleParametersError


# =========================================================================
# Factory helpers
# =========================================================================


def make_task(task_id="task-1", status="ready", tags=(), cycle_ids=()):
    return TaskRecord(id=task_id, title="Task", status=status, tags=tags, cycle_ids=cycle_ids)


def make_feedback(entity_id="task-1", type="assignment", status="resolved", entity_type="task"):
    return FeedbackRecord(
        id=f"fb-{type}-{status}",
        entity_type=entity_type,
        entity_id=entity_id,
        type=type,
        status=status,
        assignee="human:alice",
    )


def make_context(task=None, **kwargs):
    return ValidationContext(task=task or make_task(), **kwargs)


def make_model(rules: dict[str, CustomRuleDef]) -> MethodologyModel:
    return MethodologyModel(
        version="1.0.0",
        name="Rules Test",
        state_transitions={"active": TransitionRule(from_states=("ready",))},
        custom_rules=rules,
    )


def rule(validation, **kwargs) -> CustomRuleDef:
    return CustomRuleDef(description=f"{validation} rule", validation=validation, **kwargs)


# =========================================================================
# Conjunction and unknown rules
# =========================================================================


class TestConjunction:

    def test_empty_list_is_satisfied(self, kanban):
        assert are_custom_rules_satisfied(kanban, [], make_context()) is True

    def test_all_rules_must_hold(self):
        model = make_model(
            {
                "assigned": rule(ValidationKind.ASSIGNMENT_REQUIRED),
                "in_sprint": rule(ValidationKind.SPRINT_CAPACITY),
            }
        )
        context = make_context(feedbacks=[make_feedback()])

        assert are_custom_rules_satisfied(model, ["assigned"], context)
        assert not are_custom_rules_satisfied(model, ["assigned", "in_sprint"], context)

    def test_unknown_rule_fails_and_is_logged(self, kanban, captured_logs):
        assert not are_custom_rules_satisfied(kanban, ["no_such_rule"], make_context())

        records = [r for r in captured_logs() if r["message"] == "custom_rule_unknown"]
        assert records[0]["rule_name"] == "no_such_rule"
        assert records[0]["level"] == "WARNING"

    def test_unknown_rule_reported_to_sink(self, kanban):
        seen = []

        are_custom_rules_satisfied(
            kanban, ["no_such_rule"], make_context(), diagnostic_sink=seen.append
        )

        assert seen == [
            {
                "event": "custom_rule_unknown",
                "rule_name": "no_such_rule",
                "methodology_name": kanban.name,
                "task_id": "task-1",
            }
        ]

    def test_unknown_rule_short_circuits(self):
        calls = []
        registry = CustomRuleRegistry()
        registry.register("spy", lambda ctx, params: calls.append(1) or True)
        model = make_model({"spy": rule(ValidationKind.CUSTOM)})

        assert not are_custom_rules_satisfied(model, ["missing", "spy"], make_context(), registry)
        assert calls == []

    @pytest.mark.parametrize("rule_names", ["assigned", [1], ["ok", None], {"assigned"}])
    def test_malformed_rule_names_raise(self, kanban, rule_names):
        with pytest.raises(TypeError):
            are_custom_rules_satisfied(kanban, rule_names, make_context())

    def test_non_context_raises(self, kanban):
        with pytest.raises(TypeError):
            are_custom_rules_satisfied(kanban, [], {"task": make_task()})


# =========================================================================
# Built-in kinds
# =========================================================================


class TestAssignmentRequired:

    MODEL = make_model({"assigned": rule(ValidationKind.ASSIGNMENT_REQUIRED)})

    def test_resolved_assignment_passes(self):
        context = make_context(feedbacks=[make_feedback()])

        assert are_custom_rules_satisfied(self.MODEL, ["assigned"], context)

    @pytest.mark.parametrize(
        "feedback",
        [
            make_feedback(status="open"),
            make_feedback(type="blocking"),
            make_feedback(entity_type="cycle"),
            make_feedback(entity_id="task-2"),
        ],
    )
    def test_non_matching_feedback_fails(self, feedback):
        context = make_context(feedbacks=[feedback])

        assert not are_custom_rules_satisfied(self.MODEL, ["assigned"], context)

    def test_no_feedback_fails(self):
        assert not are_custom_rules_satisfied(self.MODEL, ["assigned"], make_context())


class TestSprintCapacity:

    def test_active_cycle_passes(self):
        model = make_model({"in_sprint": rule(ValidationKind.SPRINT_CAPACITY)})
        context = make_context(
            task=make_task(cycle_ids=("sprint-1",)),
            cycles=[CycleRecord(id="sprint-1", status="active", task_ids=("task-1",))],
        )

        assert are_custom_rules_satisfied(model, ["in_sprint"], context)

    def test_planning_cycle_fails(self):
        model = make_model({"in_sprint": rule(ValidationKind.SPRINT_CAPACITY)})
        context = make_context(
            task=make_task(cycle_ids=("sprint-1",)),
            cycles=[CycleRecord(id="sprint-1", status="planning")],
        )

        assert not are_custom_rules_satisfied(model, ["in_sprint"], context)

    def test_unlinked_active_cycle_fails(self):
        model = make_model({"in_sprint": rule(ValidationKind.SPRINT_CAPACITY)})
        context = make_context(cycles=[CycleRecord(id="sprint-9", status="active")])

        assert not are_custom_rules_satisfied(model, ["in_sprint"], context)

    def test_max_tasks_enforced(self):
        model = make_model(
            {"in_sprint": rule(ValidationKind.SPRINT_CAPACITY, parameters={"max_tasks": 2})}
        )
        full = CycleRecord(id="sprint-1", status="active", task_ids=("a", "b", "task-1"))
        roomy = CycleRecord(id="sprint-1", status="active", task_ids=("a", "task-1"))
        task = make_task(cycle_ids=("sprint-1",))

        assert not are_custom_rules_satisfied(
            model, ["in_sprint"], make_context(task=task, cycles=[full])
        )
        assert are_custom_rules_satisfied(
            model, ["in_sprint"], make_context(task=task, cycles=[roomy])
        )

    def test_malformed_max_tasks_raises(self):
        model = make_model(
            {"in_sprint": rule(ValidationKind.SPRINT_CAPACITY, parameters={"max_tasks": "ten"})}
        )
        context = make_context(
            task=make_task(cycle_ids=("sprint-1",)),
            cycles=[CycleRecord(id="sprint-1", status="active")],
        )

        with pytest.raises(InvalidRuleParametersError) as exc_info:
            are_custom_rules_satisfied(model, ["in_sprint"], context)

        assert exc_info.value.parameter_name == "max_tasks"
        assert exc_info.value.code == "INVALID_RULE_PARAMETERS"


class TestEpicComplexity:

    MODEL = make_model({"epic": rule(ValidationKind.EPIC_COMPLEXITY)})

    def test_non_epic_passes(self):
        context = make_context(task=make_task(tags=("area:core",)))

        assert are_custom_rules_satisfied(self.MODEL, ["epic"], context)

    def test_epic_must_be_paused_with_cycles(self):
        paused = make_task(status="paused", tags=("epic:auth",), cycle_ids=("c-1",))
        active = make_task(status="active", tags=("epic:auth",), cycle_ids=("c-1",))
        undecomposed = make_task(status="paused", tags=("epic:auth",))

        assert are_custom_rules_satisfied(self.MODEL, ["epic"], make_context(task=paused))
        assert not are_custom_rules_satisfied(self.MODEL, ["epic"], make_context(task=active))
        assert not are_custom_rules_satisfied(
            self.MODEL, ["epic"], make_context(task=undecomposed)
        )

    def test_custom_tag_prefix(self):
        model = make_model(
            {"epic": rule(ValidationKind.EPIC_COMPLEXITY, parameters={"epic_tag_prefix": "big:"})}
        )
        task = make_task(status="active", tags=("big:migration",))

        assert not are_custom_rules_satisfied(model, ["epic"], make_context(task=task))
        assert are_custom_rules_satisfied(
            model, ["epic"], make_context(task=make_task(tags=("epic:auth",)))
        )


# =========================================================================
# custom rules and the registry
# =========================================================================


class TestCustomRules:

    def test_lookup_by_module_path(self):
        registry = CustomRuleRegistry()
        registry.register("rules.always", lambda ctx, params: True)
        model = make_model(
            {"r": rule(ValidationKind.CUSTOM, module_path="rules.always", expression="other")}
        )

        assert are_custom_rules_satisfied(model, ["r"], make_context(), registry)

    def test_lookup_by_expression(self):
        registry = CustomRuleRegistry()
        registry.register("has_priority", lambda ctx, params: ctx.task.priority == "high")
        model = make_model({"r": rule(ValidationKind.CUSTOM, expression="has_priority")})
        task = TaskRecord(id="task-1", title="T", status="ready", priority="high")

        assert are_custom_rules_satisfied(model, ["r"], make_context(task=task), registry)

    def test_lookup_by_rule_name(self):
        registry = CustomRuleRegistry()
        registry.register("by_name", lambda ctx, params: True)
        model = make_model({"by_name": rule(ValidationKind.CUSTOM)})

        assert are_custom_rules_satisfied(model, ["by_name"], make_context(), registry)

    def test_parameters_passed_to_validator(self):
        seen = {}
        registry = CustomRuleRegistry()
        registry.register("capture", lambda ctx, params: seen.update(params) or True)
        model = make_model(
            {"r": rule(ValidationKind.CUSTOM, expression="capture", parameters={"limit": 3})}
        )

        are_custom_rules_satisfied(model, ["r"], make_context(), registry)

        assert seen == {"limit": 3}

    def test_unregistered_key_fails_closed(self, captured_logs):
        model = make_model({"r": rule(ValidationKind.CUSTOM, expression="os.system('rm')")})

        assert not are_custom_rules_satisfied(model, ["r"], make_context(), CustomRuleRegistry())
        records = [r for r in captured_logs() if r["message"] == "custom_rule_unregistered"]
        assert records[0]["validator_key"] == "os.system('rm')"

    def test_raising_validator_fails_closed(self):
        def boom(ctx, params):
            raise RuntimeError("validator bug")

        registry = CustomRuleRegistry()
        registry.register("boom", boom)
        model = make_model({"boom": rule(ValidationKind.CUSTOM)})

        assert not are_custom_rules_satisfied(model, ["boom"], make_context(), registry)

    def test_register_validates_arguments(self):
        registry = CustomRuleRegistry()

        with pytest.raises(ValueError):
            registry.register("", lambda ctx, params: True)
        with pytest.raises(TypeError):
            registry.register("x", "not callable")


class TestDefaultRegistry:

    def test_builtin_keys(self):
        assert set(default_rule_registry().keys) == {
            "task_has_tags",
            "no_open_blocking_feedback",
            "actor_has_capability",
        }

    def test_task_has_tags(self):
        tagged = rule(ValidationKind.CUSTOM, expression="task_has_tags", parameters={"tags": ["a"]})
        context = make_context(task=make_task(tags=("a", "b")))

        assert evaluate_rule("tagged", tagged, context)
        assert not evaluate_rule("tagged", tagged, make_context(task=make_task(tags=("b",))))

    def test_task_has_tags_rejects_bare_string(self):
        model = make_model(
            {
                "urgent": rule(
                    ValidationKind.CUSTOM, module_path="task_has_tags", parameters={"tags": "urgent"}
                )
            }
        )
        context = make_context(task=make_task(tags=("urgent",)))

        with pytest.raises(InvalidRuleParametersError) as exc_info:
            are_custom_rules_satisfied(model, ["urgent"], context)

        assert exc_info.value.parameter_name == "tags"

    def test_task_has_tags_without_parameters_needs_any_tag(self):
        untagged = rule(ValidationKind.CUSTOM, expression="task_has_tags")

        assert evaluate_rule("any_tag", untagged, make_context(task=make_task(tags=("x",))))
        assert not evaluate_rule("any_tag", untagged, make_context())

    def test_no_open_blocking_feedback(self):
        blocking = rule(ValidationKind.CUSTOM, expression="no_open_blocking_feedback")

        assert evaluate_rule("unblocked", blocking, make_context())
        assert not evaluate_rule(
            "unblocked",
            blocking,
            make_context(feedbacks=[make_feedback(type="blocking", status="open")]),
        )
        assert evaluate_rule(
            "unblocked",
            blocking,
            make_context(feedbacks=[make_feedback(type="blocking", status="resolved")]),
        )

    def test_actor_has_capability(self):
        capable = rule(
            ValidationKind.CUSTOM,
            expression="actor_has_capability",
            parameters={"roles": ["approver:quality"]},
        )
        actor = ActorRecord(id="human:alice", type="human", roles=("approver:quality",))

        assert evaluate_rule("capable", capable, make_context(actor=actor))
        assert not evaluate_rule("capable", capable, make_context())

    def test_actor_has_capability_without_roles_fails_closed(self):
        capable = rule(ValidationKind.CUSTOM, expression="actor_has_capability")
        actor = ActorRecord(id="human:alice", type="human", roles=("approver:quality",))

        assert not evaluate_rule("capable", capable, make_context(actor=actor))


class TestPresetRules:

    def test_kanban_activation_rule(self, kanban):
        rules = kanban.state_transitions["active"].requires.custom_rules

        assert not are_custom_rules_satisfied(kanban, rules, make_context())
        assert are_custom_rules_satisfied(
            kanban, rules, make_context(feedbacks=[make_feedback()])
        )
