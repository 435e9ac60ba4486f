"""
Tests for methodology document loading and parsing (gitgov_config.loader).

Tests cover:
- load_methodology_file: JSON and YAML documents, unsupported suffixes
- parse_methodology: snake_case document format, required keys, $schema
- methodology_to_dict / compute_checksum: canonical form and determinism
"""

import json

import pytest
import yaml

from gitgov_config.loader import (
    compute_checksum,
    load_methodology_file,
    methodology_to_dict,
    parse_methodology,
    parse_signature_requirement,
)
from gitgov_config.presets import DEFAULT_METHODOLOGY, SCRUM_METHODOLOGY
from gitgov_kernel.domain.methodology import ValidationKind


# =========================================================================
# Factory helpers
# =========================================================================


def make_document(**overrides) -> dict:
    doc = {
        "$schema": "../schemas/workflow_methodology_schema.json",
        "version": "1.0.0",
        "name": "Loader Test",
        "state_transitions": {
            "review": {
                "from": ["draft"],
                "requires": {
                    "command": "gitgov task submit",
                    "signatures": {
                        "__default__": {
                            "role": "submitter",
                            "capability_roles": ["author"],
                            "min_approvals": 1,
                        }
                    },
                },
            },
            "active": {
                "from": ["review"],
                "requires": {
                    "event": "first_execution_record_created",
                    "custom_rules": ["tagged"],
                },
            },
        },
        "custom_rules": {
            "tagged": {
                "description": "Task must be tagged",
                "validation": "custom",
                "expression": "task_has_tags",
                "parameters": {"tags": ["area:core"]},
            }
        },
        "view_configs": {
            "board": {"columns": {"Todo": ["draft"]}, "theme": "dark", "layout": "grid"}
        },
    }
    doc.update(overrides)
    return doc


# =========================================================================
# load_methodology_file
# =========================================================================


class TestLoadMethodologyFile:

    def test_loads_json(self, tmp_path):
        path = tmp_path / "workflow_methodology.json"
        path.write_text(json.dumps(make_document()))

        data = load_methodology_file(path)

        assert data["name"] == "Loader Test"

    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "workflow_methodology.yaml"
        path.write_text(yaml.safe_dump(make_document()))

        data = load_methodology_file(path)

        assert data["state_transitions"]["review"]["from"] == ["draft"]

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "workflow_methodology.toml"
        path.write_text("name = 'x'")

        with pytest.raises(ValueError, match="Unsupported"):
            load_methodology_file(path)

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "workflow_methodology.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(ValueError, match="mapping"):
            load_methodology_file(path)

    def test_malformed_json_propagates(self, tmp_path):
        path = tmp_path / "workflow_methodology.json"
        path.write_text("{not json")

        with pytest.raises(json.JSONDecodeError):
            load_methodology_file(path)

    def test_missing_file_propagates(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_methodology_file(tmp_path / "absent.json")


# =========================================================================
# parse_methodology
# =========================================================================


class TestParseMethodology:

    def test_parses_full_document(self):
        model = parse_methodology(make_document())

        review = model.state_transitions["review"]
        assert review.from_states == ("draft",)
        assert review.requires.command == "gitgov task submit"
        group = review.requires.signatures["__default__"]
        assert group.role == "submitter"
        assert group.capability_roles == ("author",)

        active = model.state_transitions["active"]
        assert active.requires.event == "first_execution_record_created"
        assert active.requires.custom_rules == ("tagged",)

        rule = model.custom_rules["tagged"]
        assert rule.validation is ValidationKind.CUSTOM
        assert rule.validator_key == "task_has_tags"
        assert rule.parameters["tags"] == ["area:core"]

        view = model.view_configs["board"]
        assert view.columns == {"Todo": ("draft",)}
        assert view.theme == "dark"

    def test_missing_requires_is_vacuous(self):
        doc = make_document(state_transitions={"review": {"from": ["draft"]}})

        model = parse_methodology(doc)

        assert model.state_transitions["review"].requires.is_vacuous

    def test_missing_state_transitions_raises_key_error(self):
        doc = make_document()
        del doc["state_transitions"]

        with pytest.raises(KeyError):
            parse_methodology(doc)

    def test_missing_from_raises_key_error(self):
        doc = make_document(state_transitions={"review": {"requires": {}}})

        with pytest.raises(KeyError):
            parse_methodology(doc)

    def test_from_must_be_a_list(self):
        doc = make_document(state_transitions={"review": {"from": "draft"}})

        with pytest.raises(ValueError, match="list of strings"):
            parse_methodology(doc)

    def test_signature_defaults_min_approvals(self):
        req = parse_signature_requirement({"role": "approver", "capability_roles": ["x"]})

        assert req.min_approvals == 1

    def test_agent_integration_parsed(self):
        doc = make_document(
            agent_integration={
                "description": "Agents",
                "required_agents": [{"id": "agent:reviewer", "triggers": []}],
            }
        )

        model = parse_methodology(doc)

        assert model.agent_integration.description == "Agents"
        assert model.agent_integration.required_agents[0]["id"] == "agent:reviewer"


# =========================================================================
# Serialization and checksum
# =========================================================================


class TestSerialization:

    @pytest.mark.parametrize("document", [DEFAULT_METHODOLOGY, SCRUM_METHODOLOGY])
    def test_presets_survive_serialization(self, document):
        model = parse_methodology(document)

        assert parse_methodology(methodology_to_dict(model)) == model

    def test_unset_optionals_omitted(self):
        model = parse_methodology(
            {"version": "1.0.0", "name": "Min", "state_transitions": {"review": {"from": ["draft"]}}}
        )

        out = methodology_to_dict(model)

        assert "custom_rules" not in out
        assert "view_configs" not in out
        assert "description" not in out
        assert out["state_transitions"]["review"] == {"from": ["draft"], "requires": {}}

    def test_checksum_is_deterministic(self):
        a = parse_methodology(make_document())
        b = parse_methodology(make_document())

        assert compute_checksum(a) == compute_checksum(b)
        assert len(compute_checksum(a)) == 64

    def test_checksum_changes_with_content(self):
        a = parse_methodology(make_document())
        b = parse_methodology(make_document(version="1.0.1"))

        assert compute_checksum(a) != compute_checksum(b)
