"""
Methodology Loader (``gitgov_config.loader``).

Responsibility
--------------
Reads methodology documents (JSON or YAML) and parses them into the typed
``gitgov_kernel.domain.methodology`` value objects.  Also provides the
inverse (``methodology_to_dict``) and a deterministic checksum used to
identify which methodology governed an evaluation.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Consumed by
``gitgov_config.build_methodology``, the built-in presets and
``gitgov_config.project``.  No dependency on engines or services.

Invariants enforced
-------------------
* Parse errors raise ``KeyError`` (missing required key) or ``ValueError``
  (bad value) with descriptive messages; no silent defaults for required
  fields.
* Every parsed object is a frozen dataclass from the kernel domain.
* ``compute_checksum`` is a deterministic SHA-256 over the canonical form.

Failure modes
-------------
* Missing file  -> ``FileNotFoundError`` propagates.
* Malformed JSON  -> ``json.JSONDecodeError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unsupported suffix  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from gitgov_kernel.domain.methodology import (
    AgentIntegrationConfig,
    CustomRuleDef,
    MethodologyModel,
    SignatureRequirement,
    TransitionRequirement,
    TransitionRule,
    ValidationKind,
    ViewConfig,
)

JSON_SUFFIXES = (".json",)
YAML_SUFFIXES = (".yaml", ".yml")


def load_methodology_file(path: Path) -> dict[str, Any]:
    """
    Load a methodology document and return its top-level mapping.

    Preconditions:
        - ``path`` points to an existing ``.json``, ``.yaml`` or ``.yml`` file.
    Postconditions:
        - Returns a ``dict``.
    Raises:
        FileNotFoundError: if the file does not exist.
        json.JSONDecodeError / yaml.YAMLError: if the content is malformed.
        ValueError: unsupported suffix, or the document is not a mapping.
    """
    suffix = path.suffix.lower()
    with open(path, encoding="utf-8") as f:
        if suffix in JSON_SUFFIXES:
            data = json.load(f)
        elif suffix in YAML_SUFFIXES:
            data = yaml.safe_load(f) or {}
        else:
            raise ValueError(f"Unsupported methodology file type: {path.name}")
    if not isinstance(data, dict):
        raise ValueError(
            f"Methodology document must be a mapping, got {type(data).__name__}"
        )
    return data


def _str_tuple(value: Any, field_name: str) -> tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ValueError(f"'{field_name}' must be a list of strings, got {value!r}")
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"'{field_name}' entries must be strings, got {item!r}")
    return tuple(value)


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"'{field_name}' must be a mapping, got {type(value).__name__}")
    return value


def parse_signature_requirement(data: Mapping[str, Any]) -> SignatureRequirement:
    """
    Parse a ``SignatureRequirement`` from a dict.

    Raises:
        KeyError: if ``role`` or ``capability_roles`` is missing.
        ValueError: if values violate the requirement's invariants.
    """
    specific = data.get("specific_actors")
    return SignatureRequirement(
        role=data["role"],
        capability_roles=_str_tuple(data["capability_roles"], "capability_roles"),
        min_approvals=data.get("min_approvals", 1),
        actor_type=data.get("actor_type"),
        specific_actors=(
            _str_tuple(specific, "specific_actors") if specific is not None else None
        ),
    )


def parse_transition_requirement(data: Mapping[str, Any]) -> TransitionRequirement:
    """Parse the ``requires`` block of a transition."""
    signatures = _mapping(data.get("signatures"), "signatures")
    return TransitionRequirement(
        command=data.get("command"),
        event=data.get("event"),
        custom_rules=_str_tuple(data.get("custom_rules", []), "custom_rules"),
        signatures={
            group: parse_signature_requirement(_mapping(req, f"signatures.{group}"))
            for group, req in signatures.items()
        },
    )


def parse_transition_rule(data: Mapping[str, Any]) -> TransitionRule:
    """
    Parse one ``state_transitions`` entry.

    Raises:
        KeyError: if ``from`` is missing.
        ValueError: if ``from`` is empty or names an invalid state.
    """
    return TransitionRule(
        from_states=_str_tuple(data["from"], "from"),
        requires=parse_transition_requirement(_mapping(data.get("requires"), "requires")),
    )


def parse_custom_rule(data: Mapping[str, Any]) -> CustomRuleDef:
    """
    Parse a ``CustomRuleDef`` from a dict.

    Raises:
        KeyError: if ``description`` or ``validation`` is missing.
        ValueError: unknown validation kind, or expression/module_path on a
            non-custom rule.
    """
    return CustomRuleDef(
        description=data["description"],
        validation=ValidationKind(data["validation"]),
        parameters=_mapping(data.get("parameters"), "parameters"),
        expression=data.get("expression"),
        module_path=data.get("module_path"),
    )


def parse_view_config(data: Mapping[str, Any]) -> ViewConfig:
    """Parse a ``ViewConfig`` from a dict."""
    columns = _mapping(data.get("columns"), "columns")
    return ViewConfig(
        columns={
            label: _str_tuple(states, f"columns.{label}")
            for label, states in columns.items()
        },
        theme=data.get("theme"),
        layout=data.get("layout"),
    )


def parse_agent_integration(data: Mapping[str, Any]) -> AgentIntegrationConfig:
    """Parse the optional ``agent_integration`` block."""
    agents = data.get("required_agents", [])
    if not isinstance(agents, (list, tuple)):
        raise ValueError("'required_agents' must be a list")
    return AgentIntegrationConfig(
        description=data.get("description"),
        required_agents=tuple(_mapping(a, "required_agents[]") for a in agents),
    )


def parse_methodology(data: Mapping[str, Any]) -> MethodologyModel:
    """
    Parse a full methodology document.

    Preconditions:
        - ``data`` contains ``version``, ``name`` and ``state_transitions``.
          ``$schema`` is accepted and ignored.
    Postconditions:
        - Returns a frozen ``MethodologyModel``.  Cross-reference checks
          are NOT performed here (see ``gitgov_config.validator``).
    Raises:
        KeyError: if required keys are missing.
        ValueError: if any value violates a model invariant.
    """
    transitions = _mapping(data["state_transitions"], "state_transitions")
    custom_rules = _mapping(data.get("custom_rules"), "custom_rules")
    view_configs = _mapping(data.get("view_configs"), "view_configs")
    agent_data = data.get("agent_integration")

    return MethodologyModel(
        version=data["version"],
        name=data["name"],
        description=data.get("description"),
        state_transitions={
            to_state: parse_transition_rule(_mapping(rule, f"state_transitions.{to_state}"))
            for to_state, rule in transitions.items()
        },
        custom_rules={
            rule_id: parse_custom_rule(_mapping(rule, f"custom_rules.{rule_id}"))
            for rule_id, rule in custom_rules.items()
        },
        view_configs={
            view: parse_view_config(_mapping(cfg, f"view_configs.{view}"))
            for view, cfg in view_configs.items()
        },
        agent_integration=(
            parse_agent_integration(_mapping(agent_data, "agent_integration"))
            if agent_data is not None
            else None
        ),
    )


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def _requirement_to_dict(req: TransitionRequirement) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if req.command is not None:
        out["command"] = req.command
    if req.event is not None:
        out["event"] = req.event
    if req.signatures:
        out["signatures"] = {}
        for group, sig in req.signatures.items():
            sig_out: dict[str, Any] = {
                "role": sig.role,
                "capability_roles": list(sig.capability_roles),
                "min_approvals": sig.min_approvals,
            }
            if sig.actor_type is not None:
                sig_out["actor_type"] = sig.actor_type
            if sig.specific_actors is not None:
                sig_out["specific_actors"] = list(sig.specific_actors)
            out["signatures"][group] = sig_out
    if req.custom_rules:
        out["custom_rules"] = list(req.custom_rules)
    return out


def methodology_to_dict(model: MethodologyModel) -> dict[str, Any]:
    """
    Serialize a model back to its document form.

    Postconditions:
        - ``parse_methodology(methodology_to_dict(m)) == m``.
        - Optional fields that are unset are omitted.
    """
    out: dict[str, Any] = {"version": model.version, "name": model.name}
    if model.description is not None:
        out["description"] = model.description
    out["state_transitions"] = {
        to_state: {
            "from": list(rule.from_states),
            "requires": _requirement_to_dict(rule.requires),
        }
        for to_state, rule in model.state_transitions.items()
    }
    if model.custom_rules:
        rules: dict[str, Any] = {}
        for rule_id, rule in model.custom_rules.items():
            rule_out: dict[str, Any] = {
                "description": rule.description,
                "validation": rule.validation.value,
            }
            if rule.parameters:
                rule_out["parameters"] = dict(rule.parameters)
            if rule.expression is not None:
                rule_out["expression"] = rule.expression
            if rule.module_path is not None:
                rule_out["module_path"] = rule.module_path
            rules[rule_id] = rule_out
        out["custom_rules"] = rules
    if model.view_configs:
        views: dict[str, Any] = {}
        for view, cfg in model.view_configs.items():
            view_out: dict[str, Any] = {
                "columns": {label: list(states) for label, states in cfg.columns.items()}
            }
            if cfg.theme is not None:
                view_out["theme"] = cfg.theme
            if cfg.layout is not None:
                view_out["layout"] = cfg.layout
            views[view] = view_out
        out["view_configs"] = views
    if model.agent_integration is not None:
        agent_out: dict[str, Any] = {
            "required_agents": [dict(a) for a in model.agent_integration.required_agents]
        }
        if model.agent_integration.description is not None:
            agent_out["description"] = model.agent_integration.description
        out["agent_integration"] = agent_out
    return out


def compute_checksum(model: MethodologyModel) -> str:
    """
    Compute SHA-256 checksum of the model's canonical JSON serialization.

    Postconditions:
        - Returns a hex-encoded SHA-256 hash string.
        - Structurally equal models always produce identical checksums.
    """
    canonical = json.dumps(methodology_to_dict(model), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
