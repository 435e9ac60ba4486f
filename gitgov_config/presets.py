"""
Built-in methodology presets (``gitgov_config.presets``).

Responsibility
--------------
Hard-coded methodologies available by name without touching the file
system: the default Kanban lifecycle and a Scrum variant.  These are also
the fallback when a project methodology cannot be loaded.

Invariants enforced
-------------------
* Presets are Python literals; resolving one performs no file I/O and no
  project-root discovery.
* Each preset is built (parsed + validated) once per process and shared.
* Pause/resume is declared as two ordinary edges: ``active -> paused`` and
  ``paused -> active``, the latter reusing the ``ready -> active``
  requirement because both live on the ``active`` rule.
"""

from __future__ import annotations

import functools
from typing import Any

from gitgov_config.builder import build_methodology
from gitgov_kernel.domain.methodology import MethodologyModel
from gitgov_kernel.exceptions import UnknownPresetError

DEFAULT_PRESET = "default"

DEFAULT_METHODOLOGY: dict[str, Any] = {
    "version": "1.0.0",
    "name": "GitGovernance Default Methodology",
    "description": "Standard GitGovernance workflow with quality gates and agent collaboration",
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
                    },
                },
            },
        },
        "ready": {
            "from": ["review"],
            "requires": {
                "command": "gitgov task approve",
                "signatures": {
                    "__default__": {
                        "role": "approver",
                        "capability_roles": ["approver:product"],
                        "min_approvals": 1,
                    },
                    "design": {
                        "role": "approver",
                        "capability_roles": ["approver:design"],
                        "min_approvals": 1,
                    },
                    "quality": {
                        "role": "approver",
                        "capability_roles": ["approver:quality"],
                        "min_approvals": 1,
                    },
                },
            },
        },
        "active": {
            "from": ["ready", "paused"],
            "requires": {
                "event": "first_execution_record_created",
                "custom_rules": ["task_must_have_valid_assignment_for_executor"],
            },
        },
        "done": {
            "from": ["active"],
            "requires": {
                "command": "gitgov task complete",
                "signatures": {
                    "__default__": {
                        "role": "approver",
                        "capability_roles": ["approver:quality"],
                        "min_approvals": 1,
                    },
                },
            },
        },
        "archived": {
            "from": ["done"],
            "requires": {"event": "changelog_record_created"},
        },
        "paused": {
            "from": ["active", "review"],
            "requires": {"event": "feedback_blocking_created"},
        },
        "discarded": {
            "from": ["review", "ready", "active"],
            "requires": {"command": "gitgov task cancel"},
        },
    },
    "custom_rules": {
        "task_must_have_valid_assignment_for_executor": {
            "description": "Task must have a valid assignment before execution can begin",
            "validation": "assignment_required",
        },
        "task_must_be_in_active_sprint": {
            "description": "Task must belong to an active sprint cycle",
            "validation": "sprint_capacity",
        },
        "epic_promotion_required": {
            "description": "Complex tasks must be promoted to epic with child cycles",
            "validation": "epic_complexity",
        },
    },
    "view_configs": {
        "kanban-4col": {
            "columns": {
                "Draft": ["draft"],
                "In Progress": ["review", "ready", "active"],
                "Review": ["done"],
                "Done": ["archived"],
            },
            "theme": "minimal",
            "layout": "horizontal",
        },
        "kanban-7col": {
            "columns": {
                "Draft": ["draft"],
                "Review": ["review"],
                "Ready": ["ready"],
                "Active": ["active"],
                "Done": ["done"],
                "Archived": ["archived"],
                "Blocked": ["paused"],
                "Cancelled": ["discarded"],
            },
            "theme": "corporate",
            "layout": "vertical",
        },
    },
}

SCRUM_METHODOLOGY: dict[str, Any] = {
    "version": "1.0.0",
    "name": "GitGovernance Scrum Methodology",
    "description": "Sprint-based workflow with product owner grooming and scrum master demo approval",
    "state_transitions": {
        "review": {
            "from": ["draft"],
            "requires": {
                "command": "gitgov task submit",
                "signatures": {
                    "__default__": {
                        "role": "product_owner",
                        "capability_roles": ["product:owner"],
                        "min_approvals": 1,
                    },
                },
            },
        },
        "ready": {
            "from": ["review"],
            "requires": {
                "command": "gitgov task approve",
                "custom_rules": ["task_fits_in_sprint_capacity"],
            },
        },
        "active": {
            "from": ["ready", "paused"],
            "requires": {
                "event": "sprint_started",
                "custom_rules": ["task_assigned_to_team_member"],
            },
        },
        "done": {
            "from": ["active"],
            "requires": {
                "command": "gitgov task complete",
                "signatures": {
                    "__default__": {
                        "role": "scrum_master",
                        "capability_roles": ["scrum:master"],
                        "min_approvals": 1,
                    },
                },
            },
        },
        "archived": {
            "from": ["done"],
            "requires": {"event": "changelog_record_created"},
        },
        "paused": {
            "from": ["active", "review"],
            "requires": {"event": "feedback_blocking_created"},
        },
        "discarded": {
            "from": ["review", "ready", "active"],
            "requires": {"command": "gitgov task cancel"},
        },
    },
    "custom_rules": {
        "task_fits_in_sprint_capacity": {
            "description": "Task must belong to the active sprint",
            "validation": "sprint_capacity",
        },
        "task_assigned_to_team_member": {
            "description": "Task must be assigned to a team member before the sprint starts it",
            "validation": "assignment_required",
        },
        "epic_promotion_required": {
            "description": "Epics must be decomposed into child cycles",
            "validation": "epic_complexity",
        },
    },
    "view_configs": {
        "scrum-board": {
            "columns": {
                "Product Backlog": ["draft"],
                "Sprint Backlog": ["review", "ready"],
                "In Progress": ["active"],
                "Done": ["done"],
                "Retrospective": ["archived"],
            },
            "theme": "scrum",
            "layout": "horizontal",
        },
        "scrum-product-owner": {
            "columns": {
                "Backlog Items": ["draft"],
                "Ready for Sprint": ["review"],
                "Sprint Committed": ["ready"],
            },
            "theme": "minimal",
            "layout": "grid",
        },
        "scrum-developer": {
            "columns": {
                "To Do": ["ready"],
                "In Progress": ["active"],
                "Code Review": ["done"],
                "Done": ["archived"],
                "Blocked": ["paused"],
            },
            "theme": "dark",
            "layout": "horizontal",
        },
        "scrum-master-dashboard": {
            "columns": {
                "Sprint Planning": ["draft", "review"],
                "Active Sprint": ["ready", "active"],
                "Sprint Review": ["done"],
                "Retrospective": ["archived"],
                "Impediments": ["paused", "discarded"],
            },
            "theme": "corporate",
            "layout": "grid",
        },
    },
}

_PRESETS: dict[str, dict[str, Any]] = {
    "default": DEFAULT_METHODOLOGY,
    "kanban": DEFAULT_METHODOLOGY,
    "scrum": SCRUM_METHODOLOGY,
}

PRESET_NAMES: tuple[str, ...] = tuple(_PRESETS)


@functools.lru_cache(maxsize=None)
def get_preset(name: str) -> MethodologyModel:
    """Return the built-in methodology registered under ``name``.

    Raises:
        UnknownPresetError: if ``name`` is not a preset.
    """
    try:
        data = _PRESETS[name]
    except KeyError:
        raise UnknownPresetError(name, PRESET_NAMES) from None
    return build_methodology(data, source_name=f"preset:{name}")


def default_methodology() -> MethodologyModel:
    """The built-in default (Kanban) methodology."""
    return get_preset(DEFAULT_PRESET)
