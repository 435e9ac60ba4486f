"""
gitgov_engines.views -- Board view projector.

Responsibility:
    Produce the complete column layout for a named view: the view's
    configured columns merged onto a default one-column-per-state template,
    so every state a task can be in has a column.

Architecture position:
    Engines -- pure evaluation layer, zero I/O.

Invariants enforced:
    - The state universe is the canonical task states followed by any
      other state named in the transition graph.
    - Each universe state appears in exactly one column: its configured
      column when the view assigns it, else its default label.
    - Column order follows the first state of each column in universe
      order; configured columns holding only non-universe states follow,
      in configured order.
    - ``theme`` and ``layout`` pass through unchanged.

Failure modes:
    - Unknown view name -> ``None``.
"""

from __future__ import annotations

from gitgov_engines.tracer import traced_engine
from gitgov_kernel.domain.methodology import MethodologyModel, ViewConfig
from gitgov_kernel.domain.records import TASK_STATUSES

DEFAULT_COLUMN_LABELS: dict[str, str] = {
    "draft": "Draft",
    "review": "Review",
    "ready": "Ready",
    "active": "Active",
    "done": "Done",
    "archived": "Archived",
    "paused": "Blocked",
    "discarded": "Cancelled",
}


def default_column_label(state: str) -> str:
    """Canonical label for ``state``; unknown states are title-cased."""
    return DEFAULT_COLUMN_LABELS.get(state) or state.replace("_", " ").title()


def state_universe(model: MethodologyModel) -> tuple[str, ...]:
    """Canonical task states, then graph states not already listed."""
    seen = dict.fromkeys(TASK_STATUSES)
    for state in model.graph_states:
        seen.setdefault(state)
    return tuple(seen)


@traced_engine("view_projector", "1.0", ("view_name",))
def project_view(model: MethodologyModel, view_name: str) -> ViewConfig | None:
    """Return the merged column layout for ``view_name``, or None if unknown."""
    view = model.view_configs.get(view_name)
    if view is None:
        return None

    assigned: dict[str, str] = {}
    for label, states in view.columns.items():
        for state in states:
            assigned.setdefault(state, label)

    def configured(label: str) -> list[str]:
        # A state listed under two labels stays with the first one; repeats collapse.
        return list(dict.fromkeys(s for s in view.columns.get(label, ()) if assigned[s] == label))

    columns: dict[str, list[str]] = {}
    for state in state_universe(model):
        label = assigned.get(state)
        if label is None:
            label = default_column_label(state)
            if label not in columns:
                columns[label] = configured(label)
            columns[label].append(state)
        elif label not in columns:
            columns[label] = configured(label)

    for label in view.columns:
        if label not in columns:
            columns[label] = configured(label)

    return ViewConfig(
        columns={label: tuple(states) for label, states in columns.items()},
        theme=view.theme,
        layout=view.layout,
    )
