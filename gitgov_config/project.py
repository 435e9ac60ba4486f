"""
Project methodology source (``gitgov_config.project``).

Responsibility
--------------
Finds the project a working directory belongs to and loads the methodology
the project declares in ``.gitgov/workflow_methodology.json`` (or
``.yaml`` / ``.yml``).  Implements the kernel ``MethodologySource``
protocol.

Architecture position
---------------------
**Config layer** -- the only module in the engine that touches the file
system.  Used lazily by ``WorkflowMethodologyAdapter.with_project_override``.

Invariants enforced
-------------------
* ``load()`` never raises.  Every failure is reported as a
  ``MethodologyLoadResult`` status so the caller can fall back.
* Project root discovery prefers the nearest ancestor holding ``.gitgov``;
  only when no such ancestor exists is the nearest ``.git`` used.

Failure modes
-------------
* ``not_a_project`` -- no ``.gitgov`` or ``.git`` above the start path.
* ``not_found``     -- project found, no methodology file in ``.gitgov``.
* ``parse_error``   -- file unreadable, or not valid JSON/YAML.
* ``invalid``       -- document parsed but is not a valid methodology.
"""

from __future__ import annotations

from pathlib import Path

import yaml

from gitgov_config.builder import build_methodology
from gitgov_config.loader import load_methodology_file
from gitgov_kernel.domain.methodology_source import LoadStatus, MethodologyLoadResult
from gitgov_kernel.exceptions import InvalidMethodologyError
from gitgov_kernel.logging_config import get_logger

logger = get_logger("config.project")

GITGOV_DIR = ".gitgov"
GIT_DIR = ".git"
METHODOLOGY_FILENAMES = (
    "workflow_methodology.json",
    "workflow_methodology.yaml",
    "workflow_methodology.yml",
)


def _search_upward(start: Path, marker: str) -> Path | None:
    for candidate in (start, *start.parents):
        if (candidate / marker).exists():
            return candidate
    return None


def find_project_root(start: Path | None = None) -> Path | None:
    """Return the project root containing ``start`` (default: cwd), or None."""
    origin = (start or Path.cwd()).resolve()
    return _search_upward(origin, GITGOV_DIR) or _search_upward(origin, GIT_DIR)


def find_methodology_file(root: Path) -> Path | None:
    """First existing methodology file under ``root/.gitgov``."""
    gitgov = root / GITGOV_DIR
    for name in METHODOLOGY_FILENAMES:
        path = gitgov / name
        if path.is_file():
            return path
    return None


class ProjectMethodologySource:
    """Loads the methodology declared by the project around ``start_path``."""

    def __init__(self, start_path: Path | str | None = None):
        self._start_path = Path(start_path) if start_path is not None else None

    def load(self) -> MethodologyLoadResult:
        root = find_project_root(self._start_path)
        if root is None:
            return self._failed(
                LoadStatus.NOT_A_PROJECT,
                f"no {GITGOV_DIR} or {GIT_DIR} directory above "
                f"{self._start_path or Path.cwd()}",
            )

        path = find_methodology_file(root)
        if path is None:
            return self._failed(
                LoadStatus.NOT_FOUND,
                f"no workflow methodology file in {root / GITGOV_DIR}",
            )

        try:
            data = load_methodology_file(path)
        except (OSError, yaml.YAMLError, ValueError) as exc:
            # ValueError covers JSONDecodeError and non-mapping documents.
            return self._failed(LoadStatus.PARSE_ERROR, str(exc), path)

        try:
            model = build_methodology(data, source_name=str(path))
        except InvalidMethodologyError as exc:
            return self._failed(LoadStatus.INVALID, str(exc), path)
        except KeyError as exc:
            return self._failed(LoadStatus.INVALID, f"missing required key {exc}", path)
        except (ValueError, TypeError, AttributeError) as exc:
            return self._failed(LoadStatus.INVALID, str(exc), path)

        logger.info(
            "project_methodology_loaded",
            extra={
                "path": str(path),
                "methodology_name": model.name,
                "methodology_version": model.version,
            },
        )
        return MethodologyLoadResult.loaded(model, path)

    @staticmethod
    def _failed(
        status: LoadStatus, reason: str, path: Path | None = None
    ) -> MethodologyLoadResult:
        logger.warning(
            "project_methodology_unavailable",
            extra={
                "status": status.value,
                "reason": reason,
                "path": str(path) if path is not None else None,
            },
        )
        return MethodologyLoadResult.failed(status, reason, path)
