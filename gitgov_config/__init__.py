"""
gitgov_config -- methodology configuration for the authorization engine.

Responsibility:
    Produces validated ``MethodologyModel`` objects from the three places
    a methodology can come from: a document handed in by the caller, a
    built-in preset, or the project's ``.gitgov`` directory.  Every path
    goes through ``build_methodology`` (parse, then validate).

Architecture position:
    Configuration -- sits above ``gitgov_kernel`` and below
    ``gitgov_services``.  The kernel and the engines MUST NEVER import from
    ``gitgov_config``.

Invariants enforced:
    - A model leaving this package has passed ``validate_methodology``.
    - Presets are Python literals; resolving one performs no I/O.
    - ``ProjectMethodologySource.load`` never raises.

Failure modes:
    - ``KeyError`` / ``ValueError`` -- document cannot be parsed.
    - ``InvalidMethodologyError`` -- document parsed but failed validation.
    - ``UnknownPresetError`` -- preset name is not built in.
"""

from gitgov_config.builder import build_methodology
from gitgov_config.loader import (
    compute_checksum,
    load_methodology_file,
    methodology_to_dict,
    parse_methodology,
)
from gitgov_config.presets import (
    DEFAULT_METHODOLOGY,
    DEFAULT_PRESET,
    PRESET_NAMES,
    SCRUM_METHODOLOGY,
    default_methodology,
    get_preset,
)
from gitgov_config.project import ProjectMethodologySource, find_project_root
from gitgov_config.validator import MethodologyValidationResult, validate_methodology

__all__ = [
    "DEFAULT_METHODOLOGY",
    "DEFAULT_PRESET",
    "PRESET_NAMES",
    "SCRUM_METHODOLOGY",
    "MethodologyValidationResult",
    "ProjectMethodologySource",
    "build_methodology",
    "compute_checksum",
    "default_methodology",
    "find_project_root",
    "get_preset",
    "load_methodology_file",
    "methodology_to_dict",
    "parse_methodology",
    "validate_methodology",
]
