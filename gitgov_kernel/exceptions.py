"""
Typed Exception Hierarchy for the GitGov Kernel.

===============================================================================
WHEN THE ENGINE RAISES
===============================================================================

Authorization outcomes are NOT exceptions.  An ineligible signature, an
unsatisfied custom rule or an unknown rule name all come back as ``False``
so a caller evaluating many rules never crashes on one of them.

Exceptions are reserved for:
  1. Contract violations by the caller (a context without a task, a rule
     list that is not a list of names).
  2. Configuration that can never be evaluated (an invalid methodology
     handed in explicitly, an unknown preset name).

Every class carries a ``code`` class attribute (machine-readable) and
stores its context as attributes, never only in the message string.

Example:
    try:
        adapter = WorkflowMethodologyAdapter.from_preset(name)
    except UnknownPresetError as e:
        log.warning("unknown preset", extra={"preset": e.preset_name})
        api_response(code=e.code, available=e.available)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    GitGovKernelError (base)
    |
    +-- MethodologyError
    |   +-- InvalidMethodologyError
    |   +-- UnknownPresetError
    |   +-- InvalidRuleParametersError
    |
    +-- ValidationContextError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Methodology     | INVALID_METHODOLOGY         | Parsed methodology fails validation
                | UNKNOWN_PRESET              | Preset name is not built in
                | INVALID_RULE_PARAMETERS     | Custom rule parameters are malformed
----------------|-----------------------------|-----------------------------------------
Context         | INVALID_VALIDATION_CONTEXT  | Caller passed a malformed context
----------------|-----------------------------|-----------------------------------------
"""

from __future__ import annotations


class GitGovKernelError(Exception):
    """
    Base exception for all GitGov kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "GITGOV_KERNEL_ERROR"


# Methodology exceptions


class MethodologyError(GitGovKernelError):
    """Base exception for methodology configuration errors."""

    code: str = "METHODOLOGY_ERROR"


class InvalidMethodologyError(MethodologyError):
    """Methodology failed structural or business-rule validation."""

    code: str = "INVALID_METHODOLOGY"

    def __init__(self, methodology_name: str, errors: list[str]):
        self.methodology_name = methodology_name
        self.errors = list(errors)
        super().__init__(
            f"Invalid {methodology_name} methodology: " + "; ".join(self.errors)
        )


class UnknownPresetError(MethodologyError):
    """Requested built-in methodology preset does not exist."""

    code: str = "UNKNOWN_PRESET"

    def __init__(self, preset_name: str, available: tuple[str, ...]):
        self.preset_name = preset_name
        self.available = available
        super().__init__(
            f"Unknown methodology preset '{preset_name}' "
            f"(available: {', '.join(available)})"
        )


class InvalidRuleParametersError(MethodologyError):
    """A custom rule's ``parameters`` cannot be evaluated."""

    code: str = "INVALID_RULE_PARAMETERS"

    def __init__(self, parameter_name: str, value: object, expected: str):
        self.parameter_name = parameter_name
        self.value = value
        self.expected = expected
        super().__init__(
            f"Custom rule parameter '{parameter_name}' must be {expected}, got {value!r}"
        )


# Caller contract exceptions


class ValidationContextError(GitGovKernelError):
    """
    A ValidationContext (or an argument evaluated against one) is malformed.

    This is a programmer error in the caller, not a business outcome.
    """

    code: str = "INVALID_VALIDATION_CONTEXT"

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"Invalid validation context field '{field_name}': {reason}")
