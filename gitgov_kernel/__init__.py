"""
GitGov Kernel

Pure core of the workflow authorization engine:
- Immutable methodology model (states, transitions, signature groups)
- Record value objects consumed by evaluation (tasks, actors, signatures)
- Typed exceptions with machine-readable codes
- Structured JSON logging
"""

__version__ = "0.1.0"
