"""
Pytest fixtures for the workflow authorization engine test suite.

Provides:
- Structured logging configured for the whole session
- LogContext isolation between tests
- ``captured_logs`` for asserting on structured log records
- Built-in methodology models and adapters
"""

import json
import logging
from io import StringIO

import pytest

from gitgov_config.presets import get_preset
from gitgov_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from gitgov_services.workflow_methodology import WorkflowMethodologyAdapter


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture gitgov_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, kanban_adapter):
            kanban_adapter.project_view("kanban-4col")
            logs = captured_logs()
            assert any(r["message"] == "GITGOV_ENGINE_TRACE" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("gitgov_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Methodology fixtures
# =============================================================================


@pytest.fixture
def kanban():
    """The built-in default (Kanban) methodology."""
    return get_preset("default")


@pytest.fixture
def scrum():
    """The built-in Scrum methodology."""
    return get_preset("scrum")


@pytest.fixture
def kanban_adapter():
    return WorkflowMethodologyAdapter.from_preset("default")


@pytest.fixture
def scrum_adapter():
    return WorkflowMethodologyAdapter.from_preset("scrum")
