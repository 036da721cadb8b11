"""
UCCA Temporal Test Configuration and Fixtures

Provides shared fixtures for unit and integration tests.
"""

import shutil
import tempfile
from pathlib import Path

import pytest

from ucca_temporal.core.types import (
    ActionRef,
    ControlAction,
    Controller,
    EventTrace,
    TemporalFormula,
    TemporalOperator,
    TimeBound,
    TimedEvent,
    TimingConstraint,
)

# ============================================================================
# CATALOG FIXTURES
# ============================================================================


@pytest.fixture
def controllers() -> list[Controller]:
    """Two controllers from a simple braking control structure."""
    return [
        Controller(id="C1", name="Driver", type="human"),
        Controller(id="C2", name="Brake Controller", type="software"),
    ]


@pytest.fixture
def actions() -> list[ControlAction]:
    """One control action per controller."""
    return [
        ControlAction(id="A1", controller_id="C1", verb="press", object="pedal"),
        ControlAction(id="A2", controller_id="C2", verb="apply", object="brakes"),
    ]


@pytest.fixture
def launch_catalog() -> tuple[list[Controller], list[ControlAction]]:
    """Catalog whose verbs match the default precedence rules."""
    controllers = [
        Controller(id="crew", name="Launch Crew", type="team"),
        Controller(id="lcs", name="Launch Control System"),
    ]
    actions = [
        ControlAction(id="arm", controller_id="crew", verb="arm", object="igniter"),
        ControlAction(id="launch", controller_id="lcs", verb="launch", object="vehicle"),
        ControlAction(id="abort", controller_id="lcs", verb="abort", object="sequence"),
    ]
    return controllers, actions


# ============================================================================
# FORMULA FIXTURES
# ============================================================================


@pytest.fixture
def a1() -> ActionRef:
    return ActionRef(controller_id="C1", action_id="A1")


@pytest.fixture
def a2() -> ActionRef:
    return ActionRef(controller_id="C2", action_id="A2")


@pytest.fixture
def too_late_formula(a1, a2) -> TemporalFormula:
    """A2 must follow A1 within 500ms."""
    return TemporalFormula(
        id="too-late-A1-A2",
        operator=TemporalOperator.EVENTUALLY,
        constraint=TimingConstraint.TOO_LATE,
        subjects=(a1, a2),
        timebound=TimeBound(max=500),
    )


@pytest.fixture
def too_early_formula(a1, a2) -> TemporalFormula:
    """A2 must not occur before A1."""
    return TemporalFormula(
        id="too-early-A1-A2",
        operator=TemporalOperator.UNTIL,
        constraint=TimingConstraint.TOO_EARLY,
        subjects=(a1, a2),
    )


@pytest.fixture
def too_long_formula(a1) -> TemporalFormula:
    """A1 must not be applied for more than 1000ms."""
    return TemporalFormula(
        id="too-long-A1",
        operator=TemporalOperator.ALWAYS,
        constraint=TimingConstraint.TOO_LONG,
        subjects=(a1,),
        timebound=TimeBound(max=1000),
    )


@pytest.fixture
def wrong_order_formula(a1, a2) -> TemporalFormula:
    """A2 must follow A1 before A1 repeats."""
    return TemporalFormula(
        id="wrong-order-A1-A2",
        operator=TemporalOperator.NEXT,
        constraint=TimingConstraint.WRONG_ORDER,
        subjects=(a1, a2),
    )


# ============================================================================
# TRACE FIXTURES
# ============================================================================


def make_event(timestamp: int, controller_id: str, action_id: str, provided: bool = True):
    """Shorthand for building a TimedEvent."""
    return TimedEvent(
        timestamp=timestamp, controller_id=controller_id, action_id=action_id, provided=provided
    )


@pytest.fixture
def event():
    """Factory fixture for TimedEvents."""
    return make_event


@pytest.fixture
def empty_trace() -> EventTrace:
    """Empty trace for edge case testing."""
    return EventTrace(trace_id="empty")


@pytest.fixture
def late_trace() -> EventTrace:
    """A2 answers A1 after 800ms."""
    return EventTrace(
        trace_id="late", events=(make_event(0, "C1", "A1"), make_event(800, "C2", "A2"))
    )


@pytest.fixture
def timely_trace() -> EventTrace:
    """A2 answers A1 after 400ms."""
    return EventTrace(
        trace_id="timely", events=(make_event(0, "C1", "A1"), make_event(400, "C2", "A2"))
    )


@pytest.fixture
def large_trace() -> EventTrace:
    """Large alternating trace for performance testing."""
    events = []
    for i in range(2000):
        events.append(make_event(i * 100, "C1", "A1"))
        events.append(make_event(i * 100 + 50, "C2", "A2"))
    return EventTrace(trace_id="large", events=tuple(events))


# ============================================================================
# TEMPORARY DIRECTORY FIXTURES
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def output_file(temp_dir):
    """Create a temporary output file path."""
    return temp_dir / "output.json"


# ============================================================================
# CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
