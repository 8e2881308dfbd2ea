"""
Pytest configuration file for the lazy iterator tests.

This file ensures that the project root is in the Python path
so that test files can import lazy, sources, async_lazy, collection,
models and utils modules.
"""

import sys
from pathlib import Path

# Add the parent directory to the Python path
parent_dir = Path(__file__).parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

import pytest


@pytest.fixture
def call_log():
    """List that side-effecting callbacks append to."""
    return []


@pytest.fixture
def tracked_square(call_log):
    """A square function that records every argument it sees."""
    def square(x):
        call_log.append(x)
        return x * x
    return square


@pytest.fixture(autouse=True)
def isolated_performance_tracker():
    """Clear the shared performance tracker around each test."""
    from utils import performance_tracker
    performance_tracker.clear()
    yield
    performance_tracker.clear()
