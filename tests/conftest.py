"""Shared test fixtures."""

import sys

import pytest

# Ensure src is in path
sys.path.insert(0, "src")

from cofutures import Scheduler, VirtualClock


@pytest.fixture
def clock():
    """Virtual clock starting at t=0."""
    return VirtualClock()


@pytest.fixture
def scheduler(clock):
    """Fresh Scheduler on the virtual clock, current for the duration of the test."""
    scheduler = Scheduler(clock=clock)
    with scheduler.activate():
        yield scheduler
