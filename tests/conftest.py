"""Shared fixtures: manual scheduler and clock, in-memory store."""

import pytest

from core import IncenseTimer
from history import HistoryStore, MemoryBackend
from recorder import SessionRecorder
from tests.fakes import FakeClock, ManualScheduler


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend):
    return HistoryStore(backend)


@pytest.fixture
def chimes():
    return []


@pytest.fixture
def timer(scheduler, chimes, clock):
    return IncenseTimer(scheduler=scheduler, total_duration=300,
                        chime=lambda: chimes.append(True), clock=clock)


@pytest.fixture
def recorder(store, clock, timer):
    rec = SessionRecorder(store, clock)
    rec.attach(timer)
    rec.load()
    return rec
