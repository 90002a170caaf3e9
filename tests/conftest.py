"""Shared fixtures: in-memory database, fake sink/lookup and a controllable clock."""
from datetime import datetime, timedelta

import pytest

from reminders.database import create_session_factory
from reminders.dedup import DedupGuard
from reminders.dispatch import DispatchEngine
from reminders.errors import UpstreamError
from reminders.gate import TaskCompletionGate
from reminders.interfaces import ContributionStatus, DeliveryResult
from reminders.store import PreferenceStore


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2024, 5, 1, 22, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, minutes):
        self.now = self.now + timedelta(minutes=minutes)


class FakeSink:
    """Records every send; per-user failures can be scripted."""

    def __init__(self):
        self.sent = []
        self.failures = {}
        self.raises = set()

    def send(self, user_id, text, keyboard=None):
        if user_id in self.raises:
            raise ConnectionError("socket closed")
        failure = self.failures.get(user_id)
        if failure is not None:
            return DeliveryResult.failed(failure, f"scripted {failure.value}")
        self.sent.append((user_id, text))
        return DeliveryResult.success()

    def recipients(self):
        return [user_id for user_id, _ in self.sent]


class FakeLookup:
    """Maps userkey -> profileId -> canGenerate; "boom" keys raise."""

    def __init__(self):
        self.profiles = {}
        self.statuses = {}
        self.calls = []

    def resolve_profile_id(self, identity_key):
        self.calls.append(identity_key)
        if identity_key.startswith("boom"):
            raise UpstreamError("ethos", "connection reset")
        return self.profiles.get(identity_key)

    def get_daily_contribution_status(self, profile_id):
        status = self.statuses.get(profile_id)
        if status is None:
            raise UpstreamError("ethos", "HTTP error! status: 500", 500)
        return ContributionStatus(can_generate=status)


@pytest.fixture
def session_factory():
    return create_session_factory("sqlite://")


@pytest.fixture
def store(session_factory):
    return PreferenceStore(session_factory)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def dedup(session_factory, clock):
    return DedupGuard(session_factory, clock=clock)


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def lookup():
    return FakeLookup()


@pytest.fixture
def gate(lookup):
    return TaskCompletionGate(lookup)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def engine(store, gate, dedup, sink, sleeps, clock):
    return DispatchEngine(store, gate, dedup, sink, sleep=sleeps.append, clock=clock)

