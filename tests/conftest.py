import pytest

from sessionsvc.services.environment import AgentSocketSlot, EnvironmentOverlay

BUS_ADDRESS = "unix:path=/tmp/test-bus"


class RecordingSupervisor:
    """Records start/stop calls; names listed in `failing_starts`/`failing_stops` fail."""

    def __init__(self, failing_starts=(), failing_stops=(), eval_results=None):
        self.calls = []
        self.failing_starts = set(failing_starts)
        self.failing_stops = set(failing_stops)
        self.eval_results = eval_results or {}
        self.registered = []

    def register(self, services):
        self.registered.extend(services)

    def start(self, identity, *args):
        self.calls.append(("start", identity))
        return identity not in self.failing_starts

    def stop(self, identity, *args):
        self.calls.append(("stop", identity))
        return identity not in self.failing_stops

    def evaluate(self, command):
        self.calls.append(("eval", command))
        return self.eval_results.get(command, True)

    def names(self, verb):
        return [name for op, name in self.calls if op == verb]


@pytest.fixture
def supervisor():
    return RecordingSupervisor()


@pytest.fixture
def slot():
    return AgentSocketSlot()


@pytest.fixture
def overlay(slot):
    return EnvironmentOverlay(bus_address=BUS_ADDRESS, agent_slot=slot)
