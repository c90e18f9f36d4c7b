"""
Environment overlays for child processes.

Every child gets a copy of the supervisor's environment with the session
variables forced: the session bus address, the forwarded agent socket (once
the agent launcher captured one) and, for display-scoped services, the
display. The display can be a literal or a probe evaluated each time an
overlay is built, so it reflects conditions at start time.
"""
import os
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Union

from sessionsvc.local import effective_settings as config

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Literal:
    """A context value known when the service is declared."""
    value: str

    def resolve(self) -> str:
        return self.value


@dataclass(frozen=True)
class Probe:
    """A context value computed by calling `probe` every time it is needed."""
    probe: Callable[[], str]

    def resolve(self) -> str:
        return self.probe()


ContextValue = Union[Literal, Probe]


def as_context(value: Union[str, ContextValue, None]) -> Optional[ContextValue]:
    """Wraps a plain string into a Literal, passing other context values through."""
    if value is None or isinstance(value, (Literal, Probe)):
        return value
    if callable(value):
        return Probe(value)
    return Literal(value)


class AgentSocketSlot:
    """
    Holds the socket path of the running credential agent.

    Written only by the agent launcher, read by every overlay. All access
    happens on the supervisor's control thread.
    """

    def __init__(self) -> None:
        self.socket: str = ""
        self.pid: Optional[int] = None

    def set(self, socket: str, pid: Optional[int] = None) -> None:
        self.socket = socket
        self.pid = pid

    def clear(self) -> None:
        self.socket = ""
        self.pid = None

    def __bool__(self) -> bool:
        return bool(self.socket)


class EnvironmentOverlay:
    """
    Computes derived environments on top of the ambient process environment.

    :param bus_address: The session bus address forced into every overlay.
    :param agent_slot: The slot holding the captured agent socket.
    :param base: The ambient environment; `os.environ` when omitted. It is read
                 on every call and never modified.
    """

    def __init__(self, bus_address: Optional[str] = None, agent_slot: Optional[AgentSocketSlot] = None,
                 base: Optional[Mapping[str, str]] = None) -> None:
        self.bus_address = bus_address if bus_address is not None else config.session_bus_address()
        self.agent_slot = agent_slot if agent_slot is not None else AgentSocketSlot()
        self._base = base

    def build(self, context: Union[str, ContextValue, None] = None) -> Dict[str, str]:
        """
        Produces the environment for one child process.

        :param context: The display, as a literal string or a Literal/Probe.
                        Probes are resolved now, on every call.
        :return: A new dictionary; the ambient environment is left untouched.
        """
        base = os.environ if self._base is None else self._base
        env = dict(base)
        env[config.BUS_ADDRESS_VARIABLE] = self.bus_address
        if self.agent_slot.socket:
            env[config.AGENT_SOCKET_VARIABLE] = self.agent_slot.socket

        context_value = as_context(context)
        if context_value is not None:
            env[config.DISPLAY_VARIABLE] = context_value.resolve()
        return env
