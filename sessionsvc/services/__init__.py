"""
The services package.

Contains the service descriptor and the combinators used to declare the
session: environment overlays, launch strategies, display namespacing, the
starter combinator and targets.
"""
from .descriptor import Identity, Service, Supervisor, derive, is_success
from .environment import AgentSocketSlot, EnvironmentOverlay, Literal, Probe
from .namespacing import display_to_vt, instantiate, qualify, qualify_description, qualify_many
from .starter import build_starter
from .target import make_composite, make_target

__all__ = [
    "Identity", "Service", "Supervisor", "derive", "is_success",
    "AgentSocketSlot", "EnvironmentOverlay", "Literal", "Probe",
    "display_to_vt", "instantiate", "qualify", "qualify_description", "qualify_many",
    "build_starter",
    "make_composite", "make_target",
]
