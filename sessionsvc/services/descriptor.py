"""
Service descriptors: the declarative unit handed to the supervisor.

A descriptor names one logical component and carries the operations that
bring it up and down. Descriptors are built once while the registry is
assembled and are never mutated afterwards; new variants are derived from
existing ones with :func:`derive`.
"""
import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, NewType, Optional, Protocol, Tuple

log = logging.getLogger(__name__)

Identity = NewType("Identity", str)

# An operation takes zero or more string arguments. False or None means failure,
# every other value (an empty list included) means success.
Operation = Callable[..., Any]


def is_success(result: Any) -> bool:
    """Interprets the value returned by an operation."""
    return result is not False and result is not None


def identities(names: Iterable[str]) -> Tuple[Identity, ...]:
    """Converts an iterable of names into a tuple of identities, preserving order."""
    return tuple(Identity(name) for name in names)


def _not_startable(*_args: str) -> bool:
    return False


def _nothing_to_stop(*_args: str) -> bool:
    return True


class Supervisor(Protocol):
    """The part of the external supervisor the composition layer relies on."""

    def register(self, services: Iterable["Service"]) -> None: ...

    def start(self, identity: str, *args: str) -> Any: ...

    def stop(self, identity: str, *args: str) -> Any: ...

    def evaluate(self, command: str) -> Any: ...


@dataclass(frozen=True)
class Service:
    """
    A declarative description of one service.

    Attributes:
        identity: The primary name of the service.
        description: Human readable description.
        provides: Every name the service answers to; always contains `identity`.
        requires: Names that must be running before the service starts.
        start: Operation bringing the service up.
        stop: Operation bringing the service down.
        actions: Named auxiliary operations (e.g. "reload").
        one_shot: The service does its work in `start` and never stays running.
    """
    identity: Identity
    description: str = ""
    provides: Tuple[Identity, ...] = ()
    requires: Tuple[Identity, ...] = ()
    start: Operation = _not_startable
    stop: Operation = _nothing_to_stop
    actions: Mapping[str, Operation] = field(default_factory=dict)
    one_shot: bool = False

    def __post_init__(self) -> None:
        provides = identities(self.provides)
        if self.identity not in provides:
            provides = (self.identity,) + provides
        object.__setattr__(self, "provides", provides)
        object.__setattr__(self, "requires", identities(self.requires))
        object.__setattr__(self, "actions", MappingProxyType(dict(self.actions)))

    def action(self, name: str) -> Optional[Operation]:
        """Returns the auxiliary operation called `name`, if the service has one."""
        return self.actions.get(name)


def derive(base: Service, **overrides: Any) -> Service:
    """
    Builds a new descriptor from `base` with the named fields replaced.

    When `identity` is overridden without `provides`, the base identity is not
    carried over into the new provided names.

    :param base: The descriptor to start from.
    :param overrides: Field names and their new values.
    :return: A new, independent descriptor.
    :raises TypeError: If an override does not name a descriptor field.
    """
    if "identity" in overrides and "provides" not in overrides:
        overrides["provides"] = tuple(name for name in base.provides if name != base.identity)
    if "actions" in overrides:
        overrides["actions"] = dict(overrides["actions"])
    return replace(base, **overrides)
