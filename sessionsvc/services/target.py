"""
Targets: services whose whole lifecycle is an ordered member list.

Starting a target starts its members in order (all-or-nothing, no rollback).
Stopping it stops every member in reverse order, whatever happens to the
individual stops, and then reports failure: a stopped session is not a
state to resume, the only way back is to start the target again.
"""
import logging
from typing import Iterable, List, Mapping, Optional

from sessionsvc.services.descriptor import Identity, Operation, Service, Supervisor, is_success
from sessionsvc.services.starter import Transform, build_starter

log = logging.getLogger(__name__)


def stop_in_reverse(supervisor: Supervisor, names: Iterable[str]) -> List[str]:
    """
    Stops every name in reverse order without short-circuiting.

    :return: The names whose stop reported failure.
    """
    failed = []
    for name in reversed(list(names)):
        if not is_success(supervisor.stop(name)):
            log.warning(f"Failed to stop '{name}', continuing teardown.")
            failed.append(name)
    return failed


def build_teardown(supervisor: Supervisor, members: Iterable[str]) -> Operation:
    """Builds a stop operation tearing `members` down in reverse; it always reports failure."""
    member_list = list(members)

    def teardown(*_args: str) -> bool:
        failed = stop_in_reverse(supervisor, member_list)
        if failed:
            log.warning(f"Teardown finished with {len(failed)} failed stop(s): {', '.join(failed)}")
        return False

    return teardown


def make_target(supervisor: Supervisor, identity: str, description: str, members: Iterable[str],
                requires: Iterable[str] = (), actions: Optional[Mapping[str, Operation]] = None) -> Service:
    """
    Builds a target over a fixed member list.

    :param supervisor: The supervisor starting and stopping members by identity.
    :param identity: The target's identity.
    :param description: Human readable description.
    :param members: Ordered member identities.
    :param requires: Names required before the target starts.
    :param actions: Optional auxiliary operations.
    """
    member_list = list(members)
    return Service(
        identity=Identity(identity),
        description=description,
        requires=tuple(requires),
        start=build_starter(supervisor, member_list, []),
        stop=build_teardown(supervisor, member_list),
        actions=actions or {},
    )


def make_composite(supervisor: Supervisor, identity: str, description: str, base: Iterable[str],
                   default: Iterable[str], pre_transform: Optional[Transform] = None,
                   post_transform: Optional[Transform] = None, requires: Iterable[str] = ()) -> Service:
    """
    Builds a composite whose start accepts a user selection on top of `base`.

    Stopping it tears down `base` followed by `default` (after `post_transform`)
    in reverse order, like a target.
    """
    base_list = list(base)
    default_list = list(default)
    teardown_list = base_list + default_list
    if post_transform is not None:
        teardown_list = [post_transform(name) for name in teardown_list]

    return Service(
        identity=Identity(identity),
        description=description,
        requires=tuple(requires),
        start=build_starter(supervisor, base_list, default_list, pre_transform, post_transform),
        stop=build_teardown(supervisor, teardown_list),
    )
