"""
The starter combinator.

A starter brings up a fixed base list followed by either the arguments the
user passed or a default list, strictly in order, and gives up at the first
service that fails to start. Services started before the failure are left
running.
"""
import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence, Union

from sessionsvc.services.descriptor import Identity, Operation, Supervisor, is_success

log = logging.getLogger(__name__)

Transform = Callable[[str], Identity]


def start_in_order(supervisor: Supervisor, names: Sequence[str]) -> bool:
    """
    Starts `names` one after the other, stopping at the first failure.

    :return: True if every service started.
    """
    for position, name in enumerate(names):
        if not is_success(supervisor.start(name)):
            log.error(f"Failed to start '{name}'. Not starting {len(names) - position - 1} remaining service(s).")
            return False
    return True


def build_starter(supervisor: Supervisor, base: Iterable[str], default: Iterable[str],
                  pre_transform: Optional[Transform] = None,
                  post_transform: Optional[Transform] = None) -> Operation:
    """
    Builds an all-or-nothing start operation.

    When called with arguments, they replace `default` after going through
    `pre_transform`; without `pre_transform` they are dropped. `base` always
    comes first. `post_transform`, when given, is applied to every element of
    the combined list before anything is started.

    :param supervisor: The supervisor used to start services by identity.
    :param base: Services that are always started, first.
    :param default: Services started when no arguments are given.
    :param pre_transform: Maps each user argument to an identity.
    :param post_transform: Maps every element of the combined list (e.g. display qualification).
    :return: An operation returning the started list, or False on failure.
    """
    base_list = list(base)
    default_list = list(default)

    def starter(*user_args: str) -> Union[List[Any], bool]:
        if user_args:
            selected = [pre_transform(arg) for arg in user_args] if pre_transform else []
        else:
            selected = list(default_list)

        combined = base_list + selected
        if post_transform is not None:
            combined = [post_transform(name) for name in combined]

        log.debug(f"Starting in order: {', '.join(combined) or '(nothing)'}")
        if not start_in_order(supervisor, combined):
            return False
        return combined

    return starter
