"""
Registry assembly.

The registry is the ordered list handed to the supervisor: the daemons, the
miscellaneous composites, then the complete family of every supported
display in display order.
"""
import logging
from typing import Iterable, List, Optional

from sessionsvc import apps
from sessionsvc.local import effective_settings as config
from sessionsvc.services.descriptor import Service, Supervisor
from sessionsvc.services.environment import EnvironmentOverlay

log = logging.getLogger(__name__)


def build_registry(supervisor: Supervisor, overlay: Optional[EnvironmentOverlay] = None,
                   displays: Optional[Iterable[str]] = None) -> List[Service]:
    """
    Assembles the full, ordered list of session services.

    :param supervisor: The supervisor the composites start and stop members through.
    :param overlay: The environment overlay shared by every launched program.
    :param displays: The supported displays; the configured ones when omitted.
    :return list: The service descriptors, in registration order.
    """
    if overlay is None:
        overlay = EnvironmentOverlay()
    if displays is None:
        displays = config.DISPLAYS

    daemons = apps.daemons(overlay)
    composites = apps.misc_composites(supervisor, [service.identity for service in daemons])
    families = [
        service
        for display in displays
        for service in apps.display_family(supervisor, overlay, display)
    ]

    services = daemons + composites + families
    log.debug(f"Assembled {len(services)} services.")
    return services
