import logging
from typing import TYPE_CHECKING, Iterable, Mapping, Optional

from sessionsvc.local import effective_settings as config
from sessionsvc.services.descriptor import Service, is_success

if TYPE_CHECKING:
    from .supervisor import ServiceManager

log = logging.getLogger(__name__)


def autostart(manager: "ServiceManager", environ: Optional[Mapping[str, str]] = None) -> bool:
    """
    Starts the always-running composites unless the environment disables it.

    :param manager: The ServiceManager instance.
    :param environ: The environment to read the switch from; os.environ when omitted.
    :return: True if everything was started, False if skipped or if a start failed.
    """
    if not config.autostart_enabled(environ):
        log.info(f"Autostart disabled by {config.AUTOSTART_VARIABLE}. Skipping baseline start-up.")
        return False

    results = [is_success(manager.start(name)) for name in config.ALWAYS_RUNNING]
    if not all(results):
        log.error("Baseline start-up did not complete.")
        return False
    log.info("Baseline services started.")
    return True


def register_session(manager: "ServiceManager", services: Iterable[Service],
                     environ: Optional[Mapping[str, str]] = None) -> bool:
    """
    Registers the session services and runs the automatic start-up.

    :param manager: The ServiceManager instance.
    :param services: The assembled registry.
    :param environ: The environment consulted for the autostart switch.
    :return: The result of the automatic start-up.
    """
    manager.register(services)
    return autostart(manager, environ)
