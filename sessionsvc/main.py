import sys
import signal
import logging

import setproctitle

from sessionsvc.local import effective_settings as config
from sessionsvc.local.supervisor import ServiceManager, register_session
from sessionsvc.log import setup_logging
from sessionsvc.registry import build_registry

log = logging.getLogger(__name__)


def _install_signal_handlers(manager: ServiceManager) -> None:
    """Routes SIGTERM and SIGINT to the manager's shutdown event."""
    def handle_signal(signum, _frame):
        log.info(f"Received signal {signal.Signals(signum).name}. Shutting down.")
        manager.shutdown_signal_received.set()

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)


def main() -> int:
    """The main entry point: register the session services and wait for shutdown."""
    setproctitle.setproctitle(config.PROCESS_TITLE)
    setup_logging()

    manager = ServiceManager()
    log.info("=" * 20 + " Session Services Starting " + "=" * 20)
    try:
        _install_signal_handlers(manager)
        register_session(manager, build_registry(manager))
        while not manager.shutdown_signal_received.wait(timeout=1):
            pass
    finally:
        manager.stop_all()
    return 0


if __name__ == "__main__":
    sys.exit(main())
