import shlex
import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Set

from sessionsvc.services.descriptor import Identity, Service, is_success

log = logging.getLogger(__name__)


class ServiceLookupError(KeyError):
    """Raised when a service or one of its actions cannot be found."""


class ServiceManager:
    """
    A minimal in-process binding of the supervisor interface.

    It indexes registered services by every name they provide, starts and
    stops them by identity, and remembers the value each running service's
    start returned. It does not watch processes or restart anything.
    """

    def __init__(self) -> None:
        """Initializes the ServiceManager state."""
        self.services: Dict[str, Service] = {}
        self.registered: List[Service] = []
        # Insertion order is start order.
        self.running_values: Dict[Identity, Any] = {}
        self._starting: Set[Identity] = set()
        self.shutdown_signal_received = threading.Event()

    def register(self, services: Iterable[Service]) -> None:
        """
        Registers services in the given order.

        :param services: The descriptors to register.
        :raises ValueError: If a provided name is already taken.
        """
        count = 0
        for service in services:
            for name in service.provides:
                if name in self.services:
                    raise ValueError(
                        f"'{name}' provided by '{service.identity}' is already provided by "
                        f"'{self.services[name].identity}'."
                    )
            for name in service.provides:
                self.services[name] = service
            self.registered.append(service)
            count += 1
        log.info(f"Registered {count} services.")

    def lookup(self, name: str) -> Optional[Service]:
        return self.services.get(name)

    def is_running(self, name: str) -> bool:
        service = self.lookup(name)
        return service is not None and service.identity in self.running_values

    def running(self) -> List[Identity]:
        """Returns the identities of the running services, in start order."""
        return list(self.running_values)

    def start(self, name: str, *args: str) -> Any:
        """
        Starts a service and, first, everything it requires.

        :param name: Any name provided by the service.
        :param args: Arguments passed to the start operation.
        :return: The value returned by the start operation, or False on failure.
        """
        service = self.lookup(name)
        if service is None:
            log.error(f"Cannot start unknown service '{name}'.")
            return False

        identity = service.identity
        if identity in self.running_values:
            log.debug(f"Service '{identity}' is already running.")
            return self.running_values[identity]
        if identity in self._starting:
            log.error(f"Service '{identity}' requires itself. Not starting it.")
            return False

        self._starting.add(identity)
        try:
            for requirement in service.requires:
                if not is_success(self.start(requirement)):
                    log.error(f"Cannot start '{identity}': requirement '{requirement}' failed to start.")
                    return False

            log.info(f"Starting service '{identity}'...")
            try:
                result = service.start(*args)
            except Exception as e:
                log.error(f"Start of '{identity}' raised an error: {e}", exc_info=True)
                return False
        finally:
            self._starting.discard(identity)

        if not is_success(result):
            log.warning(f"Service '{identity}' could not be started.")
            return False

        if service.one_shot:
            log.info(f"One-shot service '{identity}' completed.")
        else:
            self.running_values[identity] = result
            log.info(f"Service '{identity}' has been started.")
        return result

    def stop(self, name: str, *args: str) -> Any:
        """
        Stops a running service.

        The service is considered stopped afterwards whatever its stop
        operation reports; the report is returned to the caller.

        :param name: Any name provided by the service.
        :return: The value returned by the stop operation. True if it was not running.
        """
        service = self.lookup(name)
        if service is None:
            log.error(f"Cannot stop unknown service '{name}'.")
            return False

        identity = service.identity
        if identity not in self.running_values:
            log.debug(f"Service '{identity}' is not running.")
            return True

        del self.running_values[identity]
        log.info(f"Stopping service '{identity}'...")
        try:
            result = service.stop(*args)
        except Exception as e:
            log.error(f"Stop of '{identity}' raised an error: {e}", exc_info=True)
            return False

        if is_success(result):
            log.info(f"Service '{identity}' has been stopped.")
        else:
            log.info(f"Service '{identity}' is stopped; its stop reported failure.")
        return result

    def action(self, name: str, action_name: str, *args: str) -> Any:
        """
        Runs a named auxiliary operation of a service.

        :raises ServiceLookupError: If the service or the action does not exist.
        """
        service = self.lookup(name)
        if service is None:
            raise ServiceLookupError(f"Unknown service '{name}'.")
        operation = service.action(action_name)
        if operation is None:
            raise ServiceLookupError(f"Service '{service.identity}' has no action '{action_name}'.")

        log.info(f"Running action '{action_name}' of '{service.identity}'.")
        return operation(*args)

    def evaluate(self, command: str) -> Any:
        """
        Evaluates a control command such as "start wm:0" or "action wm:0 reload".

        Supported verbs: start, stop, restart, action, status.

        :return: The result of the command, or False if it is malformed or unknown.
        """
        try:
            words = shlex.split(command)
        except ValueError as e:
            log.error(f"Cannot parse control command '{command}': {e}")
            return False

        if len(words) < 2:
            log.error(f"Control command '{command}' needs a verb and a service name.")
            return False

        verb, name, args = words[0].lower(), words[1], words[2:]
        log.debug(f"Evaluating control command: {verb}, {name}, args: {args}")

        if verb == "start":
            return self.start(name, *args)
        if verb == "stop":
            return self.stop(name, *args)
        if verb == "restart":
            self.stop(name)
            return self.start(name, *args)
        if verb == "status":
            return self.is_running(name)
        if verb == "action":
            if not args:
                log.error(f"Control command '{command}' is missing the action name.")
                return False
            try:
                return self.action(name, args[0], *args[1:])
            except ServiceLookupError as e:
                log.error(f"Control command '{command}' failed: {e}")
                return False

        log.error(f"Unknown control command: '{verb}'.")
        return False

    def stop_all(self) -> None:
        """Stops every running service, most recently started first."""
        running = self.running()
        if not running:
            log.info("No running services found to stop.")
            return

        log.info(f"Stopping {len(running)} running services...")
        for identity in reversed(running):
            self.stop(identity)
        log.info("Stop sequence completed.")
