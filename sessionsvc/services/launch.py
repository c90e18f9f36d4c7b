"""
Process launch strategies.

Two ways of bringing a program up and down:

* fork-and-track: the child is spawned directly and tracked; stopping it
  sends SIGTERM (and SIGKILL once the grace period expires).
* synchronous command: the command runs to completion inside the overlay
  environment and success is judged by its exit status. Used for programs
  that daemonize themselves and for one-shot control commands.

Synchronous commands swap the ambient environment while they run. The swap
is guarded by a process-wide lock, so at most one synchronous command runs
at a time.
"""
import os
import logging
import threading
import subprocess
from contextlib import contextmanager
from typing import Callable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import psutil

from sessionsvc.local import effective_settings as config
from sessionsvc.local.process_utils import get_popen_session_flags, log_process_output
from sessionsvc.services.descriptor import Operation
from sessionsvc.services.environment import ContextValue, EnvironmentOverlay

log = logging.getLogger(__name__)

_ENVIRONMENT_LOCK = threading.Lock()

Context = Union[str, ContextValue, None]


#* --- Ambient Environment Swap ---
@contextmanager
def swapped_environment(env: Union[Mapping[str, str], Callable[[], Mapping[str, str]]]) -> Iterator[None]:
    """
    Replaces the ambient environment with `env` for the duration of the block.

    The previous environment is restored on every exit path, exceptions
    included. Holding the lock serialises swaps process-wide. `env` may be a
    callable; it is then called with the lock held, so an overlay built from
    the ambient environment never sees another swap in progress.
    """
    with _ENVIRONMENT_LOCK:
        if callable(env):
            env = env()
        saved = dict(os.environ)
        os.environ.clear()
        os.environ.update(env)
        try:
            yield
        finally:
            os.environ.clear()
            os.environ.update(saved)


def run_command(name: str, argv: Sequence[str]) -> bool:
    """
    Runs a command to completion in the current ambient environment.

    :param name: The logical name used in log messages.
    :param argv: The command line.
    :return: True if the command exited with status zero, False otherwise,
             including when the program cannot be executed.
    """
    log.debug(f"Running command for '{name}': {' '.join(argv)}")
    try:
        result = subprocess.run(list(argv), stdin=subprocess.DEVNULL, check=False)
    except (OSError, subprocess.SubprocessError) as e:
        log.error(f"Failed to run command for '{name}' ({argv[0]}): {e}")
        return False

    if result.returncode != 0:
        log.warning(f"Command for '{name}' exited with status {result.returncode}.")
        return False
    return True


#* --- Fork and Track ---
class TrackedProcess:
    """A child process spawned and tracked on behalf of one service."""

    def __init__(self, name: str, argv: Sequence[str], overlay: EnvironmentOverlay, context: Context = None) -> None:
        self.name = name
        self.argv = list(argv)
        self.overlay = overlay
        self.context = context
        self.process: Optional[psutil.Process] = None
        self._popen: Optional[subprocess.Popen] = None

    def start(self, *_args: str) -> bool:
        """Spawns the child with an overlay computed now, not at declaration time."""
        env = self.overlay.build(self.context)
        log.info(f"Starting process: {self.name}...")
        try:
            self._popen = subprocess.Popen(
                self.argv,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                **get_popen_session_flags()
            )
        except (OSError, subprocess.SubprocessError) as e:
            log.error(f"Failed to start process '{self.name}': {e}")
            return False

        log_process_output(self._popen, self.name)
        self.process = psutil.Process(self._popen.pid)
        log.info(f"{self.name} started with PID: {self._popen.pid}")
        return True

    def stop(self, *_args: str) -> bool:
        """Sends SIGTERM to the tracked child, killing it if it outlives the grace period."""
        proc, self.process = self.process, None
        if proc is None:
            log.debug(f"No tracked process for '{self.name}', nothing to stop.")
            return True

        try:
            log.debug(f"Sending SIGTERM to {self.name} (PID {proc.pid})")
            proc.terminate()
            _, alive = psutil.wait_procs([proc], timeout=config.GRACEFUL_SHUTDOWN_TIMEOUT)
            for stubborn in alive:
                log.warning(f"Killing stubborn process {self.name} (PID {stubborn.pid}).")
                stubborn.kill()
            psutil.wait_procs(alive, timeout=config.GRACEFUL_SHUTDOWN_TIMEOUT)
        except psutil.NoSuchProcess:
            log.debug(f"Process {self.name} (PID {proc.pid}) already exited.")
        except psutil.Error as e:
            log.error(f"Failed to stop process '{self.name}' (PID {proc.pid}): {e}")
            return False
        finally:
            if self._popen is not None:
                self._popen.poll()
                self._popen = None

        log.info(f"Process {self.name} stopped.")
        return True


def fork_and_track(name: str, argv: Sequence[str], overlay: EnvironmentOverlay,
                   context: Context = None) -> Tuple[Operation, Operation]:
    """
    Builds the start and stop operations of a directly spawned, tracked child.

    :param name: The logical name of the service, used for logging.
    :param argv: The command line of the child.
    :param overlay: The overlay providing the child's environment.
    :param context: The display, literal or probe, resolved at start time.
    :return tuple: (start, stop) operations.
    """
    tracked = TrackedProcess(name, argv, overlay, context)
    return tracked.start, tracked.stop


#* --- Synchronous Commands ---
def _command_operation(name: str, argv: Sequence[str], overlay: EnvironmentOverlay,
                       context: Context, verb: str) -> Operation:
    base_argv: List[str] = list(argv)

    def operation(*args: str) -> bool:
        log.info(f"{verb} {name} with command: {base_argv[0]}")
        with swapped_environment(lambda: overlay.build(context)):
            return run_command(name, base_argv + list(args))

    return operation


def synchronous_command(name: str, argv: Sequence[str], overlay: EnvironmentOverlay,
                        context: Context = None) -> Operation:
    """
    Builds an operation that runs `argv` to completion inside the overlay.

    Arguments given to the operation are appended to the command line. The
    operation succeeds iff the command exits with status zero.
    """
    return _command_operation(name, argv, overlay, context, "Running")


def teardown_command(name: str, argv: Sequence[str], overlay: EnvironmentOverlay,
                     context: Context = None) -> Operation:
    """
    Builds a stop operation that runs a designated teardown command.

    The stop succeeds iff the teardown command exits with status zero; a
    nonzero exit means the service could not be stopped.
    """
    return _command_operation(name, argv, overlay, context, "Stopping")
