"""
Credential agent launcher.

The agent picks its listening socket itself, so the only way to learn it is
to read what the agent prints when it daemonizes. The captured path is kept
in the AgentSocketSlot that every environment overlay reads.
"""
import re
import logging
import subprocess
from typing import List, Optional, Sequence

import psutil

from sessionsvc.local import effective_settings as config
from sessionsvc.local.process_utils import read_pipe
from sessionsvc.services.environment import AgentSocketSlot, EnvironmentOverlay
from sessionsvc.services.launch import swapped_environment

log = logging.getLogger(__name__)


def _assignment_pattern(variable: str, value: str) -> "re.Pattern[str]":
    return re.compile(rf"\b{re.escape(variable)}=({value});")


SOCKET_PATTERN = _assignment_pattern(config.AGENT_SOCKET_VARIABLE, r"[^;]+")
PID_PATTERN = _assignment_pattern(config.AGENT_PID_VARIABLE, r"\d+")


def parse_agent_output(lines: Sequence[str]) -> Optional[str]:
    """Returns the socket path from the first line announcing it, if any."""
    for line in lines:
        match = SOCKET_PATTERN.search(line)
        if match:
            return match.group(1)
    return None


def parse_agent_pid(lines: Sequence[str]) -> Optional[int]:
    for line in lines:
        match = PID_PATTERN.search(line)
        if match:
            return int(match.group(1))
    return None


class AgentLauncher:
    """
    Starts the credential agent as a one-shot command and records its socket.

    :param name: The logical name of the service.
    :param argv: The agent command line; it must print shell assignments.
    :param overlay: The overlay used for the agent's environment.
    :param slot: The slot receiving the captured socket path.
    """

    def __init__(self, name: str, argv: Sequence[str], overlay: EnvironmentOverlay, slot: AgentSocketSlot) -> None:
        self.name = name
        self.argv = list(argv)
        self.overlay = overlay
        self.slot = slot

    def _run(self) -> Optional[List[str]]:
        """Runs the agent and returns its output lines, or None if it failed."""
        with swapped_environment(self.overlay.build):
            try:
                proc = subprocess.Popen(self.argv, stdin=subprocess.DEVNULL, stdout=subprocess.PIPE)
            except (OSError, subprocess.SubprocessError) as e:
                log.error(f"Failed to launch '{self.name}' ({self.argv[0]}): {e}")
                return None

        lines: List[str] = []
        read_pipe(proc.stdout, self.name, logging.DEBUG, lines.append)

        try:
            returncode = proc.wait()
        except ChildProcessError:
            # Guard only: Popen.wait maps ECHILD to status 0 itself. Reached if the
            # agent was reaped elsewhere in a way that surfaces the error.
            log.debug(f"'{self.name}' was already reaped, treating it as started.")
            returncode = 0

        if returncode != 0:
            log.warning(f"'{self.name}' exited with status {returncode}.")
            return None
        return lines

    def start(self, *_args: str) -> bool:
        lines = self._run()
        if lines is None:
            return False

        socket = parse_agent_output(lines)
        if socket:
            self.slot.set(socket, parse_agent_pid(lines))
            log.info(f"Captured {config.AGENT_SOCKET_VARIABLE}={socket} from '{self.name}'.")
        else:
            log.warning(f"'{self.name}' did not report a socket. Keeping '{self.slot.socket}'.")
        return True

    def stop(self, *_args: str) -> bool:
        """Terminates the agent recorded in the slot and forgets its socket."""
        pid = self.slot.pid
        self.slot.clear()
        if pid is None:
            log.debug(f"No agent PID recorded for '{self.name}', nothing to stop.")
            return True

        try:
            psutil.Process(pid).terminate()
            log.info(f"Sent SIGTERM to {self.name} (PID {pid}).")
        except psutil.NoSuchProcess:
            log.debug(f"Agent {self.name} (PID {pid}) already exited.")
        except psutil.Error as e:
            log.error(f"Failed to stop '{self.name}' (PID {pid}): {e}")
            return False
        return True
