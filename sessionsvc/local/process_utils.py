import sys
import logging
import threading
import subprocess
from typing import IO, Any, Callable, Dict, Optional

log = logging.getLogger(__name__)


def get_popen_session_flags() -> Dict[str, Any]:
    """
    Returns platform-specific session flags for subprocess.Popen.

    Children are placed in their own session so that a terminal signal sent
    to the supervisor does not reach them directly; the supervisor tears them
    down explicitly.

    :return dict: A dictionary of keyword arguments for Popen.
    """
    if sys.platform == "win32":
        return {}
    return {"start_new_session": True}


def read_pipe(pipe: IO[bytes], process_name: str, log_level: int,
              line_handler: Optional[Callable[[str], None]] = None) -> None:
    """
    Reads a child's output pipe until EOF, logging every non-empty line.

    Lines go to the `proc.<process_name>` logger. When `line_handler` is given
    it also receives each line, after it has been logged. The pipe is closed
    on return.
    """
    proc_logger = logging.getLogger(f"proc.{process_name}")
    try:
        for line_bytes in iter(pipe.readline, b""):
            line = line_bytes.decode("utf-8", errors="replace").strip()
            if not line:
                continue
            proc_logger.log(log_level, line)
            if line_handler is not None:
                line_handler(line)
    except (OSError, ValueError) as e:
        proc_logger.debug(f"Pipe reader for {process_name} stream exited: {e}")
    finally:
        pipe.close()


def log_process_output(process: subprocess.Popen, process_name: str) -> None:
    """
    Drains a tracked child's stdout/stderr in daemon threads.

    Long-running children would block once a pipe buffer fills up, so both
    streams are consumed for as long as the child lives.

    :param process: The `subprocess.Popen` object to monitor.
    :param process_name: The logical name of the process for logging context.
    """
    for pipe, level, stream in ((process.stdout, logging.INFO, "stdout"),
                                (process.stderr, logging.ERROR, "stderr")):
        if pipe:
            threading.Thread(
                target=read_pipe,
                args=(pipe, process_name, level),
                daemon=True,
                name=f"{process_name}-{stream}"
            ).start()
