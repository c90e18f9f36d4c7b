"""
This module contains the configuration settings for the session services.
It defines the supported displays, the session bus location, the program
command lines of every declared application and the logging configuration.
It is used throughout the package to ensure consistent settings and paths.
"""

import os
import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

#* --- Core Paths ---
HOME_DIR = pathlib.Path(os.getenv("HOME", "~")).expanduser()
RUNTIME_DIR = pathlib.Path(os.getenv("SESSIONSVC_RUNTIME_DIR", "/tmp"))
X11_SOCKET_DIR = pathlib.Path("/tmp/.X11-unix")
OVERRIDES_JSON_PATH = pathlib.Path(
    os.getenv("SESSIONSVC_OVERRIDES", str(HOME_DIR / ".config" / "sessionsvc" / "overrides.json")))

#* --- Displays ---
# Must stay mutually non-prefixing, qualified identities are plain concatenations.
DISPLAYS = (":0", ":1", ":2")
VT_BASE = 7  # ":0" runs on vt7

#* --- Session Environment ---
SESSION_BUS_ADDRESS_TEMPLATE = "unix:path={runtime_dir}/dbus-session-{uid}"
BUS_ADDRESS_VARIABLE = "DBUS_SESSION_BUS_ADDRESS"
AGENT_SOCKET_VARIABLE = "SSH_AUTH_SOCK"
AGENT_PID_VARIABLE = "SSH_AGENT_PID"
DISPLAY_VARIABLE = "DISPLAY"

#* --- Startup ---
# Empty string or "0" suppresses the automatic start at registration time.
AUTOSTART_VARIABLE = "SESSIONSVC_AUTOSTART"
ALWAYS_RUNNING = ("daemons",)

#* --- Application Command Lines ---
DBUS_COMMAND = ["dbus-daemon", "--session", "--nofork", "--nopidfile"]
SSH_AGENT_COMMAND = ["ssh-agent", "-s"]
PULSEAUDIO_START_COMMAND = ["pulseaudio", "--start"]
PULSEAUDIO_STOP_COMMAND = ["pulseaudio", "--kill"]
EMACS_COMMAND = ["emacs", "--fg-daemon"]
XORG_COMMAND = ["Xorg", "-nolisten", "tcp", "-keeptty"]
XRESOURCES_PATH = HOME_DIR / ".Xresources"
XRDB_COMMAND = ["xrdb", "-merge"]
XSETTINGSD_COMMAND = ["xsettingsd"]
WINDOW_MANAGER_COMMAND = [os.getenv("SESSIONSVC_WM", "openbox")]
WINDOW_MANAGER_RELOAD_COMMAND = [os.getenv("SESSIONSVC_WM", "openbox"), "--reconfigure"]

#* --- Logging ---
LOG_LEVEL = os.getenv("SESSIONSVC_LOG_LEVEL", "INFO").upper()
PROCESS_TITLE = "sessionsvc - Supervisor"
GRACEFUL_SHUTDOWN_TIMEOUT = 10  # seconds before force-killing tracked children

#* --- MODIFIABLE SETTINGS (Changeable through overrides.json) ---
MODIFIABLE_SETTINGS = {
    "DISPLAYS",
    "VT_BASE",
    "LOG_LEVEL",
    "GRACEFUL_SHUTDOWN_TIMEOUT",
    "XRESOURCES_PATH",
}
