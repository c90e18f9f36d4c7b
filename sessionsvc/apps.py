"""
Declarations of the session's applications.

Daemons run once per session; everything in `display_family` is declared as
an unqualified template and instantiated for each display.
"""
from typing import List, Sequence

from sessionsvc.local import effective_settings as config
from sessionsvc.services.agent import AgentLauncher
from sessionsvc.services.descriptor import Identity, Service, Supervisor, is_success
from sessionsvc.services.environment import EnvironmentOverlay, Probe
from sessionsvc.services.launch import fork_and_track, synchronous_command, teardown_command
from sessionsvc.services.namespacing import (display_to_vt, first_active_display, instantiate, qualifier,
                                             qualify, qualify_many)
from sessionsvc.services.target import make_composite, make_target

#* --- Daemons ---
def dbus(overlay: EnvironmentOverlay) -> Service:
    argv = list(config.DBUS_COMMAND) + [f"--address={overlay.bus_address}"]
    start, stop = fork_and_track("dbus", argv, overlay)
    return Service(identity=Identity("dbus"), description="Session message bus", start=start, stop=stop)


def ssh_agent(overlay: EnvironmentOverlay) -> Service:
    launcher = AgentLauncher("ssh-agent", config.SSH_AGENT_COMMAND, overlay, overlay.agent_slot)
    return Service(identity=Identity("ssh-agent"), description="SSH key agent",
                   start=launcher.start, stop=launcher.stop)


def pulseaudio(overlay: EnvironmentOverlay) -> Service:
    # pulseaudio daemonizes itself, so it is driven through its control commands.
    return Service(
        identity=Identity("pulseaudio"),
        description="Sound server",
        requires=("dbus",),
        start=synchronous_command("pulseaudio", config.PULSEAUDIO_START_COMMAND, overlay),
        stop=teardown_command("pulseaudio", config.PULSEAUDIO_STOP_COMMAND, overlay),
    )


def emacs(overlay: EnvironmentOverlay) -> Service:
    start, stop = fork_and_track("emacs", config.EMACS_COMMAND, overlay, Probe(first_active_display))
    return Service(identity=Identity("emacs"), description="Emacs server", requires=("dbus",),
                   start=start, stop=stop)


def daemons(overlay: EnvironmentOverlay) -> List[Service]:
    return [dbus(overlay), ssh_agent(overlay), pulseaudio(overlay), emacs(overlay)]


#* --- Miscellaneous Composites ---
def evaluator(supervisor: Supervisor) -> Service:
    """A one-shot service running each of its arguments as a supervisor control command."""
    def evaluate_all(*commands: str) -> bool:
        results = [is_success(supervisor.evaluate(command)) for command in commands]
        return all(results)

    return Service(identity=Identity("eval"), description="Evaluate control commands",
                   start=evaluate_all, one_shot=True)


def misc_composites(supervisor: Supervisor, daemon_names: Sequence[str]) -> List[Service]:
    return [
        make_composite(supervisor, "daemons", "Session daemons", base=[], default=daemon_names,
                       pre_transform=Identity),
        evaluator(supervisor),
    ]


#* --- Per-Display Family ---
XORG = Service(identity=Identity("xorg"), description="X display server")
XRESOURCES = Service(identity=Identity("xresources"), description="X resource database",
                     requires=("xorg",), one_shot=True)
XSETTINGSD = Service(identity=Identity("xsettingsd"), description="XSETTINGS daemon", requires=("xorg",))
WINDOW_MANAGER = Service(identity=Identity("wm"), description="Window manager", requires=("xorg",))

SETTINGS_MEMBERS = ("xresources", "xsettingsd")
DESKTOP_BASE = ("xorg", "settings")
DESKTOP_DEFAULT = ("wm",)


def display_family(supervisor: Supervisor, overlay: EnvironmentOverlay, display: str) -> List[Service]:
    """
    Declares every service of one display, display server first.

    :param supervisor: The supervisor used by the display's targets.
    :param overlay: The overlay used by every launched program.
    :param display: The display, e.g. ":0".
    """
    xorg_argv = list(config.XORG_COMMAND[:1]) + [display, display_to_vt(display)] + list(config.XORG_COMMAND[1:])
    xorg_start, xorg_stop = fork_and_track(qualify(display, "xorg"), xorg_argv, overlay)

    xrdb_argv = list(config.XRDB_COMMAND) + [str(config.XRESOURCES_PATH)]
    xsettingsd_start, xsettingsd_stop = fork_and_track(
        qualify(display, "xsettingsd"), config.XSETTINGSD_COMMAND, overlay, display)

    wm_name = qualify(display, "wm")
    wm_start, wm_stop = fork_and_track(wm_name, config.WINDOW_MANAGER_COMMAND, overlay, display)
    wm_reload = synchronous_command(wm_name, config.WINDOW_MANAGER_RELOAD_COMMAND, overlay, display)

    settings = make_target(supervisor, "settings", "Display settings",
                           qualify_many(display, SETTINGS_MEMBERS), requires=("xorg",))
    desktop = make_composite(supervisor, "desktop", "Graphical desktop", base=DESKTOP_BASE,
                             default=DESKTOP_DEFAULT, pre_transform=Identity,
                             post_transform=qualifier(display), requires=("xorg",))

    return [
        instantiate(XORG, display, start=xorg_start, stop=xorg_stop),
        instantiate(XRESOURCES, display, start=synchronous_command(qualify(display, "xresources"),
                                                                  xrdb_argv, overlay, display)),
        instantiate(XSETTINGSD, display, start=xsettingsd_start, stop=xsettingsd_stop),
        instantiate(settings, display),
        instantiate(WINDOW_MANAGER, display, start=wm_start, stop=wm_stop, actions={"reload": wm_reload}),
        instantiate(desktop, display),
    ]
