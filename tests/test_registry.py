import pytest

from sessionsvc.local import effective_settings as config
from sessionsvc.local.supervisor import ServiceManager, register_session
from sessionsvc.registry import build_registry
from sessionsvc.services.environment import AgentSocketSlot, EnvironmentOverlay

from .conftest import BUS_ADDRESS, RecordingSupervisor

DAEMONS = ["dbus", "ssh-agent", "pulseaudio", "emacs"]
FAMILY = ["xorg", "xresources", "xsettingsd", "settings", "wm", "desktop"]


@pytest.fixture
def registry_overlay():
    return EnvironmentOverlay(bus_address=BUS_ADDRESS, agent_slot=AgentSocketSlot(), base={})


def test_registry_order(registry_overlay):
    services = build_registry(RecordingSupervisor(), registry_overlay, displays=[":0", ":1", ":2"])

    expected = DAEMONS + ["daemons", "eval"] + [
        f"{name}{display}" for display in (":0", ":1", ":2") for name in FAMILY
    ]
    assert [service.identity for service in services] == expected


def test_registry_defaults_to_configured_displays(registry_overlay):
    services = build_registry(RecordingSupervisor(), registry_overlay)

    assert len(services) == len(DAEMONS) + 2 + len(FAMILY) * len(config.DISPLAYS)


def test_display_server_registered_before_anything_requiring_it(registry_overlay):
    services = build_registry(RecordingSupervisor(), registry_overlay, displays=[":0", ":1"])
    position = {service.identity: index for index, service in enumerate(services)}

    for service in services:
        for requirement in service.requires:
            assert position[requirement] < position[service.identity]


def test_display_family_is_qualified(registry_overlay):
    services = {service.identity: service
                for service in build_registry(RecordingSupervisor(), registry_overlay, displays=[":1"])}

    settings = services["settings:1"]
    assert settings.requires == ("xorg:1",)
    assert settings.description == "Display settings (display=:1)"
    assert services["wm:1"].action("reload") is not None
    assert services["xresources:1"].one_shot
    assert services["eval"].one_shot


def test_display_targets_start_qualified_members(registry_overlay):
    supervisor = RecordingSupervisor()
    services = {service.identity: service
                for service in build_registry(supervisor, registry_overlay, displays=[":2"])}

    assert services["settings:2"].start() == ["xresources:2", "xsettingsd:2"]
    assert services["desktop:2"].start() == ["xorg:2", "settings:2", "wm:2"]
    assert services["desktop:2"].start("emacs") == ["xorg:2", "settings:2", "emacs:2"]


def test_daemons_composite_accepts_a_selection(registry_overlay):
    supervisor = RecordingSupervisor()
    services = {service.identity: service for service in build_registry(supervisor, registry_overlay, displays=[])}

    assert services["daemons"].start() == DAEMONS
    assert services["daemons"].start("ssh-agent") == ["ssh-agent"]


def test_eval_runs_every_command(registry_overlay):
    supervisor = RecordingSupervisor(eval_results={"stop wm:0": False})
    services = {service.identity: service for service in build_registry(supervisor, registry_overlay, displays=[])}

    assert services["eval"].start("start wm:0", "stop wm:0", "start xorg:1") is False
    assert supervisor.names("eval") == ["start wm:0", "stop wm:0", "start xorg:1"]
    assert services["eval"].start() is True


def test_registry_registers_without_collisions(registry_overlay):
    manager = ServiceManager()

    result = register_session(manager, build_registry(manager, registry_overlay), {"SESSIONSVC_AUTOSTART": "0"})

    assert result is False
    assert manager.running() == []
    assert manager.lookup("desktop:2").identity == "desktop:2"
