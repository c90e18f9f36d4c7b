import dataclasses

import pytest

from sessionsvc.services.descriptor import Identity, Service, derive, identities, is_success


def test_provides_always_includes_identity():
    service = Service(identity=Identity("dbus"), provides=("bus",))

    assert service.provides == ("dbus", "bus")
    assert Service(identity=Identity("dbus")).provides == ("dbus",)


def test_provides_keeps_identity_position_when_listed():
    service = Service(identity=Identity("dbus"), provides=("bus", "dbus"))

    assert service.provides == ("bus", "dbus")


def test_descriptor_is_immutable():
    service = Service(identity=Identity("dbus"), actions={"reload": lambda: True})

    with pytest.raises(dataclasses.FrozenInstanceError):
        service.description = "changed"
    with pytest.raises(TypeError):
        service.actions["other"] = lambda: True


def test_default_operations():
    service = Service(identity=Identity("template"))

    assert service.start() is False
    assert service.stop() is True
    assert service.action("reload") is None


def test_derive_applies_named_overrides_only():
    start = lambda *args: True  # noqa: E731
    base = Service(identity=Identity("wm"), description="Window manager", requires=("xorg",))

    derived = derive(base, description="Tiling window manager", start=start)

    assert derived.description == "Tiling window manager"
    assert derived.start is start
    assert derived.requires == ("xorg",)
    assert base.description == "Window manager"
    assert base.start is not start


def test_derive_new_identity_drops_old_identity_from_provides():
    base = Service(identity=Identity("wm"), provides=("window-manager",))

    derived = derive(base, identity=Identity("wm:0"))

    assert derived.provides == ("wm:0", "window-manager")


def test_derive_rejects_unknown_field():
    with pytest.raises(TypeError):
        derive(Service(identity=Identity("wm")), respawn=True)


@pytest.mark.parametrize("result, expected", [
    (True, True),
    ([], True),
    (["dbus"], True),
    (0, True),
    (False, False),
    (None, False),
])
def test_is_success(result, expected):
    assert is_success(result) is expected


def test_identities_preserves_order():
    assert identities(["b", "a", "c"]) == ("b", "a", "c")
