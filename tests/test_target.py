from sessionsvc.services.namespacing import qualifier
from sessionsvc.services.descriptor import Identity
from sessionsvc.services.target import build_teardown, make_composite, make_target, stop_in_reverse

from .conftest import RecordingSupervisor


def test_target_starts_members_in_order(supervisor):
    target = make_target(supervisor, "session", "Session", ["a", "b", "c"])

    assert target.start() == ["a", "b", "c"]
    assert supervisor.names("start") == ["a", "b", "c"]


def test_target_ignores_user_arguments(supervisor):
    target = make_target(supervisor, "session", "Session", ["a"])

    assert target.start("x", "y") == ["a"]


def test_target_stop_reverses_and_reports_failure(supervisor):
    target = make_target(supervisor, "session", "Session", ["a", "b", "c"])

    assert target.stop() is False
    assert supervisor.names("stop") == ["c", "b", "a"]


def test_target_stop_continues_past_failures():
    supervisor = RecordingSupervisor(failing_stops={"b"})
    target = make_target(supervisor, "session", "Session", ["a", "b", "c"])

    assert target.stop() is False
    assert supervisor.names("stop") == ["c", "b", "a"]


def test_partial_start_does_not_roll_back():
    supervisor = RecordingSupervisor(failing_starts={"b"})
    target = make_target(supervisor, "session", "Session", ["a", "b", "c"])

    assert target.start() is False
    assert supervisor.calls == [("start", "a"), ("start", "b")]


def test_target_descriptor_fields(supervisor):
    target = make_target(supervisor, "settings", "Display settings", ["xresources"], requires=["xorg"])

    assert target.identity == "settings"
    assert target.provides == ("settings",)
    assert target.requires == ("xorg",)
    assert not target.one_shot


def test_stop_in_reverse_returns_failures():
    supervisor = RecordingSupervisor(failing_stops={"a", "c"})

    assert stop_in_reverse(supervisor, ["a", "b", "c"]) == ["c", "a"]


def test_build_teardown_always_fails(supervisor):
    assert build_teardown(supervisor, [])() is False


def test_composite_selects_and_qualifies(supervisor):
    desktop = make_composite(supervisor, "desktop", "Desktop", base=["xorg", "settings"], default=["wm"],
                             pre_transform=Identity, post_transform=qualifier(":0"))

    assert desktop.start() == ["xorg:0", "settings:0", "wm:0"]
    assert desktop.start("emacs") == ["xorg:0", "settings:0", "emacs:0"]


def test_composite_stop_tears_down_base_and_default_in_reverse(supervisor):
    desktop = make_composite(supervisor, "desktop", "Desktop", base=["xorg", "settings"], default=["wm"],
                             pre_transform=Identity, post_transform=qualifier(":0"))

    assert desktop.stop() is False
    assert supervisor.names("stop") == ["wm:0", "settings:0", "xorg:0"]
