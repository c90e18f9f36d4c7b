import logging

import pytest

from sessionsvc import main as entry
from sessionsvc.log.setup import MainFormatter, SubprocessLogFilter, setup_logging


@pytest.fixture
def restore_root_handlers():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_main_registers_and_shuts_down(monkeypatch):
    titles = []
    managers = []
    monkeypatch.setenv("SESSIONSVC_AUTOSTART", "0")
    monkeypatch.setattr(entry.setproctitle, "setproctitle", titles.append)
    monkeypatch.setattr(entry, "setup_logging", lambda: None)

    def request_shutdown(manager):
        managers.append(manager)
        manager.shutdown_signal_received.set()

    monkeypatch.setattr(entry, "_install_signal_handlers", request_shutdown)

    assert entry.main() == 0
    assert titles == [entry.config.PROCESS_TITLE]
    manager = managers[0]
    assert manager.lookup("xorg:0") is not None
    assert manager.running() == []


def test_setup_logging_installs_single_console_handler(restore_root_handlers):
    setup_logging(logging.WARNING)
    setup_logging(logging.INFO, show_subprocess_output=False)

    handlers = restore_root_handlers.handlers
    assert len(handlers) == 1
    assert handlers[0].level == logging.INFO
    assert isinstance(handlers[0].formatter, MainFormatter)
    assert any(isinstance(f, SubprocessLogFilter) for f in handlers[0].filters)


def test_formatter_passes_child_output_through():
    formatter = MainFormatter()
    child = logging.LogRecord("proc.wm:0", logging.INFO, __file__, 1, "window manager ready", None, None)
    own = logging.LogRecord("sessionsvc.registry", logging.INFO, __file__, 1, "assembled", None, None)

    assert formatter.format(child) == "[wm:0] window manager ready"
    assert "[sessionsvc.registry] - assembled" in formatter.format(own)
    assert SubprocessLogFilter().filter(child) is False
    assert SubprocessLogFilter().filter(own) is True


def test_signals_are_routed_before_autostart(monkeypatch):
    events = []
    monkeypatch.setattr(entry.setproctitle, "setproctitle", lambda title: None)
    monkeypatch.setattr(entry, "setup_logging", lambda: None)
    monkeypatch.setattr(entry, "_install_signal_handlers", lambda manager: events.append("signals"))

    def interrupted_registration(manager, services, environ=None):
        events.append("register")
        manager.running_values["dbus"] = True
        manager.stop = lambda name, *args: events.append(f"stop {name}")
        raise KeyboardInterrupt

    monkeypatch.setattr(entry, "register_session", interrupted_registration)

    with pytest.raises(KeyboardInterrupt):
        entry.main()

    assert events == ["signals", "register", "stop dbus"]
