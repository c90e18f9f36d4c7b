"""
Display namespacing.

One service template is instantiated once per display. Qualified identities
are the base identity followed by the display (`xorg` on `:1` is `xorg:1`),
which stays collision free as long as the supported displays do not prefix
one another.
"""
import re
import logging
from typing import Any, Callable, Iterable, List, Optional

from sessionsvc.local import effective_settings as config
from sessionsvc.services.descriptor import Identity, Service, derive

log = logging.getLogger(__name__)

_TRAILING_NUMBER = re.compile(r"(\d+)$")


def qualify(display: str, base: str) -> Identity:
    return Identity(f"{base}{display}")


def qualify_many(display: str, bases: Iterable[str]) -> List[Identity]:
    return [qualify(display, base) for base in bases]


def qualify_description(display: str, text: str) -> str:
    return f"{text} (display={display})"


def qualifier(display: str) -> Callable[[str], Identity]:
    """Returns a one-argument function qualifying identities to `display`."""
    return lambda base: qualify(display, base)


def display_number(display: str) -> int:
    """
    Parses the trailing number of a display identifier.

    A display without a trailing number is a configuration error; the lookup
    fails with AttributeError.
    """
    return int(_TRAILING_NUMBER.search(display).group(1))


def display_to_vt(display: str) -> str:
    """Returns the virtual console a display runs on: ":0" -> "vt7"."""
    return f"vt{config.VT_BASE + display_number(display)}"


def x11_socket_exists(display: str) -> bool:
    return (config.X11_SOCKET_DIR / f"X{display_number(display)}").exists()


def first_active_display(displays: Optional[Iterable[str]] = None,
                         is_active: Callable[[str], bool] = x11_socket_exists) -> str:
    """
    Returns the first display with a live server, or the first display if none is up.

    Meant to be used as a probe: it looks at the X sockets each time it is called.
    """
    candidates = list(config.DISPLAYS if displays is None else displays)
    for display in candidates:
        if is_active(display):
            return display
    log.debug(f"No active display found, falling back to {candidates[0]}")
    return candidates[0]


def instantiate(template: Service, display: str, **overrides: Any) -> Service:
    """
    Produces the instance of `template` bound to `display`.

    Identity, provided and required names and the description are qualified;
    everything else is taken from the template unless overridden. The start and
    stop operations must be supplied already closed over the raw display.
    """
    qualified = {
        "identity": qualify(display, template.identity),
        "provides": tuple(qualify_many(display, template.provides)),
        "requires": tuple(qualify_many(display, template.requires)),
        "description": qualify_description(display, template.description),
    }
    qualified.update(overrides)
    return derive(template, **qualified)
