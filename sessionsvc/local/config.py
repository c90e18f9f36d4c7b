import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import sessionsvc.settings as default_settings

log = logging.getLogger(__name__)


class MergedSettings:
    """
    A class that merges default settings with JSON overrides.

    This class provides a unified, attribute-based access point for all
    session configuration. It follows a clear precedence:
    1. Base values from `settings.py`.
    2. Overrides from the environment / `.env` file (handled by `python-dotenv` in settings.py).
    3. Overrides from `overrides.json` for settings in `MODIFIABLE_SETTINGS`.

    :param overrides_path: The overrides file; `OVERRIDES_JSON_PATH` when omitted.
    """

    def __init__(self, overrides_path: Union[str, Path, None] = None) -> None:
        """Initializes the settings object by loading defaults and overrides."""
        self._load_defaults()
        if overrides_path is not None:
            self.OVERRIDES_JSON_PATH = Path(overrides_path)
        self._load_overrides()

    def _load_defaults(self) -> None:
        """
        Loads all uppercase attributes from the settings.py module as defaults.
        """
        for key in dir(default_settings):
            if key.isupper():
                setattr(self, key, getattr(default_settings, key))

    def _load_overrides(self) -> None:
        """
        Loads and applies settings from the `overrides.json` file.

        A missing file is not an error. An unreadable or invalid file is
        logged and the defaults are kept.
        """
        if not self.OVERRIDES_JSON_PATH.exists():
            return

        try:
            with self.OVERRIDES_JSON_PATH.open("r") as f:
                overrides = json.load(f)
            if not isinstance(overrides, dict):
                raise ValueError("top level must be an object")

            log.info(f"Loading runtime configuration overrides from {self.OVERRIDES_JSON_PATH}")
            self.apply_overrides(overrides)
        except (json.JSONDecodeError, OSError, ValueError) as e:
            log.error(f"Failed to load or parse overrides file '{self.OVERRIDES_JSON_PATH}': {e}")

    @staticmethod
    def _coerce(original_value: Any, value: Any) -> Any:
        """Coerces a new value to the type of the default it replaces."""
        if isinstance(original_value, bool):
            return str(value).lower() in ('true', '1', 't', 'yes', 'y')
        if isinstance(original_value, Path):
            return Path(value)
        if isinstance(original_value, tuple):
            if isinstance(value, str):
                return tuple(item.strip() for item in value.split(",") if item.strip())
            return tuple(value)
        if original_value is not None:
            return type(original_value)(value)
        return value

    def apply_overrides(self, overrides: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Applies a mapping of overrides to the settings.

        Only keys that are explicitly listed in the `MODIFIABLE_SETTINGS` set
        in `settings.py` are applied; everything else is ignored with a warning.

        :param overrides: A mapping of setting names to new values.
        :return: The settings that were actually changed, after coercion.
        :raises ValueError: If a value cannot be converted to the setting's type.
        """
        applied: Dict[str, Any] = {}
        for key, value in overrides.items():
            if not hasattr(self, key):
                log.warning(f"Override setting '{key}' not found in default settings. Ignoring.")
                continue
            if key not in self.MODIFIABLE_SETTINGS:
                log.warning(f"Attempted to override non-modifiable setting '{key}'. Ignoring.")
                continue

            try:
                new_value = self._coerce(getattr(self, key), value)
            except (TypeError, ValueError) as e:
                raise ValueError(f"Could not convert value '{value}' for key '{key}'. Error: {e}") from e

            setattr(self, key, new_value)
            applied[key] = new_value
            log.debug(f"Overridden setting: {key} = {new_value}")
        return applied

    def session_bus_address(self, uid: Optional[int] = None) -> str:
        """
        Returns the session bus address of the invoking user.

        The address is derived from the user id so that concurrent sessions of
        different users never share a bus.
        """
        if uid is None:
            uid = os.getuid()
        return self.SESSION_BUS_ADDRESS_TEMPLATE.format(runtime_dir=self.RUNTIME_DIR, uid=uid)

    def autostart_enabled(self, environ: Optional[Mapping[str, str]] = None) -> bool:
        """
        Checks whether the baseline services should be started at registration time.

        Unset means enabled; an empty string or "0" disables it.
        """
        if environ is None:
            environ = os.environ
        value = environ.get(self.AUTOSTART_VARIABLE)
        if value is None:
            return True
        return value not in ("", "0")


# Create a singleton instance to be imported by other modules
effective_settings = MergedSettings()
