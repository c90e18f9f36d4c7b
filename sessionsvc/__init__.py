"""
Session services.

Declarative definitions of the long-running programs of a desktop session,
composed into targets and instantiated once per display, for registration
with a process supervisor.
"""

__version__ = "0.1.0"
