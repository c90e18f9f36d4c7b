"""
Local package for the session services.

This package provides the merged session configuration through the
config module, the helpers used to spawn and observe child processes, and
the in-process supervisor binding.
"""

from .config import effective_settings

__all__ = ["effective_settings"]
