"""
Logging module for the session services.
This module provides functionality to set up console logging.
"""

from .setup import setup_logging

__all__ = ["setup_logging"]
