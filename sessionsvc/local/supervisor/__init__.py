"""
The Supervisor package.
A minimal in-process binding of the supervisor interface.

This package contains the ServiceManager class, which registers service
descriptors and starts and stops them by identity, and the start-up helpers
run once the registry has been assembled.
"""
from .supervisor import ServiceLookupError, ServiceManager
from .startup import autostart, register_session

__all__ = ['ServiceLookupError', 'ServiceManager', 'autostart', 'register_session']
