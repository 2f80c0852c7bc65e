"""
Domain Package
==============
Controller state value objects and the application exception hierarchy.
"""

from .controller import DISPLAY_PRECISION, ControllerState
from .exceptions import (
    ConfigurationError,
    NotFoundError,
    PersistenceError,
    ScadaHubError,
    ServiceError,
    TransientIOError,
    ValidationError,
)

__all__ = [
    "DISPLAY_PRECISION",
    "ControllerState",
    "ScadaHubError",
    "ValidationError",
    "NotFoundError",
    "ServiceError",
    "TransientIOError",
    "PersistenceError",
    "ConfigurationError",
]
