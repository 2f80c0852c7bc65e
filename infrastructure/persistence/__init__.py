"""Storage gateways for controller state."""

from .controller_store import JsonControllerStore, NullControllerStore

__all__ = ["JsonControllerStore", "NullControllerStore"]
