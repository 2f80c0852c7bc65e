"""
Control-plane API blueprints.
"""

from .controllers import controllers_api

__all__ = ["controllers_api"]
