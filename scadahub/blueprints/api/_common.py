"""
Blueprint Common Utilities
==========================

Shared helper functions for the API blueprints.
"""
from __future__ import annotations

import logging

from flask import current_app, request

logger = logging.getLogger("api._common")


def get_container():
    """
    Get the service container from Flask app config.

    Raises:
        RuntimeError: If container is not configured
    """
    container = current_app.config.get("CONTAINER")
    if not container:
        raise RuntimeError("ServiceContainer not found in app config")
    return container


def get_control_plane():
    return get_container().control_plane


def get_form() -> dict:
    """Form-encoded request body as a plain dict; a repeated key keeps its last value."""
    return {key: values[-1] for key, values in request.form.lists()}


def get_actor() -> str:
    """Caller identity recorded in the audit log."""
    return request.remote_addr or "unknown"
