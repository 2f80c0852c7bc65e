"""Logging helpers that live outside the application package."""

from .audit import AuditLogger

__all__ = ["AuditLogger"]
