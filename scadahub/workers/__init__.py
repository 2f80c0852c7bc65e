"""
Workers module for background services and scheduled tasks.

This module contains:
- unified_scheduler: fixed-rate scheduler that drives the telemetry tick
"""

__all__ = [
    "ScheduledJob",
    "UnifiedScheduler",
]

from scadahub.workers.unified_scheduler import ScheduledJob, UnifiedScheduler
