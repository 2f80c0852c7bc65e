from __future__ import annotations

from flask import Blueprint, current_app, jsonify

status_bp = Blueprint("status", __name__)


@status_bp.get("/status")
def status():
    container = current_app.config["CONTAINER"]
    scheduler = container.scheduler.get_status()
    return (
        jsonify(
            {
                "status": "ok",
                "controllers": len(container.registry),
                "ticks": container.simulation.tick_count,
                "scheduler_running": scheduler["running"],
                "jobs": scheduler["jobs"],
            }
        ),
        200,
    )
