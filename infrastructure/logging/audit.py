import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional


class AuditLogger:
    """Structured audit logger that writes append-only records.

    One JSON line per control-plane mutation attempt. With no ``log_path``
    the records are still emitted on the ``scadahub.audit`` logger but no file
    is opened (used by tests and when auditing is switched off).
    """

    def __init__(self, log_path: Optional[str] = None, level: str = "INFO") -> None:
        self.log_path = Path(log_path) if log_path else None

        self.logger = logging.getLogger("scadahub.audit")
        self.logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self.logger.propagate = False

        if self.log_path is None:
            if not self.logger.handlers:
                self.logger.addHandler(logging.NullHandler())
            return

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        target = str(self.log_path.resolve())

        # Avoid duplicate handlers when the app is created more than once
        if not any(
            isinstance(handler, RotatingFileHandler) and getattr(handler, "baseFilename", None) == target
            for handler in self.logger.handlers
        ):
            handler = RotatingFileHandler(
                filename=target,
                maxBytes=10 * 1024 * 1024,  # 10 MB
                backupCount=30,
                encoding="utf-8",
                delay=True,
            )
            formatter = logging.Formatter(
                fmt="%(asctime)sZ | %(levelname)s | %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_event(self, actor: str, action: str, resource: str, outcome: str, **metadata: Any) -> None:
        payload: Dict[str, Any] = {
            "actor": actor,
            "action": action,
            "resource": resource,
            "outcome": outcome,
        }
        if metadata:
            payload["meta"] = metadata

        self.logger.info(json.dumps(payload, default=str))
