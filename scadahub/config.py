"""
Configuration for SCADA Hub
===========================
Runtime settings loaded from ``SCADAHUB_*`` environment variables.
Sets up the logging configuration as well.
"""

import logging
import os
import sys
from contextlib import suppress
from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler
from typing import Any

from scadahub.domain.exceptions import ConfigurationError

DEFAULT_CONTROLLER_NAMES = ("controller 1", "controller 2", "controller 3")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be an integer.") from None


def _env_list(name: str, default: tuple[str, ...]) -> list[str]:
    raw = os.getenv(name)
    if raw is None:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("SCADAHUB_ENV", "development"))
    secret_key: str = field(default_factory=lambda: os.getenv("SCADAHUB_SECRET_KEY", "ScadaHubDevSecretKey"))

    # REST control plane and Socket.IO telemetry share one server
    host: str = field(default_factory=lambda: os.getenv("SCADAHUB_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_int("SCADAHUB_PORT", 8080))

    # Persistence
    persistence_enabled: bool = field(default_factory=lambda: _env_bool("SCADAHUB_PERSISTENCE_ENABLED", True))
    state_file: str = field(default_factory=lambda: os.getenv("SCADAHUB_STATE_FILE", "controllers.json"))
    default_controllers: list[str] = field(
        default_factory=lambda: _env_list("SCADAHUB_DEFAULT_CONTROLLERS", DEFAULT_CONTROLLER_NAMES)
    )

    # Simulation
    tick_interval_ms: int = field(default_factory=lambda: _env_int("SCADAHUB_TICK_INTERVAL_MS", 1000))
    scheduler_workers: int = field(default_factory=lambda: _env_int("SCADAHUB_SCHEDULER_WORKERS", 2))

    # Socket.IO
    socketio_cors_origins: str = field(default_factory=lambda: os.getenv("SCADAHUB_SOCKETIO_CORS", "*"))
    telemetry_event: str = field(default_factory=lambda: os.getenv("SCADAHUB_TELEMETRY_EVENT", "telemetry"))
    telemetry_namespace: str = field(default_factory=lambda: os.getenv("SCADAHUB_TELEMETRY_NAMESPACE", "/"))

    # Logging
    DEBUG: bool = field(default_factory=lambda: _env_bool("SCADAHUB_DEBUG", False))
    log_level: str = field(default_factory=lambda: os.getenv("SCADAHUB_LOG_LEVEL", "INFO"))
    log_file: str = field(default_factory=lambda: os.getenv("SCADAHUB_LOG_FILE", "logs/scadahub.log"))
    audit_log_path: str = field(default_factory=lambda: os.getenv("SCADAHUB_AUDIT_LOG_PATH", "logs/audit.log"))

    # Default insecure secret key - used only for detection
    _DEFAULT_SECRET_KEY: str = field(default="ScadaHubDevSecretKey", init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self.validate()

    def validate(self) -> None:
        """
        Check field values; call again after changing attributes.

        Raises:
            ConfigurationError: on an unusable value
        """
        if self.environment == "production" and self.secret_key == self._DEFAULT_SECRET_KEY:
            raise ConfigurationError(
                "SECURITY ERROR: Cannot use default secret key in production!\n"
                "Set SCADAHUB_SECRET_KEY environment variable to a secure random value."
            )
        for name in ("tick_interval_ms", "scheduler_workers", "port"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if self.tick_interval_ms <= 0:
            raise ConfigurationError(f"SCADAHUB_TICK_INTERVAL_MS must be positive, got {self.tick_interval_ms}")
        if self.scheduler_workers <= 0:
            raise ConfigurationError(f"SCADAHUB_SCHEDULER_WORKERS must be positive, got {self.scheduler_workers}")

    @property
    def tick_interval_seconds(self) -> float:
        return self.tick_interval_ms / 1000.0

    def as_flask_config(self) -> dict[str, Any]:
        """Render configuration values for Flask application."""
        return {
            "ENV": self.environment,
            "SECRET_KEY": self.secret_key,
            "STATE_FILE": self.state_file,
            "SOCKETIO_CORS_ALLOWED_ORIGINS": self.socketio_cors_origins,
            "AUDIT_LOG_PATH": self.audit_log_path,
            "DEBUG": self.DEBUG,
        }


def setup_logging(debug: bool = False, log_level: str = "INFO", log_file: str | None = "logs/scadahub.log") -> None:
    """Setup logging configuration."""
    if debug:
        level = logging.DEBUG
    else:
        level = logging.getLevelName(str(log_level).upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    # Avoid adding duplicates when create_app is called multiple times
    has_console = any(getattr(h, "name", "") == "scadahub_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "scadahub_file" for h in root.handlers)
    added_handler = False

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "scadahub_console"
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if log_file and not has_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = "scadahub_file"
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    for handler in root.handlers:
        if getattr(handler, "name", "") in {"scadahub_console", "scadahub_file"}:
            handler.setLevel(level)

    if added_handler:
        root.info(f"Logging initialized at level: {logging.getLevelName(level)}")

    if _env_bool("SCADAHUB_SILENCE_WERKZEUG", True):
        logging.getLogger("werkzeug").setLevel(logging.WARNING)

    # Engine.IO polling logs every few seconds per client
    if _env_bool("SCADAHUB_SILENCE_SOCKETIO", True):
        logging.getLogger("socketio").setLevel(logging.WARNING)
        logging.getLogger("engineio").setLevel(logging.WARNING)


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    config = AppConfig()
    if not config.default_controllers:
        logging.getLogger("config_loader").warning("SCADAHUB_DEFAULT_CONTROLLERS is empty; registry may start empty")
    return config
