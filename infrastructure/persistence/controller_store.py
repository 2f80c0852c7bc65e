"""JSON file store for the controller registry.

Loads the registry seed at startup and writes the current snapshot back
after accepted mutations. Writes go through a temporary file and
``os.replace`` so a crash never leaves a truncated state file behind, and a
lockfile keeps two processes from writing at the same time. Reads take no
lock: ``os.replace`` already guarantees a reader sees a whole file.
"""
from __future__ import annotations

import json
import logging
import os
import time
import uuid
from typing import Dict, Iterable, Optional, Tuple

from scadahub.domain.controller import ControllerState
from scadahub.domain.exceptions import PersistenceError
from scadahub.schemas.controller import serialize_controllers

logger = logging.getLogger(__name__)


def _pid_alive(pid: int) -> bool:
    # os.kill(pid, 0) terminates the target on Windows; fall back to the age check there
    if os.name == "nt":
        return True
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    except OSError:
        return False
    return True


class FileLock:
    """Simple file-lock using a lockfile (advisory).

    The lockfile holds ``<pid>:<token>`` and is published with ``os.link`` so
    it never exists without an owner. A lock is treated as stale and broken
    when its content is unreadable, its owning process is gone, or it is
    older than ``stale_after`` seconds.
    """

    def __init__(
        self,
        lock_path: str,
        timeout: float = 5.0,
        retry: float = 0.05,
        stale_after: float = 60.0,
    ) -> None:
        self.lock_path = lock_path
        self.timeout = float(timeout)
        self.retry = float(retry)
        self.stale_after = float(stale_after)
        self._token = f"{os.getpid()}:{uuid.uuid4().hex}"
        self._acquired = False

    def acquire(self) -> bool:
        start = time.time()
        while True:
            try:
                self._publish()
                self._acquired = True
                return True
            except FileExistsError:
                if self._break_if_stale():
                    continue
                if (time.time() - start) >= self.timeout:
                    return False
                time.sleep(self.retry)

    def release(self) -> None:
        try:
            if self._acquired and self._read_owner() == self._token:
                os.unlink(self.lock_path)
        except FileNotFoundError:
            pass
        finally:
            self._acquired = False

    def _publish(self) -> None:
        staging = f"{self.lock_path}.{uuid.uuid4().hex}"
        with open(staging, "w", encoding="utf-8") as fh:
            fh.write(self._token)
        try:
            # link() fails with FileExistsError when the lock is held
            os.link(staging, self.lock_path)
        finally:
            os.unlink(staging)

    def _read_owner(self) -> Optional[str]:
        try:
            with open(self.lock_path, "r", encoding="utf-8") as fh:
                return fh.read().strip()
        except FileNotFoundError:
            return None

    def _break_if_stale(self) -> bool:
        try:
            owner = self._read_owner()
            age = time.time() - os.path.getmtime(self.lock_path)
        except FileNotFoundError:
            # released between our attempt and the check
            return True

        pid_text = (owner or "").split(":", 1)[0]
        if not pid_text.isdigit():
            reason = "no owner recorded"
        elif not _pid_alive(int(pid_text)):
            reason = f"owner pid {pid_text} is gone"
        elif age > self.stale_after:
            reason = f"held for {age:.0f}s"
        else:
            return False

        logger.warning("Breaking stale lock %s (%s)", self.lock_path, reason)
        try:
            os.unlink(self.lock_path)
        except FileNotFoundError:
            pass
        return True

    def __enter__(self):
        if not self.acquire():
            raise PersistenceError(f"Failed to acquire file lock: {self.lock_path}")
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()


class JsonControllerStore:
    """Persistence gateway backed by a single JSON document.

    File layout: ``{"<name>": {"temperature": 21.5, "level": 40.0, "enabled": true}, ...}``.
    Values are stored at full precision so a save/load cycle is lossless.
    """

    def __init__(self, path: str, lock_timeout: float = 5.0, stale_lock_after: float = 60.0) -> None:
        self.path = os.path.abspath(path)
        self.lock_timeout = float(lock_timeout)
        self.stale_lock_after = float(stale_lock_after)

    @property
    def _lock_path(self) -> str:
        return self.path + ".lock"

    def load(self) -> Dict[str, ControllerState]:
        """
        Read the persisted registry.

        A missing file yields an empty mapping. An unreadable or malformed
        file is logged and also yields an empty mapping; malformed entries in
        an otherwise valid file are skipped individually.
        """
        if not os.path.exists(self.path):
            logger.info("No controller state file at %s; starting fresh", self.path)
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, ValueError) as e:
            logger.error("Failed to load controller state from %s: %s", self.path, e)
            return {}

        if not isinstance(raw, dict):
            logger.error("Controller state file %s does not hold a JSON object", self.path)
            return {}

        controllers: Dict[str, ControllerState] = {}
        for name, record in raw.items():
            if not name:
                logger.warning("Skipping controller with empty name in %s", self.path)
                continue
            try:
                controllers[name] = ControllerState.from_dict(record)
            except (TypeError, ValueError) as e:
                logger.warning("Skipping controller '%s' in %s: %s", name, self.path, e)

        logger.info("Loaded %d controller(s) from %s", len(controllers), self.path)
        return controllers

    def save(self, snapshot: Iterable[Tuple[str, ControllerState]]) -> None:
        """
        Write the snapshot atomically.

        Raises:
            PersistenceError: if the file cannot be written or the lock is held
        """
        text = serialize_controllers(snapshot, precision=None)
        tmp = self.path + ".tmp"
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with FileLock(self._lock_path, timeout=self.lock_timeout, stale_after=self.stale_lock_after):
                with open(tmp, "w", encoding="utf-8") as fh:
                    fh.write(text)
                os.replace(tmp, self.path)
        except OSError as e:
            raise PersistenceError(f"Failed to save controller state to {self.path}: {e}") from e
        logger.debug("Saved controller state to %s", self.path)


class NullControllerStore:
    """Store used when persistence is disabled: loads nothing, saves nothing."""

    path = None

    def load(self) -> Dict[str, ControllerState]:
        return {}

    def save(self, snapshot: Iterable[Tuple[str, ControllerState]]) -> None:
        return None
