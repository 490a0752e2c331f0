"""
    App lock: passcode gate plus a scoped "suspend auto-lock" guard
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import bcrypt
from sqlalchemy.orm import Session

from ledger import get_setting

logger = logging.getLogger(__name__)

LOCK_ENABLED_SETTING = "biometric_enabled"
PASSCODE_SETTING = "passcode_hash"
BACKGROUND_STATES = ("background", "inactive")


def hash_passcode(passcode: str) -> str:
    return bcrypt.hashpw(passcode.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_passcode(passcode: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(passcode.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored passcode hash is malformed")
        return False


class AppLock:
    """Locks the app when it goes to the background.

    Screens that cause spurious background events (the scan screen, while
    the camera or file picker is open) hold ``suspend_auto_lock()`` for
    their lifetime; the suspension is released however the block exits.
    """

    def __init__(self, enabled: bool = False, passcode_hash: Optional[str] = None):
        self.enabled = enabled
        self.passcode_hash = passcode_hash
        self.locked = self.needs_auth
        self._suspensions = 0
        self._guard = threading.Lock()

    @classmethod
    def from_settings(cls, db: Session) -> "AppLock":
        enabled = get_setting(db, LOCK_ENABLED_SETTING) == "true"
        return cls(enabled=enabled, passcode_hash=get_setting(db, PASSCODE_SETTING))

    @property
    def needs_auth(self) -> bool:
        # No passcode configured means there is nothing to unlock with
        return self.enabled and bool(self.passcode_hash)

    @property
    def auto_lock_suspended(self) -> bool:
        with self._guard:
            return self._suspensions > 0

    @contextmanager
    def suspend_auto_lock(self) -> Iterator["AppLock"]:
        with self._guard:
            self._suspensions += 1
        try:
            yield self
        finally:
            with self._guard:
                self._suspensions -= 1

    def should_skip_lock_on_app_state_change(self) -> bool:
        return self.auto_lock_suspended

    def on_app_state_change(self, state: str) -> bool:
        """Handle an app state transition; returns whether the app is locked."""
        if not self.needs_auth or self.should_skip_lock_on_app_state_change():
            return self.locked
        if state in BACKGROUND_STATES:
            logger.info(f"Locking app on '{state}'")
            self.locked = True
        return self.locked

    def unlock(self, passcode: str) -> bool:
        if not self.needs_auth:
            self.locked = False
            return True
        if verify_passcode(passcode, self.passcode_hash):
            self.locked = False
            return True
        logger.warning("Unlock attempt with wrong passcode")
        return False

    def lock(self):
        if self.needs_auth:
            self.locked = True
