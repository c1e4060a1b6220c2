"""Bridge session authority.

A session is the time-boxed permission to move funds without re-entering the
phrase. It is created by a successful phrase validation or a wallet connect,
lasts 25 minutes, and ends on expiry, logout or settlement.

Only three string flags are persisted, so a restart can restore an unexpired
session. The phrase itself is never stored; the session keeps an opaque
fingerprint.
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from jetswap.phrase.pipeline import fingerprint, normalize
from jetswap.phrase.results import ValidationResult

logger = logging.getLogger(__name__)

SESSION_TTL_SECONDS = 25 * 60

KEY_AUTHORIZED = "jetswap_session_authorized"
KEY_EXPIRY = "jetswap_session_expiry"
KEY_FINGERPRINT = "jetswap_last_fingerprint"


class AuthorizationRefused(Exception):
    """Raised when authorization is attempted with a failed validation."""

    pass


class SessionState(str, Enum):
    UNAUTHORIZED = "unauthorized"
    AUTHORIZED = "authorized"
    EXPIRED = "expired"
    REVOKED = "revoked"


@dataclass(frozen=True)
class Session:
    """An authorized bridge session (epoch seconds)."""

    authorized_at: float
    expires_at: float
    fingerprint: str

    def remaining(self, now: float) -> float:
        return max(self.expires_at - now, 0.0)


# ======================
# Key/value stores
# ======================


class SessionStore(ABC):
    """String key/value storage for session flags."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class MemorySessionStore(SessionStore):
    """Process-local store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class FileSessionStore(SessionStore):
    """JSON file store that survives restarts.

    An unreadable file is treated as empty.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data), encoding="utf-8")
        tmp.replace(self.path)

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


# ======================
# Authority
# ======================


class SessionAuthority:
    """Sole owner of the bridge session.

    Callers gate money movement on ``is_active()`` and nothing else.
    """

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        ttl: float = SESSION_TTL_SECONDS,
        tick_interval: float = 1.0,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the authority.

        Args:
            store: Persistence for the session flags
            ttl: Session lifetime in seconds
            tick_interval: Seconds between expiry checks
            clock: Wall clock in epoch seconds
        """
        self.store = store or MemorySessionStore()
        self.ttl = ttl
        self.tick_interval = tick_interval
        self._clock = clock
        self._session: Optional[Session] = None
        self._state = SessionState.UNAUTHORIZED
        self._watcher: Optional[asyncio.Task] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def is_active(self) -> bool:
        """True iff a session is authorized and not yet expired."""
        return (
            self._state is SessionState.AUTHORIZED
            and self._session is not None
            and self._clock() < self._session.expires_at
        )

    def remaining(self) -> float:
        """Seconds left in the active session, 0 when there is none."""
        if not self.is_active():
            return 0.0
        return self._session.remaining(self._clock())

    # ----- transitions -----

    def _open(self, proof: str) -> Session:
        now = self._clock()
        self._session = Session(authorized_at=now, expires_at=now + self.ttl, fingerprint=proof)
        self._state = SessionState.AUTHORIZED
        self._persist()
        self.start()
        logger.info(f"Bridge session authorized until {self._session.expires_at:.0f}")
        return self._session

    def authorize(self, result: ValidationResult, phrase: str) -> Session:
        """Open a session from a successful validation.

        Raises:
            AuthorizationRefused: the validation did not pass
        """
        if not result.valid:
            raise AuthorizationRefused(
                f"phrase validation failed: {result.error_kind.value if result.error_kind else 'invalid'}"
            )
        return self._open(fingerprint(normalize(phrase)))

    def connect_wallet(self, wallet_name: str) -> Session:
        """Open a session from a wallet connect event."""
        return self._open(fingerprint(["wallet", wallet_name]))

    def extend(self) -> Optional[Session]:
        """Restart the window of an active session; None if there is none."""
        if not self.is_active():
            return None
        now = self._clock()
        self._session = Session(
            authorized_at=self._session.authorized_at,
            expires_at=now + self.ttl,
            fingerprint=self._session.fingerprint,
        )
        self._persist()
        logger.info("Bridge session extended")
        return self._session

    def revoke(self, reason: str = "logout") -> None:
        """End the session now and clear persisted flags."""
        had_session = self._session is not None
        self._session = None
        self._state = SessionState.REVOKED if had_session else SessionState.UNAUTHORIZED
        self._clear()
        self.stop()
        if had_session:
            logger.info(f"Bridge session revoked ({reason})")

    def check_expiry(self) -> bool:
        """Expire the session if its window has passed. Returns True on expiry."""
        if self._state is not SessionState.AUTHORIZED or self._session is None:
            return False
        if self._clock() < self._session.expires_at:
            return False
        self._session = None
        self._state = SessionState.EXPIRED
        self._clear()
        logger.info("Bridge session expired")
        return True

    # ----- persistence -----

    def _persist(self) -> None:
        self.store.set(KEY_AUTHORIZED, "true")
        self.store.set(KEY_EXPIRY, str(int(self._session.expires_at * 1000)))
        self.store.set(KEY_FINGERPRINT, self._session.fingerprint)

    def _clear(self) -> None:
        self.store.delete(KEY_AUTHORIZED)
        self.store.delete(KEY_EXPIRY)

    def restore(self) -> Optional[Session]:
        """Reload an unexpired session from the store.

        Missing or unparsable flags mean there is no session.
        """
        if self.store.get(KEY_AUTHORIZED) != "true":
            return None
        raw_expiry = self.store.get(KEY_EXPIRY)
        try:
            expires_at = int(raw_expiry) / 1000
        except (TypeError, ValueError):
            logger.warning("Ignoring unparsable session expiry")
            self._clear()
            return None
        if self._clock() >= expires_at:
            self._clear()
            return None

        self._session = Session(
            authorized_at=expires_at - self.ttl,
            expires_at=expires_at,
            fingerprint=self.store.get(KEY_FINGERPRINT) or "",
        )
        self._state = SessionState.AUTHORIZED
        self.start()
        logger.info("Bridge session restored")
        return self._session

    # ----- expiry watcher -----

    async def _watch(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            if self._state is not SessionState.AUTHORIZED or self.check_expiry():
                break

    def start(self) -> None:
        """Start the expiry watcher if an event loop is running and none exists."""
        if self._watcher is not None and not self._watcher.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: is_active() still enforces the expiry.
            return
        self._watcher = loop.create_task(self._watch())

    def stop(self) -> None:
        if self._watcher is None:
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if self._watcher is not current and not self._watcher.done():
            self._watcher.cancel()
        self._watcher = None

    @property
    def watching(self) -> bool:
        return self._watcher is not None and not self._watcher.done()
