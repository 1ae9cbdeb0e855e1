"""Subscriber sessions with expiry, blacklist and CDR bookkeeping."""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable, Iterable
from itertools import islice
from typing import Protocol

from pgwsim.logger import get_logger

MAX_IMSI_LENGTH = 15
_DIGITS = frozenset("0123456789")


class CdrSink(Protocol):
    """Anything that accepts CDR records."""

    def add_record(self, imsi: str, action: str) -> None: ...


def _is_valid_imsi(imsi: str) -> bool:
    return 0 < len(imsi) <= MAX_IMSI_LENGTH and all(ch in _DIGITS for ch in imsi)


class SessionManager:
    """Track active sessions by IMSI and record their lifecycle as CDRs."""

    def __init__(
        self,
        cdr_manager: CdrSink | None,
        session_timeout_sec: float,
        blacklist: Iterable[str] = (),
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._cdr = cdr_manager
        self._timeout = session_timeout_sec
        self._blacklist = frozenset(imsi for imsi in blacklist if _is_valid_imsi(imsi))
        self._clock = clock
        self._sleep = sleep
        self._sessions: dict[str, float] = {}
        self._expiry: deque[tuple[float, str]] = deque()
        self._lock = threading.Lock()

    def create_session(self, imsi: str) -> bool:
        """Create or prolong a session; return False if the IMSI is refused."""
        if not _is_valid_imsi(imsi):
            return False
        if imsi in self._blacklist:
            self._write_cdr(imsi, "rejected_blacklist")
            return False

        expires_at = self._clock() + self._timeout
        with self._lock:
            action = "prolonged" if imsi in self._sessions else "created"
            self._sessions[imsi] = expires_at
            self._write_cdr(imsi, action)
            self._expiry.append((expires_at, imsi))
        return True

    def session_exists(self, imsi: str) -> bool:
        """Return True if a session for *imsi* is active."""
        with self._lock:
            return imsi in self._sessions

    def cleanup_expired_sessions(self) -> None:
        """Remove every session whose expiry time has passed."""
        now = self._clock()
        with self._lock:
            while self._expiry:
                expires_at, imsi = self._expiry[0]
                if expires_at > now:
                    break
                self._expiry.popleft()
                current = self._sessions.get(imsi)
                if current is not None and current <= now:
                    self._write_cdr(imsi, "expired")
                    del self._sessions[imsi]

    def graceful_shutdown(self, sessions_per_sec: int) -> None:
        """Remove all sessions, at most *sessions_per_sec* per second.

        A rate of zero or less removes every session at once.
        """
        throttled = sessions_per_sec > 0
        while True:
            with self._lock:
                if not self._sessions:
                    break
                if throttled:
                    batch = list(islice(self._sessions, sessions_per_sec))
                else:
                    batch = list(self._sessions)
                for imsi in batch:
                    del self._sessions[imsi]
            for imsi in batch:
                self._write_cdr(imsi, "graceful_removal")
            if throttled:
                self._sleep(1.0)

    def is_blacklisted(self, imsi: str) -> bool:
        """Return True if *imsi* is on the blacklist."""
        return imsi in self._blacklist

    def _write_cdr(self, imsi: str, action: str) -> None:
        if self._cdr is None:
            get_logger().warning(
                "CDR manager is null; skipping record for %s (%s)", imsi, action
            )
            return
        self._cdr.add_record(imsi, action)