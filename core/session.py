"""Session-expiry watchdog owned by a logged-in session."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class SessionWatchdog:
    """Expires a session ``duration`` seconds after ``start()``.

    ``start()`` records the login time and launches a daemon checker that wakes
    every ``interval`` seconds; ``stop()`` cancels it. ``on_expire`` runs at
    most once. ``expired()`` can also be polled without the checker thread.
    """

    def __init__(
        self,
        duration: float,
        interval: float = 10.0,
        on_expire: Optional[Callable[[], None]] = None,
        clock: Clock = time.time,
    ):
        if duration <= 0 or interval <= 0:
            raise ValueError("duration and interval must be positive")
        self.duration = float(duration)
        self.interval = float(interval)
        self.on_expire = on_expire
        self.clock = clock
        self.login_time: Optional[float] = None
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._fired = False

    @classmethod
    def from_settings(cls, settings, on_expire: Optional[Callable[[], None]] = None, **kw) -> "SessionWatchdog":
        return cls(
            duration=settings.session_duration_hours * 3600,
            interval=settings.session_check_seconds,
            on_expire=on_expire,
            **kw,
        )

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, login_time: Optional[float] = None, *, background: bool = True) -> None:
        self.stop()
        with self._lock:
            self.login_time = self.clock() if login_time is None else login_time
            self._fired = False
            self._stop = threading.Event()
        if background:
            self._thread = threading.Thread(target=self._run, name="session-watchdog", daemon=True)
            self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval)

    def remaining(self) -> Optional[float]:
        if self.login_time is None:
            return None
        return max(0.0, self.duration - (self.clock() - self.login_time))

    def expired(self) -> bool:
        if self.login_time is None:
            return False
        return self.clock() - self.login_time > self.duration

    def check(self) -> bool:
        """Fire ``on_expire`` if the session just expired; returns ``expired()``."""
        if not self.expired():
            return False
        with self._lock:
            if self._fired:
                return True
            self._fired = True
        logger.info("session expired after %.0f seconds", self.duration)
        self._stop.set()
        if self.on_expire is not None:
            self.on_expire()
        return True

    def _run(self) -> None:
        stop = self._stop
        while not stop.wait(self.interval):
            if self.check():
                break
