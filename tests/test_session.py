import threading

import pytest

from core.config import Settings
from core.session import SessionWatchdog


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_not_expired_before_start():
    watchdog = SessionWatchdog(duration=60, clock=FakeClock())
    assert not watchdog.expired()
    assert watchdog.remaining() is None
    assert not watchdog.check()


def test_expires_once_after_duration():
    clock = FakeClock()
    fired = []
    watchdog = SessionWatchdog(duration=60, interval=1, on_expire=lambda: fired.append(clock.now), clock=clock)
    watchdog.start(background=False)
    clock.now += 60
    assert not watchdog.check()
    assert watchdog.remaining() == 0.0
    clock.now += 1
    assert watchdog.check()
    assert watchdog.check()
    assert fired == [1_061.0]


def test_restart_resets_login_time():
    clock = FakeClock()
    watchdog = SessionWatchdog(duration=10, clock=clock)
    watchdog.start(background=False)
    clock.now += 11
    assert watchdog.expired()
    watchdog.start(background=False)
    assert not watchdog.expired()
    assert watchdog.remaining() == 10.0


def test_background_checker_fires_and_exits():
    clock = FakeClock()
    expired = threading.Event()
    watchdog = SessionWatchdog(duration=5, interval=0.01, on_expire=expired.set, clock=clock)
    watchdog.start()
    assert watchdog.running
    clock.now += 6
    assert expired.wait(timeout=2)
    watchdog.stop()
    assert not watchdog.running


def test_stop_cancels_checker():
    clock = FakeClock()
    fired = []
    watchdog = SessionWatchdog(duration=5, interval=0.01, on_expire=lambda: fired.append(1), clock=clock)
    watchdog.start()
    watchdog.stop()
    clock.now += 100
    assert not watchdog.running
    assert fired == []


def test_from_settings():
    watchdog = SessionWatchdog.from_settings(Settings(session_duration_hours=6, session_check_seconds=10))
    assert watchdog.duration == 6 * 3600
    assert watchdog.interval == 10


@pytest.mark.parametrize("kwargs", [{"duration": 0}, {"duration": 5, "interval": 0}])
def test_rejects_non_positive_values(kwargs):
    with pytest.raises(ValueError):
        SessionWatchdog(**kwargs)
