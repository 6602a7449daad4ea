import threading
from datetime import datetime, timedelta, timezone

import pytest


class FakeClock:
    """Clock that only moves when told to"""

    def __init__(self, start=None, step=timedelta(days=2)):
        self.now = start or datetime(2021, 3, 14, 15, 9, 26, 535000, tzinfo=timezone.utc)
        self.step = step
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            return self.now

    def advance(self, delta=None):
        with self._lock:
            self.now = self.now + (delta or self.step)
            return self.now


class TickingClock(FakeClock):
    """Clock that moves forward one second on every reading"""

    def __call__(self):
        with self._lock:
            self.now = self.now + timedelta(seconds=1)
            return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def log_dir(tmp_path):
    directory = tmp_path / "logs"
    directory.mkdir()
    return directory


@pytest.fixture
def log_file(log_dir):
    return str(log_dir / "foobar.log")


@pytest.fixture
def ticking_clock():
    return TickingClock()
