import pytest

import timers


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class NullRenderer:
    def setup(self):
        pass

    def draw(self, stdscr, app):
        app.layout()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    s = timers.Store(tmp_path / "test.db")
    yield s
    s.close()


@pytest.fixture
def session(store, clock):
    return timers.TimerList(store, clock=clock)


@pytest.fixture
def app(store, clock):
    return timers.App(store, clock=clock, renderer=NullRenderer())
