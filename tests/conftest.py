import io
import signal
import threading

import pytest

from pytest_stackdump.context import InterruptContext
from pytest_stackdump.infrastructure.enforcement.interrupt import Terminator
from pytest_stackdump.infrastructure.enforcement.signals import SignalSubscription


class ManualSubscription(SignalSubscription):
    """Subscription that never touches real signal handlers; tests fire it by hand."""

    def __init__(self):
        super().__init__()
        self._count_lock = threading.Lock()
        self.installs = 0
        self.waits = 0

    def install(self):
        with self._count_lock:
            self.installs += 1

    def wait(self):
        with self._count_lock:
            self.waits += 1
        super().wait()

    def fire(self):
        self._on_signal(signal.SIGINT, None)


@pytest.fixture
def subscription():
    return ManualSubscription()


@pytest.fixture
def exit_codes():
    return []


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def terminator(stream, exit_codes):
    return Terminator(stream=stream, exit_func=exit_codes.append, process_stats=False)


@pytest.fixture
def context(subscription, terminator):
    return InterruptContext(subscription=subscription, terminator=terminator)
