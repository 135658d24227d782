"""Signal handling infrastructure."""

import signal
import threading
from typing import Any, Optional
from loguru import logger

class FatalInterrupt(BaseException):
    """Raised by the watcher when an interrupt should end the run with a stack dump."""
    pass

class SignalSubscription:
    """One-shot subscription to SIGINT.

    The Python-level handler only records the signal; whoever called
    ``wait()`` does the actual work on its own thread.
    """

    def __init__(self, signum: int = signal.SIGINT):
        self.signum = signum
        self._received = threading.Event()
        self._old_handler: Optional[Any] = None
        self._installed = False

    @property
    def received(self) -> bool:
        return self._received.is_set()

    def install(self) -> None:
        """Installs the handler. Must be called from the main thread."""
        if self._installed:
            return
        self._old_handler = signal.signal(self.signum, self._on_signal)
        self._installed = True
        logger.debug(f"Subscribed to {signal.Signals(self.signum).name}")

    def wait(self) -> None:
        """Blocks until the signal has arrived."""
        self._received.wait()

    def restore(self) -> None:
        if self._installed and self._old_handler is not None:
            signal.signal(self.signum, self._old_handler)
            self._old_handler = None
            self._installed = False

    def _on_signal(self, signum: int, frame: Any) -> None:
        # Repeats while draining are absorbed here.
        self._received.set()
