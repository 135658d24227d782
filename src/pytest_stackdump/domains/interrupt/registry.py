"""Process-wide list of callbacks to run when the test run is interrupted."""

import threading
from typing import Any, Callable, List, Optional

Handler = Callable[[], Any]

class InterruptRegistry:
    """Thread-safe, append-only collection of interrupt handlers.

    The lock is shared with the watcher that drains this registry so that
    all interrupt state is guarded by a single mutex.
    """

    def __init__(self, lock: Optional[threading.Lock] = None):
        self.lock = lock if lock is not None else threading.Lock()
        self._handlers: List[Handler] = []

    def register(self, handler: Handler) -> Handler:
        """Registers a handler and returns it unchanged.

        Returning the handler lets a caller both register a cleanup and keep
        it for running itself when no interrupt happens::

            cleanup = registry.register(close_files)
            try:
                ...
            finally:
                cleanup()
        """
        with self.lock:
            self._handlers.append(handler)
        return handler

    def snapshot(self) -> List[Handler]:
        """Returns a copy of the handlers, most recently registered first."""
        with self.lock:
            return self._handlers[::-1]

    def __len__(self) -> int:
        with self.lock:
            return len(self._handlers)
