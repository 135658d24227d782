"""Background watcher that turns Ctrl-C into handler draining plus a stack dump."""

import threading
from typing import Callable, Optional
from loguru import logger
from pytest_stackdump.domains.interrupt.models import InterruptMode, WatcherState
from pytest_stackdump.domains.interrupt.registry import InterruptRegistry
from pytest_stackdump.infrastructure.enforcement.interrupt import Terminator
from pytest_stackdump.infrastructure.enforcement.signals import FatalInterrupt, SignalSubscription

class InterruptWatcher:
    """Waits for SIGINT, runs registered handlers newest first, then exits.

    Any number of callers may start the watcher, from any number of threads.
    Only the first one subscribes to the signal and waits; the others just
    merge their requested mode. Fatal mode is sticky: once any caller asked
    for a stack dump, later quiet requests do not turn it off.

    On interrupt, quiet mode prints ``Interrupted.`` and exits with status 1.
    Fatal mode raises ``FatalInterrupt("Interrupted")`` which the watcher's
    own top level hands to the terminator to print ``panic: Interrupted``
    plus every thread's stack and exit with status 2.
    """

    def __init__(
        self,
        registry: InterruptRegistry,
        subscription: Optional[SignalSubscription] = None,
        terminator: Optional[Terminator] = None,
        on_signal: Optional[Callable[[], None]] = None,
    ):
        self.registry = registry
        self.on_signal = on_signal
        self._subscription = subscription or SignalSubscription()
        self.terminator = terminator or Terminator()
        self._lock = registry.lock
        self._activated = False
        self._fatal = False
        self._state = WatcherState.IDLE
        self._thread: Optional[threading.Thread] = None

    @property
    def activated(self) -> bool:
        with self._lock:
            return self._activated

    @property
    def fatal(self) -> bool:
        with self._lock:
            return self._fatal

    @property
    def mode(self) -> InterruptMode:
        return InterruptMode.FATAL if self.fatal else InterruptMode.QUIET

    @property
    def state(self) -> WatcherState:
        with self._lock:
            return self._state

    @property
    def thread(self) -> Optional[threading.Thread]:
        return self._thread

    def start(self, fatal: bool = True) -> None:
        """Waits for the interrupt on the calling thread.

        Returns immediately if another caller is already waiting. The first
        caller must be on the main thread, since only it may install signal
        handlers; if it is not, the claim is released and a later call from
        the main thread can still start the watcher.
        """
        if not self._claim(fatal):
            return
        self._subscribe()
        self._watch()

    def start_background(self, fatal: bool = True) -> Optional[threading.Thread]:
        """Subscribes on the calling thread and waits on a daemon thread.

        Returns the new thread, or None if a watcher was already running.
        An error escaping a handler on that thread ends the process with
        ``panic: <error>`` and the stack dump, like fatal mode.
        """
        if not self._claim(fatal):
            return None
        self._subscribe()
        self._thread = threading.Thread(
            target=self._watch_background,
            daemon=True,
            name="stackdump-watcher"
        )
        self._thread.start()
        return self._thread

    def unsubscribe(self) -> None:
        """Gives SIGINT back to the previous handler.

        For hosts that outlive the watcher, such as a program calling
        ``pytest.main()``. A thread already waiting keeps waiting.
        """
        self._subscription.restore()

    def _claim(self, fatal: bool) -> bool:
        with self._lock:
            if fatal:
                self._fatal = True
            if self._activated:
                logger.debug(f"Interrupt watcher already running (fatal={self._fatal})")
                return False
            self._activated = True
            self._state = WatcherState.WAITING
        logger.debug(f"Interrupt watcher starting (fatal={fatal})")
        return True

    def _subscribe(self) -> None:
        try:
            self._subscription.install()
        except BaseException:
            # Nobody is waiting, so let the next caller claim the watcher
            with self._lock:
                self._activated = False
                self._state = WatcherState.IDLE
            raise

    def _watch(self) -> None:
        self._subscription.wait()
        if self.on_signal is not None:
            self.on_signal()
        try:
            self._drain()
            self._terminate()
        except FatalInterrupt as exc:
            self.terminator.fatal_exit(exc)

    def _watch_background(self) -> None:
        try:
            self._watch()
        except BaseException as exc:
            # SIGINT stays absorbed, so this thread must end the process
            logger.error(f"Interrupt handler failed: {exc!r}")
            self.terminator.fatal_exit(exc)

    def _drain(self) -> None:
        with self._lock:
            self._state = WatcherState.DRAINING
        handlers = self.registry.snapshot()
        logger.warning(f"Interrupt received, running {len(handlers)} handler(s)")
        # Handler errors propagate and skip the remaining handlers
        for handler in handlers:
            handler()

    def _terminate(self) -> None:
        with self._lock:
            fatal = self._fatal
            self._state = WatcherState.FATAL_EXIT if fatal else WatcherState.QUIET_EXIT
        if not fatal:
            self.terminator.quiet_exit()
            return
        raise FatalInterrupt("Interrupted")
