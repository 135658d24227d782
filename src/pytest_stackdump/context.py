"""Shared interrupt state for a test run or program."""

import threading
from typing import Callable, Optional
from pytest_stackdump.config import Settings
from pytest_stackdump.domains.interrupt.registry import Handler, InterruptRegistry
from pytest_stackdump.infrastructure.enforcement.interrupt import Terminator
from pytest_stackdump.infrastructure.enforcement.signals import SignalSubscription
from pytest_stackdump.infrastructure.enforcement.watcher import InterruptWatcher

class InterruptContext:
    """Bundles one handler registry with the watcher that drains it.

    Create one per process (the pytest plugin does this) and pass it to
    whatever needs to register cleanup, or use the module-level shortcuts
    which go through the default context.
    """

    def __init__(
        self,
        registry: Optional[InterruptRegistry] = None,
        subscription: Optional[SignalSubscription] = None,
        terminator: Optional[Terminator] = None,
        on_signal: Optional[Callable[[], None]] = None,
    ):
        self.registry = registry or InterruptRegistry()
        self.watcher = InterruptWatcher(
            self.registry,
            subscription=subscription,
            terminator=terminator,
            on_signal=on_signal,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "InterruptContext":
        kwargs.setdefault("terminator", Terminator(
            quiet_exit_code=settings.quiet_exit_code,
            fatal_exit_code=settings.fatal_exit_code,
            process_stats=settings.process_stats,
        ))
        return cls(**kwargs)

    def at_interrupt(self, handler: Handler) -> Handler:
        """Registers ``handler`` to run if the process is interrupted.

        The handler registered first runs last. Nothing runs unless the
        watcher has been started. The handler is returned so it can also be
        used as ordinary cleanup.
        """
        return self.registry.register(handler)

    def show_stack_on_interrupt(self, fatal: bool = True) -> None:
        self.watcher.start(fatal)

    def show_stack_on_interrupt_background(self, fatal: bool = True) -> Optional[threading.Thread]:
        return self.watcher.start_background(fatal)


_default_context: Optional[InterruptContext] = None
_default_lock = threading.Lock()

def get_default_context() -> InterruptContext:
    """Returns the process default context, creating it on first use."""
    global _default_context
    with _default_lock:
        if _default_context is None:
            _default_context = InterruptContext()
        return _default_context

def set_default_context(context: InterruptContext) -> None:
    global _default_context
    with _default_lock:
        _default_context = context

def at_interrupt(handler: Handler) -> Handler:
    """Registers a handler with the default context. See ``InterruptContext.at_interrupt``."""
    return get_default_context().at_interrupt(handler)

def show_stack_on_interrupt(fatal: bool = True) -> None:
    """Blocks the calling thread until Ctrl-C, then runs handlers and exits.

    ``fatal=False`` only runs the handlers and exits quietly, and never
    downgrades a watcher that another caller started in fatal mode.
    """
    get_default_context().show_stack_on_interrupt(fatal)

def show_stack_on_interrupt_background(fatal: bool = True) -> Optional[threading.Thread]:
    """Like ``show_stack_on_interrupt`` but waits on a daemon thread."""
    return get_default_context().show_stack_on_interrupt_background(fatal)
