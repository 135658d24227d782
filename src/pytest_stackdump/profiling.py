"""CPU profiling that still gets saved when the run is interrupted.

Usage from a program's entry point::

    from pytest_stackdump import profiling, show_stack_on_interrupt_background

    show_stack_on_interrupt_background(fatal=False)
    stop = profiling.profile_cpu("cpu.prof")
    try:
        main()
    finally:
        stop()

Only the thread that calls ``profile_cpu`` is profiled.
"""

import cProfile
import marshal
import threading
from typing import Callable, Optional
from loguru import logger
from pytest_stackdump.context import InterruptContext, get_default_context

def profile_cpu(path: str, context: Optional[InterruptContext] = None) -> Callable[[], None]:
    """Starts profiling and returns the callback that stops it and saves the data.

    The callback is also registered to run on interrupt. It writes the
    stats once; later calls do nothing. Raises OSError if ``path`` cannot
    be created.
    """
    if context is None:
        context = get_default_context()
    fh = open(path, "wb")
    profiler = cProfile.Profile()
    profiler.enable()
    lock = threading.Lock()
    stopped = False

    def stop() -> None:
        nonlocal stopped
        with lock:
            if stopped:
                return
            stopped = True
        profiler.disable()
        logger.info(f"Saving CPU profile to {path}...")
        profiler.create_stats()
        with fh:
            marshal.dump(profiler.stats, fh)

    return context.at_interrupt(stop)
