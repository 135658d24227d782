"""Show every thread's stack when a hanging test run is interrupted."""

from pytest_stackdump.context import (
    InterruptContext,
    at_interrupt,
    get_default_context,
    set_default_context,
    show_stack_on_interrupt,
    show_stack_on_interrupt_background,
)
from pytest_stackdump.infrastructure.enforcement.signals import FatalInterrupt

__all__ = [
    "FatalInterrupt",
    "InterruptContext",
    "at_interrupt",
    "get_default_context",
    "set_default_context",
    "show_stack_on_interrupt",
    "show_stack_on_interrupt_background",
]
