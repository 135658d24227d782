"""Pytest plugin entry point."""

import pytest
from functools import partial
from loguru import logger
from pytest_stackdump.config import get_settings
from pytest_stackdump.context import InterruptContext, get_default_context, set_default_context
from pytest_stackdump.profiling import profile_cpu

# Per-process state; a test run has one context
_context = None
_stop_profile = None

def pytest_addoption(parser):
    """Register command line options."""
    group = parser.getgroup("stackdump")
    group.addoption(
        "--stackdump",
        action="store_true",
        dest="stackdump",
        default=False,
        help="Show the stack of every thread when the run is interrupted (Ctrl-C)"
    )
    group.addoption(
        "--stackdump-quiet",
        action="store_true",
        dest="stackdump_quiet",
        default=False,
        help="On Ctrl-C run the registered interrupt handlers and exit without stack traces"
    )
    group.addoption(
        "--stackdump-profile-cpu",
        action="store",
        dest="stackdump_profile_cpu",
        help="Path to save CPU profile data to, also when interrupted"
    )

def _suspend_capture(config):
    """Lets handler output and the stack dump reach the terminal."""
    capman = config.pluginmanager.getplugin("capturemanager")
    if capman is not None:
        capman.suspend_global_capture(in_=True)

@pytest.hookimpl(trylast=True)
def pytest_configure(config):
    """Create the interrupt context and start the watcher if requested."""
    global _context, _stop_profile
    settings = get_settings()

    # 1. Defaults from Settings
    fatal_requested = settings.enabled and settings.fatal
    quiet_requested = settings.enabled and not settings.fatal
    profile_path = settings.profile_cpu

    # 2. Overrides from CLI
    if config.getoption("stackdump"):
        fatal_requested = True
    if config.getoption("stackdump_quiet"):
        quiet_requested = True
    cli_profile = config.getoption("stackdump_profile_cpu")
    if cli_profile is not None:
        profile_path = cli_profile
    if profile_path:
        # The profile must be flushed on interrupt even without stack dumps
        quiet_requested = True

    _context = InterruptContext.from_settings(settings, on_signal=partial(_suspend_capture, config))
    set_default_context(_context)

    if not (fatal_requested or quiet_requested):
        return

    # xdist workers arm too: Ctrl-C reaches the whole process group, and the
    # hanging test runs in a worker. Fatal wins regardless of order; the
    # second start only merges its mode.
    try:
        if quiet_requested:
            _context.show_stack_on_interrupt_background(fatal=False)
        if fatal_requested:
            _context.show_stack_on_interrupt_background(fatal=True)
    except ValueError as e:
        # Signal handlers can only be installed from the main thread
        logger.warning(f"Interrupt watcher not started: {e}")
    else:
        logger.debug(f"Interrupt watcher armed in {_context.watcher.mode.value} mode")

    if profile_path:
        try:
            _stop_profile = profile_cpu(profile_path, _context)
        except OSError as e:
            raise pytest.UsageError(f"Can't create CPU profile, {profile_path}: {e}")

def pytest_unconfigure(config):
    """Save the CPU profile and hand SIGINT back after a run that was not interrupted."""
    global _stop_profile
    if _stop_profile is not None:
        _stop_profile()
        _stop_profile = None
    if _context is not None and _context.watcher.activated:
        _context.watcher.unsubscribe()

def pytest_report_header(config):
    if _context is not None and _context.watcher.activated:
        return f"stackdump: {_context.watcher.mode.value} mode on interrupt"
    return None

@pytest.fixture
def stackdump():
    """The run's interrupt context, for registering interrupt handlers."""
    if _context is not None:
        return _context
    return get_default_context()
