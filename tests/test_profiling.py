"""Tests for the CPU profile helper."""

import pstats

import pytest

from pytest_stackdump.profiling import profile_cpu


def _busy():
    return sum(i * i for i in range(10000))


def test_profile_saved_by_returned_callback(context, tmp_path):
    path = tmp_path / "cpu.prof"
    stop = profile_cpu(str(path), context)
    _busy()
    stop()

    assert context.registry.snapshot() == [stop]
    stats = pstats.Stats(str(path))
    functions = [func for (_, _, func) in stats.stats]
    assert "_busy" in functions


def test_stop_is_idempotent(context, tmp_path):
    path = tmp_path / "cpu.prof"
    stop = profile_cpu(str(path), context)
    stop()
    size = path.stat().st_size
    stop()
    assert path.stat().st_size == size


def test_profile_saved_on_interrupt(context, subscription, exit_codes, tmp_path):
    """Verify that an interrupt flushes the profile before exiting."""
    path = tmp_path / "cpu.prof"
    profile_cpu(str(path), context)
    _busy()

    subscription.fire()
    context.show_stack_on_interrupt(fatal=False)

    assert exit_codes == [1]
    assert pstats.Stats(str(path)).total_calls > 0


def test_unwritable_path(context, tmp_path):
    with pytest.raises(OSError):
        profile_cpu(str(tmp_path / "missing" / "cpu.prof"), context)
    assert len(context.registry) == 0
