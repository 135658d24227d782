"""Interrupt a real subprocess and check what it prints and how it exits."""

import re
import signal
import subprocess
import sys
from pathlib import Path

import pytest

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX signals")

HELPER = Path(__file__).parent / "helpers" / "interrupt_demo.py"


def _spawn(*args):
    return subprocess.Popen(
        [sys.executable, str(HELPER), *args],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    )


def _run_interrupted(mode):
    proc = _spawn(mode)
    try:
        assert proc.stdout.readline().strip() == "Ready"
        proc.send_signal(signal.SIGINT)
        out, err = proc.communicate(timeout=30)
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()
    return proc.returncode, out, err


def test_fatal_interrupt_dumps_stacks():
    """Verify that SIGINT runs handlers newest first, then dumps stacks and exits 2."""
    code, out, err = _run_interrupted("fatal")

    assert code == 2
    assert re.search(r"at_interrupt\(C\)\s+at_interrupt\(B\)\s+at_interrupt\(A\)\s+Ran [0-9]+ extras", out)
    assert "panic: Interrupted" in err
    assert re.search(r"thread [0-9]+ \[MainThread\]:", err)
    assert re.search(r"thread [0-9]+ \[counter, daemon\]:", err)
    assert re.search(r"thread [0-9]+ \[stackdump-watcher, daemon, current\]:", err)
    assert "Done" not in out


def test_quiet_interrupt_only_runs_handlers():
    code, out, err = _run_interrupted("quiet")

    assert code == 1
    assert re.search(r"at_interrupt\(C\)\s+at_interrupt\(B\)\s+at_interrupt\(A\)", out)
    assert "Interrupted." in err.splitlines()
    assert "panic" not in err
    assert "[MainThread" not in err


def test_fatal_start_wins_over_quiet():
    code, out, err = _run_interrupted("upgrade")

    assert code == 2
    assert "at_interrupt(A)" in out
    assert "panic: Interrupted" in err


def test_no_interrupt_runs_no_handlers():
    proc = _spawn("fatal", "0.2")
    out, err = proc.communicate(timeout=30)

    assert proc.returncode == 0
    assert out.split() == ["Ready", "Done"]
    assert "panic" not in err


def test_failing_handler_still_ends_the_process():
    """Verify that a handler raising on the watcher thread ends the run instead of hanging."""
    code, out, err = _run_interrupted("broken")

    assert code == 2
    assert "panic: handler failed" in err
    assert "RuntimeError: handler failed" in err
    assert re.search(r"thread [0-9]+ \[MainThread\]:", err)
    # Older handlers are skipped
    assert "at_interrupt(" not in out
