"""Process termination after an interrupt: quiet exit or stack dump."""

import os
import sys
import threading
import traceback
from typing import Callable, List, Optional, TextIO
from loguru import logger
from pytest_stackdump.domains.interrupt.models import StackFrame, ThreadStack
from pytest_stackdump.infrastructure.enforcement.signals import FatalInterrupt
from pytest_stackdump.infrastructure.monitoring.system import SystemMonitor

QUIET_NOTICE = "Interrupted."

class StackDumper:
    """Captures the current call stack of every running thread."""

    def capture(self) -> List[ThreadStack]:
        threads = {t.ident: t for t in threading.enumerate()}
        me = threading.get_ident()
        stacks = []
        for thread_id, stack in sys._current_frames().items():
            thread = threads.get(thread_id)
            frames = [
                StackFrame(filename=filename, lineno=lineno, function=name, line=line or None)
                for filename, lineno, name, line in traceback.extract_stack(stack)
            ]
            stacks.append(ThreadStack(
                ident=thread_id,
                name=thread.name if thread else "unknown",
                daemon=thread.daemon if thread else False,
                current=thread_id == me,
                frames=frames,
            ))
        return stacks

    def render(self, stacks: Optional[List[ThreadStack]] = None) -> str:
        if stacks is None:
            stacks = self.capture()
        code = []
        for stack in stacks:
            code.append(f"\n{stack.header}")
            for frame in stack.frames:
                code.append(f'  File "{frame.filename}", line {frame.lineno}, in {frame.function}')
                if frame.line:
                    code.append(f"    {frame.line}")
        return "\n".join(code)

class Terminator:
    """Ends the process once interrupt handlers have run.

    This is the top-level harness for ``FatalInterrupt``: the watcher hands
    the exception over here instead of letting it unwind its thread.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        exit_func: Callable[[int], None] = os._exit,
        quiet_exit_code: int = 1,
        fatal_exit_code: int = 2,
        process_stats: bool = True,
        dumper: Optional[StackDumper] = None,
        monitor: Optional[SystemMonitor] = None,
    ):
        self.stream = stream
        self.exit_func = exit_func
        self.quiet_exit_code = quiet_exit_code
        self.fatal_exit_code = fatal_exit_code
        self.process_stats = process_stats
        self._dumper = dumper or StackDumper()
        self._monitor = monitor

    def quiet_exit(self) -> None:
        self._write(f"{QUIET_NOTICE}\n")
        self._exit(self.quiet_exit_code)

    def fatal_exit(self, exc: BaseException) -> None:
        stacks = self._dumper.capture()
        logger.error(f"Test run interrupted, dumping stacks of {len(stacks)} thread(s)")

        report = [f"panic: {exc}", ""]
        if not isinstance(exc, FatalInterrupt):
            # A handler failed; show where before the thread stacks
            report.append("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
        if self.process_stats:
            try:
                if self._monitor is None:
                    self._monitor = SystemMonitor()
                report.append(self._monitor.snapshot().describe())
            except Exception as e:
                # The stack dump matters more than the resource numbers
                logger.warning(f"Could not collect process stats: {e}")
        report.append(self._dumper.render(stacks))
        self._write("\n".join(report) + "\n")
        self._exit(self.fatal_exit_code)

    def _write(self, text: str) -> None:
        stream = self.stream if self.stream is not None else sys.stderr
        stream.write(text)
        stream.flush()

    def _exit(self, code: int) -> None:
        # os._exit skips interpreter shutdown, so flush what handlers printed
        try:
            sys.stdout.flush()
            sys.stderr.flush()
        except Exception as e:
            logger.debug(f"Error flushing output streams: {e}")
        self.exit_func(code)
