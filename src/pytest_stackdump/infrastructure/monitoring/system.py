"""System monitoring infrastructure using psutil."""

import os
import psutil
from loguru import logger
from pytest_stackdump.domains.interrupt.models import ProcessSnapshot

class SystemMonitor:
    def __init__(self):
        self._process = psutil.Process(os.getpid())

    def snapshot(self) -> ProcessSnapshot:
        """
        Returns current process resource usage for an interrupt report.

        Child processes are counted recursively; if they cannot be listed
        the count is reported as 0.
        """
        mem_info = self._process.memory_info()
        mem_mb = mem_info.rss / (1024 * 1024)

        num_children = 0
        try:
            num_children = len(self._process.children(recursive=True))
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess) as e:
            logger.debug(f"Error collecting child processes: {e}")

        return ProcessSnapshot(
            pid=self._process.pid,
            memory_mb=mem_mb,
            num_threads=self._process.num_threads(),
            num_children=num_children,
        )
