"""Domain models for interrupt handling and stack dumps."""

from typing import List, Optional
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict

class InterruptMode(str, Enum):
    QUIET = "quiet"
    FATAL = "fatal"

class WatcherState(str, Enum):
    IDLE = "idle"
    WAITING = "waiting"
    DRAINING = "draining"
    QUIET_EXIT = "quiet_exit"
    FATAL_EXIT = "fatal_exit"

class StackFrame(BaseModel):
    """One frame of a captured call stack."""
    filename: str
    lineno: Optional[int] = None
    function: str
    line: Optional[str] = None

    model_config = ConfigDict(frozen=True)

class ThreadStack(BaseModel):
    """Call stack of a single thread at capture time."""
    ident: int
    name: str
    daemon: bool = False
    current: bool = False
    frames: List[StackFrame] = Field(default_factory=list)

    @property
    def header(self) -> str:
        flags = [self.name]
        if self.daemon:
            flags.append("daemon")
        if self.current:
            flags.append("current")
        return f"thread {self.ident} [{', '.join(flags)}]:"

class ProcessSnapshot(BaseModel):
    """Resource usage of the interrupted process."""
    pid: int
    memory_mb: float
    num_threads: int
    num_children: int = 0

    def describe(self) -> str:
        return (
            f"process {self.pid}: rss={self.memory_mb:.1f}MB "
            f"threads={self.num_threads} children={self.num_children}"
        )
