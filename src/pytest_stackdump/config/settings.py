from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """
    Configuration settings for pytest-stackdump.
    
    Values can be overridden by environment variables with PYTEST_STACKDUMP__ prefix.
    e.g. PYTEST_STACKDUMP__ENABLED=true
    """
    model_config = SettingsConfigDict(
        env_prefix="PYTEST_STACKDUMP__",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Watcher activation (can be overridden by CLI)
    enabled: bool = Field(
        default=False,
        description="Start the interrupt watcher when pytest is configured."
    )
    fatal: bool = Field(
        default=True,
        description="Dump every thread's stack on interrupt. False only runs the registered handlers."
    )

    # Termination
    quiet_exit_code: int = Field(
        default=1,
        description="Exit status after a quiet interrupt."
    )
    fatal_exit_code: int = Field(
        default=2,
        description="Exit status after an interrupt with stack dump."
    )
    process_stats: bool = Field(
        default=True,
        description="Include memory, thread and child process counts in the stack dump."
    )

    # Profiling
    profile_cpu: Optional[str] = Field(
        default=None,
        description="Path to write CPU profile data to, flushed on exit or interrupt."
    )


def get_settings() -> Settings:
    """Retrieve application settings."""
    return Settings()
