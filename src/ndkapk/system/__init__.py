"""
System interaction utilities.

- Command execution with concurrent stdout/stderr capture
- Short status commands and long-running child processes
- Forced cleanup of local process trees
"""

from .commands import (
    CHUNK_SIZE,
    CapturedOutput,
    CommandSpec,
    StreamTag,
    run_captured,
    run_command,
    run_interactive,
    spawn_process,
    use_color,
)
from .processes import kill_process_tree

__all__ = [
    "CHUNK_SIZE",
    "CapturedOutput",
    "CommandSpec",
    "StreamTag",
    "run_captured",
    "run_command",
    "run_interactive",
    "spawn_process",
    "use_color",
    "kill_process_tree",
]
