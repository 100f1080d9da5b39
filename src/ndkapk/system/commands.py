"""
Command execution and output capture utilities.

This module runs external tools (cargo, adb, keytool) with both standard
streams drained concurrently, so a tool that fills one pipe while nobody reads
it can never stall the build.
"""

import logging
import os
import shlex
import subprocess
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Tuple

from ..validation import CommandFailedError

logger = logging.getLogger(__name__)

# Bytes requested per read from a child's pipe.
CHUNK_SIZE = 8192


class StreamTag(Enum):
    STDOUT = "stdout"
    STDERR = "stderr"


@dataclass
class CommandSpec:
    """
    A fully configured command that has not been started yet.

    ``env`` only holds the variables to add on top of the current environment.
    """

    args: List[str]
    cwd: Optional[Path] = None
    env: Dict[str, str] = field(default_factory=dict)

    def describe(self) -> str:
        return shlex.join(str(a) for a in self.args)

    def full_env(self) -> Optional[Dict[str, str]]:
        if not self.env:
            return None
        merged = os.environ.copy()
        merged.update(self.env)
        return merged


class CapturedOutput:
    """
    Ordered log of chunks read from a child's stdout and stderr.

    Both reader threads append under the same lock, so each stream's own chunks
    keep their order.
    """

    def __init__(self):
        self._chunks: List[Tuple[StreamTag, bytes]] = []
        self._lock = threading.Lock()

    def push(self, tag: StreamTag, data: bytes) -> None:
        with self._lock:
            self._chunks.append((tag, data))

    @property
    def chunks(self) -> List[Tuple[StreamTag, bytes]]:
        with self._lock:
            return list(self._chunks)

    def _joined(self, tag: StreamTag) -> bytes:
        return b"".join(data for chunk_tag, data in self.chunks if chunk_tag is tag)

    def stdout(self) -> bytes:
        return self._joined(StreamTag.STDOUT)

    def stderr(self) -> bytes:
        return self._joined(StreamTag.STDERR)


def _drain_stream(stream: BinaryIO, tag: StreamTag, output: CapturedOutput) -> None:
    """Read ``stream`` until EOF, pushing every chunk into ``output``."""
    try:
        while True:
            data = stream.read(CHUNK_SIZE)
            if not data:
                return
            output.push(tag, data)
    finally:
        stream.close()


def run_captured(command: CommandSpec) -> bytes:
    """Run a command to completion and return its standard output.

    Standard output and standard error are read by two threads at the same
    time. Both readers are joined before the exit status is consulted, so no
    output is lost relative to process exit.

    Args:
        command: The command to run.

    Returns:
        Everything the command wrote to standard output, byte for byte.

    Raises:
        CommandFailedError: If the command cannot be started or exits with a
            non-zero status. The error carries the standard error bytes only.
        OSError: If reading one of the pipes fails.
    """
    logger.debug(f"Executing command: '{command.describe()}'")
    try:
        process = subprocess.Popen(
            [str(a) for a in command.args],
            cwd=command.cwd,
            env=command.full_env(),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            bufsize=0,
        )
    except OSError as e:
        logger.error(f"Command not found or not executable: {command.args[0]}: {e}")
        raise CommandFailedError(command.describe(), None, str(e).encode()) from e

    output = CapturedOutput()
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="OutputReader") as readers:
        futures = [
            readers.submit(_drain_stream, process.stdout, StreamTag.STDOUT, output),
            readers.submit(_drain_stream, process.stderr, StreamTag.STDERR, output),
        ]
        try:
            for future in futures:
                future.result()
        except OSError:
            # Killing the child closes its pipes so the other reader sees EOF.
            process.kill()
            process.wait()
            raise

    returncode = process.wait()
    if returncode == 0:
        return output.stdout()

    logger.debug(f"Command '{command.describe()}' exited with {returncode}")
    raise CommandFailedError(command.describe(), returncode, output.stderr())


def run_command(command: CommandSpec) -> Tuple[int, bytes, bytes]:
    """Run a short command and return its exit status and output.

    Unlike run_captured this never raises for a non-zero exit status; callers
    that treat failure as an answer (such as "is the app still running?") use
    it. A command that cannot be started at all still raises.

    Returns:
        Tuple of (return_code, stdout_bytes, stderr_bytes).

    Raises:
        CommandFailedError: If the executable cannot be started (no return code).
    """
    logger.debug(f"Executing command: '{command.describe()}'")
    try:
        process = subprocess.run(
            [str(a) for a in command.args],
            cwd=command.cwd,
            env=command.full_env(),
            stdin=subprocess.DEVNULL,
            capture_output=True,
            check=False,
        )
        return process.returncode, process.stdout, process.stderr
    except OSError as e:
        logger.error(f"Command not found: {command.args[0]}: {type(e).__name__}: {e}")
        raise CommandFailedError(command.describe(), None, str(e).encode()) from e


def spawn_process(command: CommandSpec) -> subprocess.Popen:
    """Start a long-running command that inherits this process's stdout/stderr."""
    logger.debug(f"Spawning command: '{command.describe()}'")
    try:
        return subprocess.Popen(
            [str(a) for a in command.args],
            cwd=command.cwd,
            env=command.full_env(),
            stdin=subprocess.DEVNULL,
        )
    except OSError as e:
        raise CommandFailedError(command.describe(), None, str(e).encode()) from e


def run_interactive(command: CommandSpec) -> None:
    """Run a command attached to this terminal until it exits.

    Raises:
        CommandFailedError: If it cannot be started or exits non-zero. No
            output is captured, so the diagnostic is empty.
    """
    process = spawn_process(command)
    returncode = process.wait()
    if returncode != 0:
        raise CommandFailedError(command.describe(), returncode, b"")


def use_color() -> bool:
    """Whether child tools should colour their output.

    ``ALWAYS_COLOR`` forces colour, ``NO_COLOR`` disables it, otherwise colour
    is used when stderr is a terminal.
    """
    if "ALWAYS_COLOR" in os.environ:
        return True
    if "NO_COLOR" in os.environ:
        return False
    return sys.stderr.isatty()
