"""
Local process cleanup helpers.
"""

import logging
from typing import List

import psutil

logger = logging.getLogger(__name__)

KILL_WAIT_TIMEOUT = 2.0


def _collect_tree(parent: psutil.Process) -> List[psutil.Process]:
    try:
        children = parent.children(recursive=True)
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        children = []
    # Children first so none is re-parented while its parent dies.
    return children + [parent]


def kill_process_tree(pid: int, name: str, timeout: float = KILL_WAIT_TIMEOUT) -> None:
    """
    Forcibly kill a process and all of its descendants.

    Processes that are already gone are ignored. Anything still alive after
    ``timeout`` seconds is logged but not retried.
    """
    if pid <= 0:
        logger.warning(f"Invalid PID {pid} for {name}, skipping termination")
        return

    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        logger.debug(f"Process {name} (PID: {pid}) already terminated")
        return

    processes = _collect_tree(parent)
    for process in processes:
        try:
            process.kill()
            logger.debug(f"Sent SIGKILL to PID {process.pid}")
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.warning(f"Access denied killing PID {process.pid} ({name})")

    _, still_alive = psutil.wait_procs(processes, timeout=timeout)
    if still_alive:
        logger.error(
            f"Failed to kill {len(still_alive)} processes for {name}: "
            f"{[p.pid for p in still_alive]}"
        )
    else:
        logger.debug(f"Killed {name} (PID: {pid}) and {len(processes) - 1} children")
