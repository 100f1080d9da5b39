"""
Device process lifecycle monitoring.

Install -> Launch -> WaitForProcess -> Attached -> Monitor -> Terminate.

Every wait goes through a cancellation event, so a signal handler or a test
can end the polling loops at any time; cancellation after the log stream was
attached still runs the Terminate step.
"""

import logging
import threading
from enum import Enum
from typing import Optional

from ..collaborators.base import DeviceController, SignedPackage
from ..models.runtime import DeviceProcessHandle
from ..validation import ErrorSeverity, NdkApkError, UnexpectedProcessStateError, handle_device_error

logger = logging.getLogger(__name__)


class MonitorTimings:
    """Polling intervals of the run loop, in seconds."""
    PROCESS_POLL_INTERVAL = 0.25
    ALIVE_POLL_INTERVAL = 1.0
    TERMINATION_GRACE = 0.25


class MonitorState(Enum):
    IDLE = "idle"
    INSTALL = "install"
    LAUNCH = "launch"
    WAIT_FOR_PROCESS = "wait_for_process"
    ATTACHED = "attached"
    MONITOR = "monitor"
    TERMINATE = "terminate"
    DONE = "done"
    CANCELLED = "cancelled"


def parse_pid(raw: bytes) -> int:
    """
    Interpret `pidof` output.

    Multi-process apps report several pids; the first one is the main process.

    Raises:
        UnexpectedProcessStateError: If the output is not pid text
    """
    try:
        text = raw.decode("utf-8").strip()
    except UnicodeDecodeError as e:
        raise UnexpectedProcessStateError(f"App not running: unreadable process id {raw!r}") from e
    first = text.split()[0] if text else ""
    if not first.isdigit():
        raise UnexpectedProcessStateError(f"App not running: unexpected process id {text!r}")
    return int(first)


class DeviceProcessMonitor:
    """
    Deploys a signed package and follows the app's log until it exits.
    """

    def __init__(
        self,
        controller: DeviceController,
        cancel_event: Optional[threading.Event] = None,
        process_poll_interval: float = MonitorTimings.PROCESS_POLL_INTERVAL,
        alive_poll_interval: float = MonitorTimings.ALIVE_POLL_INTERVAL,
        termination_grace: float = MonitorTimings.TERMINATION_GRACE,
    ):
        self.controller = controller
        self.cancel_event = cancel_event or threading.Event()
        self.process_poll_interval = process_poll_interval
        self.alive_poll_interval = alive_poll_interval
        self.termination_grace = termination_grace
        self.state = MonitorState.IDLE
        self.handle: Optional[DeviceProcessHandle] = None

    def _set_state(self, state: MonitorState) -> None:
        logger.debug(f"Device monitor: {self.state.value} -> {state.value}")
        self.state = state

    def cancel(self) -> None:
        """Ask the polling loops to stop; safe to call from a signal handler."""
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def run(self, package: SignedPackage, stream_logs: bool = True) -> None:
        """
        Install and launch ``package``, then follow its log until it exits.

        Args:
            package: The signed package to deploy
            stream_logs: When False, return right after launching

        Raises:
            DeviceInteractionError: If install or launch fails, or the pid poll cannot run
            UnexpectedProcessStateError: If the device returns a malformed pid
        """
        self._set_state(MonitorState.INSTALL)
        self.controller.install(package)

        self._set_state(MonitorState.LAUNCH)
        self.controller.launch(package)

        if not stream_logs:
            self._set_state(MonitorState.DONE)
            return

        pid = self.wait_for_process(package.package_id)
        if pid is None:
            self._set_state(MonitorState.CANCELLED)
            return

        self.attach(pid)
        try:
            self.monitor(package.package_id)
        finally:
            self.terminate()

    def wait_for_process(self, package_id: str) -> Optional[int]:
        """Poll until the app has a pid; None if cancelled first."""
        self._set_state(MonitorState.WAIT_FOR_PROCESS)
        waiting = False
        while not self.cancel_event.wait(self.process_poll_interval):
            raw = self.controller.poll_process_id(package_id)
            if raw is not None:
                return parse_pid(raw)
            if not waiting:
                waiting = True
                logger.info("Waiting for the app to start")
        return None

    def attach(self, pid: int) -> DeviceProcessHandle:
        self._set_state(MonitorState.ATTACHED)
        logger.info(f"App running with pid {pid}, streaming its log")
        self.handle = DeviceProcessHandle(pid=pid, log_process=self.controller.stream_logs(pid))
        return self.handle

    def monitor(self, package_id: str) -> None:
        """Block while the app is alive; a failing poll counts as exited."""
        self._set_state(MonitorState.MONITOR)
        while not self.cancel_event.wait(self.alive_poll_interval):
            try:
                alive = self.controller.is_process_alive(package_id)
            except NdkApkError as e:
                handle_device_error(e, "process poll", severity=ErrorSeverity.WARNING, reraise=False, logger=logger)
                alive = False
            if not alive:
                logger.info(f"`{package_id}` exited")
                return

    def terminate(self) -> None:
        """Give the log stream a moment to flush, then kill it."""
        self._set_state(MonitorState.TERMINATE)
        self.cancel_event.wait(self.termination_grace)
        if self.handle is not None:
            self.handle.close()
            self.handle = None
        self._set_state(MonitorState.CANCELLED if self.cancelled else MonitorState.DONE)
