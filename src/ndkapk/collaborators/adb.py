"""
Device control through the `adb` command line tool.

Only the handful of commands the run loop needs are wrapped here; device
selection is limited to an optional serial number.
"""

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..models.manifest import MAIN_ACTION, NATIVE_ACTIVITY
from ..models.runtime import BuildTarget
from ..system import CommandSpec, run_captured, run_command, spawn_process, use_color
from ..validation import CommandFailedError, ConfigurationError, DeviceInteractionError
from .base import DeviceController, SignedPackage

logger = logging.getLogger(__name__)


def find_adb() -> str:
    """Locate adb in the SDK's platform-tools, falling back to PATH."""
    for var in ("ANDROID_HOME", "ANDROID_SDK_ROOT"):
        root = os.environ.get(var)
        if root:
            name = "adb.exe" if os.name == "nt" else "adb"
            candidate = Path(root) / "platform-tools" / name
            if candidate.is_file():
                return str(candidate)
    found = shutil.which("adb")
    if found is None:
        raise ConfigurationError("adb not found; install the Android SDK platform-tools")
    return found


class AdbDeviceController(DeviceController):
    def __init__(self, serial: Optional[str] = None, adb: Optional[str] = None):
        self.serial = serial
        self._adb = adb

    @property
    def adb(self) -> str:
        if self._adb is None:
            self._adb = find_adb()
        return self._adb

    def _command(self, *args: str) -> CommandSpec:
        prefix: List[str] = [self.adb]
        if self.serial:
            prefix += ["-s", self.serial]
        return CommandSpec(args=prefix + list(args))

    def _checked(self, action: str, *args: str) -> bytes:
        try:
            return run_captured(self._command(*args))
        except CommandFailedError as e:
            raise DeviceInteractionError(f"Failed to {action}: {e}") from e

    def _status(self, action: str, *args: str) -> Tuple[int, bytes]:
        """Exit status and stdout of a query whose failure is an answer."""
        try:
            returncode, stdout, _ = run_command(self._command(*args))
        except CommandFailedError as e:
            raise DeviceInteractionError(f"Failed to {action}: {e}") from e
        return returncode, stdout

    def install(self, package: SignedPackage) -> None:
        logger.info(f"Installing `{package.path}`")
        self._checked("install package", "install", "-r", str(package.path))

    def launch(self, package: SignedPackage) -> None:
        logger.info(f"Starting `{package.package_id}`")
        self._checked(
            "launch app",
            "shell", "am", "start",
            "-a", MAIN_ACTION,
            "-n", f"{package.package_id}/{NATIVE_ACTIVITY}",
        )

    def poll_process_id(self, package_id: str) -> Optional[bytes]:
        # pidof exits non-zero while the app is not running yet.
        returncode, stdout = self._status("poll process id", "shell", "pidof", package_id)
        if returncode != 0:
            return None
        return stdout

    def is_process_alive(self, package_id: str) -> bool:
        returncode, _ = self._status("poll process", "shell", "pidof", package_id)
        return returncode == 0

    def stream_logs(self, pid: int) -> subprocess.Popen:
        args = ["logcat"]
        if use_color():
            args += ["-v", "color"]
        args += ["--pid", str(pid)]
        try:
            return spawn_process(self._command(*args))
        except CommandFailedError as e:
            raise DeviceInteractionError(f"Failed to start logcat: {e}") from e

    def reverse_port_forward(self, forwards: Dict[str, str]) -> None:
        for remote, local in forwards.items():
            logger.info(f"Reverse forwarding device `{remote}` to host `{local}`")
            self._checked("set up reverse port forwarding", "reverse", remote, local)

    def detect_abi(self) -> Optional[BuildTarget]:
        returncode, stdout = self._status("query device ABI", "shell", "getprop", "ro.product.cpu.abi")
        if returncode != 0:
            logger.debug("Could not query device ABI")
            return None
        abi = stdout.decode("utf-8", errors="replace").strip()
        try:
            return BuildTarget.from_android_abi(abi)
        except ConfigurationError:
            logger.warning(f"Device reports unsupported ABI `{abi}`")
            return None

    def debugger_args(self) -> List[str]:
        args = ["--adb", self.adb]
        if self.serial:
            args += ["-s", self.serial]
        return args
