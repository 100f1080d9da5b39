"""
Defines the abstract interfaces of the external collaborators.

The build core talks to the toolchain, the package format, the device and the
keystore only through these classes:

- CrossCompileInvoker: runs the cross compiler for one target.
- LibraryResolver: adds a compiled artifact and its shared-library closure to
  a package under construction.
- PackageWriter / PackageBuilder / UnsignedPackage / SignedPackage: the
  package container format.
- DeviceController: installs, launches and observes the app on a device.
- DebugKeyProvider: supplies the platform-managed debug keystore.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..models.runtime import ArtifactIdentity, BuildTarget, PackageConfig, SigningKey

logger = logging.getLogger(__name__)


class CrossCompileInvoker(ABC):
    """
    Runs the cross-compilation toolchain.

    Implementations are bound to one build profile and one output directory.
    """

    @abstractmethod
    def build(self, target: BuildTarget, min_sdk_version: int, extra_args: Sequence[str]) -> None:
        """
        Compile the crate for ``target``.

        Raises:
            CommandFailedError: If the compiler exits with a non-zero status.
        """
        pass

    @abstractmethod
    def run(self, subcommand: str, target: BuildTarget, min_sdk_version: int,
            extra_args: Sequence[str]) -> None:
        """Run an arbitrary toolchain subcommand (e.g. `check`, `doc`) for ``target``."""
        pass

    @abstractmethod
    def artifact_path(self, artifact: ArtifactIdentity, target: BuildTarget) -> Path:
        """Location of the compiled shared library for ``artifact``."""
        pass

    @abstractmethod
    def build_dir(self, target: BuildTarget) -> Path:
        """Per-target output directory; its `deps` subdirectory holds internal dependencies."""
        pass

    @abstractmethod
    def library_search_paths(self, target: BuildTarget) -> List[Path]:
        """Directories that build scripts registered for native library lookup."""
        pass

    @abstractmethod
    def default_min_platform(self) -> int:
        """The lowest API level the toolchain supports."""
        pass

    @abstractmethod
    def default_target_platform(self) -> int:
        """The API level used when the manifest does not name a target SDK."""
        pass

    @abstractmethod
    def run_debugger(self, launch_dir: Path, activity: str, abi: BuildTarget,
                     device_args: Sequence[str]) -> None:
        """
        Attach the NDK debugger to ``activity``, launched from ``launch_dir``.

        Blocks until the debugger exits.

        Raises:
            CommandFailedError: If the debugger cannot start or fails.
        """
        pass


class UnsignedPackage(ABC):
    """A finalized, aligned package awaiting a signature."""

    @abstractmethod
    def sign(self, key: SigningKey) -> "SignedPackage":
        pass


class SignedPackage(ABC):
    """An installable package."""

    @property
    @abstractmethod
    def path(self) -> Path:
        pass

    @property
    @abstractmethod
    def package_id(self) -> str:
        pass


class PackageBuilder(ABC):
    """
    A package under construction.

    Native libraries are added per architecture slot by the LibraryResolver;
    the builder only tracks and writes them.
    """

    @abstractmethod
    def add_library(self, path: Path, target: BuildTarget) -> None:
        pass

    @abstractmethod
    def finalize(self) -> UnsignedPackage:
        """Write pending libraries, compress and align the package."""
        pass

    def discard(self) -> None:
        """Drop any partially written output. The default keeps nothing to drop."""
        logger.debug(f"Discarding {self.__class__.__name__}")


class PackageWriter(ABC):
    @abstractmethod
    def create(self, config: PackageConfig) -> PackageBuilder:
        pass


class LibraryResolver(ABC):
    """
    Walks shared-library dependencies.
    """

    @abstractmethod
    def add_artifact_and_deps(self, builder: PackageBuilder, artifact_path: Path,
                              target: BuildTarget, search_paths: Sequence[Path]) -> None:
        """
        Add ``artifact_path`` and every non-system shared library it needs,
        found in ``search_paths``, to ``builder`` under ``target``'s ABI.

        Raises:
            PackagingError: If a required library cannot be found.
        """
        pass

    @abstractmethod
    def add_runtime_libs(self, builder: PackageBuilder, libs_dir: Path,
                         target: BuildTarget, search_paths: Sequence[Path]) -> None:
        """Add the libraries in ``libs_dir/<abi>`` and their dependencies."""
        pass


class DeviceController(ABC):
    """
    Operations against one connected device.

    Every method raises DeviceInteractionError when the underlying command
    cannot be executed or fails. The polls report absence only when the
    query itself ran.
    """

    @abstractmethod
    def install(self, package: SignedPackage) -> None:
        pass

    @abstractmethod
    def launch(self, package: SignedPackage) -> None:
        pass

    @abstractmethod
    def poll_process_id(self, package_id: str) -> Optional[bytes]:
        """Raw pid text of the running app, or None if it is not running (yet)."""
        pass

    @abstractmethod
    def stream_logs(self, pid: int) -> subprocess.Popen:
        """Start a log stream filtered to ``pid``; the caller owns the process."""
        pass

    @abstractmethod
    def is_process_alive(self, package_id: str) -> bool:
        pass

    def reverse_port_forward(self, forwards: Dict[str, str]) -> None:
        """Forward device sockets to host sockets. No-op unless overridden."""
        if forwards:
            logger.warning(f"{self.__class__.__name__} does not support reverse port forwarding")

    def detect_abi(self) -> Optional[BuildTarget]:
        """The device's primary ABI, or None if it cannot be determined."""
        return None

    def debugger_args(self) -> List[str]:
        """Arguments that point the NDK debugger at this device."""
        return []


class DebugKeyProvider(ABC):
    @abstractmethod
    def default_key(self) -> SigningKey:
        """Return the debug keystore, creating it if needed."""
        pass
