"""
Runtime data models.

This module contains the value types passed between the build stages: target
architectures, artifact identity, build profile, signing keys, the finalized
package configuration and the handle to a running app on the device.
"""

import logging
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from ..system.processes import kill_process_tree
from ..validation import ConfigurationError, ValidationError
from .manifest import ManifestDescriptor

logger = logging.getLogger(__name__)

DEV_PROFILE = "dev"
RELEASE_PROFILE = "release"

# Publicly known password of the SDK-managed debug keystore.
DEFAULT_DEV_KEYSTORE_PASSWORD = "android"


class BuildTarget(Enum):
    """
    Supported Android ABIs.

    Each value is (android abi, rust triple, clang triple). The clang triple
    differs from the rust triple only for 32-bit ARM.
    """

    ARMV7A = ("armeabi-v7a", "armv7-linux-androideabi", "armv7a-linux-androideabi")
    ARM64_V8A = ("arm64-v8a", "aarch64-linux-android", "aarch64-linux-android")
    X86 = ("x86", "i686-linux-android", "i686-linux-android")
    X86_64 = ("x86_64", "x86_64-linux-android", "x86_64-linux-android")

    @property
    def android_abi(self) -> str:
        return self.value[0]

    @property
    def rust_triple(self) -> str:
        return self.value[1]

    @property
    def clang_triple(self) -> str:
        return self.value[2]

    @classmethod
    def from_rust_triple(cls, triple: str) -> "BuildTarget":
        for target in cls:
            if target.rust_triple == triple:
                return target
        raise ConfigurationError(f"Unsupported target triple `{triple}`")

    @classmethod
    def from_android_abi(cls, abi: str) -> "BuildTarget":
        for target in cls:
            if target.android_abi == abi:
                return target
        raise ConfigurationError(f"Unsupported Android ABI `{abi}`")


class ArtifactKind(Enum):
    LIB = "lib"
    BIN = "bin"
    EXAMPLE = "example"


@dataclass(frozen=True)
class ArtifactIdentity:
    """A compiled unit: the crate library, a binary, or an example."""

    name: str
    kind: ArtifactKind = ArtifactKind.LIB

    @property
    def lib_name(self) -> str:
        return self.name.replace("-", "_")

    @property
    def build_subdir(self) -> str:
        return "examples" if self.kind is ArtifactKind.EXAMPLE else ""

    @property
    def cargo_args(self) -> List[str]:
        """Target selection flags; the library needs none."""
        if self.kind is ArtifactKind.LIB:
            return []
        return [f"--{self.kind.value}", self.name]


@dataclass(frozen=True)
class BuildProfile:
    """A cargo build profile: `dev`, `release` or a custom name."""

    name: str = DEV_PROFILE

    @property
    def is_dev(self) -> bool:
        return self.name == DEV_PROFILE

    @property
    def env_name(self) -> str:
        return self.name.upper().replace("-", "_")

    @property
    def output_dir_name(self) -> str:
        # cargo writes the dev profile to target/<triple>/debug
        return "debug" if self.is_dev else self.name

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class SigningKey:
    """A keystore path and its password; both are required."""

    path: Path
    password: str

    def __post_init__(self):
        if self.path is None or not str(self.path):
            raise ValidationError("Signing key path must be set", field_name="path", value=self.path)
        if self.password is None:
            raise ValidationError("Signing key password must be set", field_name="password")


@dataclass(frozen=True)
class PackageConfig:
    """
    The finalized inputs to package assembly.

    Directory paths are absolute, resolved against the crate manifest directory.
    """

    build_dir: Path
    apk_name: str
    manifest: ManifestDescriptor
    disable_compression: bool
    assets: Optional[Path] = None
    resources: Optional[Path] = None
    runtime_libs: Optional[Path] = None
    strip: str = "default"
    reverse_port_forward: Dict[str, str] = field(default_factory=dict)

    @property
    def package_path(self) -> Path:
        return self.build_dir / f"{self.apk_name}.apk"

    @property
    def package_id(self) -> str:
        return self.manifest.package


@dataclass
class DeviceProcessHandle:
    """
    The app process found on the device plus the local log-stream process.
    """

    pid: int
    log_process: subprocess.Popen

    def close(self) -> None:
        """Kill the log-stream subprocess; safe to call more than once."""
        if self.log_process.poll() is not None:
            return
        logger.debug(f"Stopping log stream for device pid {self.pid}")
        kill_process_tree(self.log_process.pid, "log stream")
        try:
            self.log_process.wait(timeout=2)
        except subprocess.TimeoutExpired:
            self.log_process.kill()
