"""
Build session management.

ApkBuilder ties configuration, target selection, manifest defaulting, signing
and the multi-target coordinator together and exposes the top-level
operations `check`, `build`, `run`, `gdb` and `passthrough`.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..collaborators.base import (
    CrossCompileInvoker,
    DebugKeyProvider,
    DeviceController,
    LibraryResolver,
    PackageWriter,
    SignedPackage,
)
from ..device.monitor import DeviceProcessMonitor
from ..device.signal_handler import SignalHandler
from ..models.config import AppConfig
from ..models.manifest import NATIVE_ACTIVITY, ManifestDescriptor
from ..models.runtime import ArtifactIdentity, ArtifactKind, BuildProfile, PackageConfig
from ..validation import ConfigurationError, DeviceInteractionError
from .coordinator import MultiTargetBuildCoordinator
from .manifest_defaults import apply_manifest_defaults, apply_package_version, resolve_min_sdk_version
from .signing import SigningInputs, resolve_signing_key
from .targets import resolve_build_targets

logger = logging.getLogger(__name__)


@dataclass
class BuildSessionConfig:
    """
    Per-invocation settings for an ApkBuilder.
    """
    app_config: AppConfig
    profile: BuildProfile
    # cargo's target directory; packages go to <target_dir>/<profile>/apk.
    target_dir: Path
    explicit_target: Optional[str] = None
    build_args: List[str] = field(default_factory=list)
    environ: Dict[str, str] = field(default_factory=lambda: dict(os.environ))


@dataclass
class Collaborators:
    """
    The external tools a session drives. Only the compiler is always needed.
    """
    invoker: CrossCompileInvoker
    writer: Optional[PackageWriter] = None
    resolver: Optional[LibraryResolver] = None
    device: Optional[DeviceController] = None
    debug_keys: Optional[DebugKeyProvider] = None


class ApkBuilder:
    """
    One build session for one crate.

    Targets, the minimum API level and the versioned manifest template are
    resolved once when the session is created and shared by every operation.
    """

    def __init__(self, config: BuildSessionConfig, collaborators: Collaborators):
        self.config = config
        self.collaborators = collaborators

        package = config.app_config.package
        android = config.app_config.android
        logger.info(f"Using package `{package.name}` in `{package.manifest_path}`")

        self.build_targets = resolve_build_targets(
            config.explicit_target, android.build_targets, collaborators.device
        )

        configured_min_sdk = android.android_manifest.sdk.min_sdk_version
        self.min_sdk_version = resolve_min_sdk_version(
            configured_min_sdk,
            collaborators.invoker.default_min_platform() if configured_min_sdk is None else None,
        )

        self.manifest_template: ManifestDescriptor = android.android_manifest.copy()
        apply_package_version(self.manifest_template, package.version)
        self.manifest_template.sdk.min_sdk_version = self.min_sdk_version

    @property
    def manifest_dir(self) -> Path:
        return self.config.app_config.package.manifest_dir

    @property
    def build_dir(self) -> Path:
        return self.config.target_dir / self.config.profile.output_dir_name / "apk"

    def artifact_build_dir(self, artifact: ArtifactIdentity) -> Path:
        if artifact.build_subdir:
            return self.build_dir / artifact.build_subdir
        return self.build_dir

    def default_artifact(self) -> ArtifactIdentity:
        return ArtifactIdentity(self.config.app_config.package.name, ArtifactKind.LIB)

    def _resolve_dir(self, path: Optional[Path]) -> Optional[Path]:
        if path is None:
            return None
        return (self.manifest_dir / path).resolve()

    def check(self) -> None:
        """Type-check the crate for every target without producing packages."""
        self.passthrough("check")

    def passthrough(self, subcommand: str, args: Sequence[str] = ()) -> None:
        """Run an arbitrary cargo subcommand once per target with the NDK environment."""
        for target in self.build_targets:
            logger.info(f"Running `cargo {subcommand}` for {target.android_abi}")
            self.collaborators.invoker.run(
                subcommand, target, self.min_sdk_version, [*self.config.build_args, *args]
            )

    def package_config(self, artifact: ArtifactIdentity) -> PackageConfig:
        """Defaulted manifest plus every packaging input for ``artifact``."""
        android = self.config.app_config.android
        manifest = apply_manifest_defaults(
            self.manifest_template, artifact, self.config.profile, self.collaborators.invoker
        )
        if not manifest.is_complete():
            raise ConfigurationError(f"Manifest for `{artifact.name}` is incomplete after defaulting")
        return PackageConfig(
            build_dir=self.artifact_build_dir(artifact),
            apk_name=android.apk_name or artifact.name,
            manifest=manifest,
            disable_compression=self.config.profile.is_dev,
            assets=self._resolve_dir(android.assets),
            resources=self._resolve_dir(android.resources),
            runtime_libs=self._resolve_dir(android.runtime_libs),
            strip=android.strip,
            reverse_port_forward=dict(android.reverse_port_forward),
        )

    def build(self, artifact: Optional[ArtifactIdentity] = None) -> SignedPackage:
        """
        Compile, package and sign one artifact.

        The signing key is resolved before anything is compiled, so a missing
        release key fails the command immediately.

        Raises:
            ConfigurationError: If no packaging backend is configured
            MissingSigningKeyError: If no key is available for the profile
            CommandFailedError: If compilation fails for any target
        """
        artifact = artifact or self.default_artifact()
        writer = self.collaborators.writer
        resolver = self.collaborators.resolver
        if writer is None or resolver is None:
            raise ConfigurationError(
                "No packaging backend configured; pass --packaging-backend or set NDKAPK_PACKAGING_BACKEND"
            )

        config = self.package_config(artifact)
        key = resolve_signing_key(
            SigningInputs(
                profile=self.config.profile,
                environ=self.config.environ,
                configured=self.config.app_config.android.signing,
                manifest_dir=self.manifest_dir,
                debug_keys=self.collaborators.debug_keys,
            )
        )

        coordinator = MultiTargetBuildCoordinator(self.collaborators.invoker, resolver, writer)
        unsigned = coordinator.assemble(
            artifact,
            self.build_targets,
            config,
            self.min_sdk_version,
            [*artifact.cargo_args, *self.config.build_args],
            config.runtime_libs,
        )

        logger.info(f"Signing `{config.package_path}` with keystore `{key.path}`")
        return unsigned.sign(key)

    def run(
        self,
        artifact: Optional[ArtifactIdentity] = None,
        no_logcat: bool = False,
        monitor: Optional[DeviceProcessMonitor] = None,
    ) -> SignedPackage:
        """
        Build the artifact, deploy it and follow the app until it exits.

        SIGINT and SIGTERM stop the monitoring loop and kill the log stream.
        """
        device = self.collaborators.device
        if device is None:
            raise ConfigurationError("`run` needs a device controller")

        package = self.build(artifact)
        forwards = self.config.app_config.android.reverse_port_forward
        if forwards:
            device.reverse_port_forward(forwards)

        monitor = monitor or DeviceProcessMonitor(device)
        signal_handler = SignalHandler()
        monitor_id = id(monitor)
        signal_handler.register_monitor(monitor_id, monitor)
        signal_handler.setup_signal_handlers()
        try:
            monitor.run(package, stream_logs=not no_logcat)
        finally:
            signal_handler.cleanup_signal_handlers()
            signal_handler.unregister_monitor(monitor_id)
        return package

    def gdb(self, artifact: Optional[ArtifactIdentity] = None) -> SignedPackage:
        """
        Build and install the artifact, then attach the NDK debugger to its
        activity on the device's ABI.

        Raises:
            DeviceInteractionError: If the device ABI cannot be determined
        """
        device = self.collaborators.device
        if device is None:
            raise ConfigurationError("`gdb` needs a device controller")

        artifact = artifact or self.default_artifact()
        package = self.build(artifact)
        device.install(package)

        abi = device.detect_abi()
        if abi is None:
            raise DeviceInteractionError("Could not determine the device ABI to debug")
        self.collaborators.invoker.run_debugger(
            self.artifact_build_dir(artifact), NATIVE_ACTIVITY, abi, device.debugger_args()
        )
        return package
