"""
Cross compilation through `cargo` and the Android NDK clang toolchain.
"""

import json
import logging
import os
import platform
import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..models.runtime import ArtifactIdentity, BuildProfile, BuildTarget
from ..system import CommandSpec, run_captured, run_interactive
from ..validation import ConfigurationError
from .base import CrossCompileInvoker

logger = logging.getLogger(__name__)

LINK_SEARCH_PREFIX = "cargo:rustc-link-search="
# Link search kinds that may point at shared libraries we need to package.
SHARED_LINK_SEARCH_KINDS = ("dependency", "native", "all")


def find_ndk_root(env: Optional[Dict[str, str]] = None) -> Optional[Path]:
    env = os.environ if env is None else env
    for var in ("ANDROID_NDK_ROOT", "ANDROID_NDK_HOME", "ANDROID_NDK_PATH"):
        if env.get(var):
            return Path(env[var])
    return None


def find_sdk_root(env: Optional[Dict[str, str]] = None) -> Optional[Path]:
    env = os.environ if env is None else env
    for var in ("ANDROID_HOME", "ANDROID_SDK_ROOT"):
        if env.get(var):
            return Path(env[var])
    return None


def _host_tag() -> str:
    system = platform.system().lower()
    if system == "darwin":
        return "darwin-x86_64"
    if system == "windows":
        return "windows-x86_64"
    return "linux-x86_64"


def read_link_search_paths(build_root: Path) -> List[Path]:
    """
    Collect `cargo:rustc-link-search` directories printed by build scripts.

    ``build_root`` is `<target-dir>/<triple>/<profile>/build`; each build
    script leaves its printed directives in `<build_root>/<crate-hash>/output`.
    """
    paths: List[Path] = []
    if not build_root.is_dir():
        return paths
    for dep_dir in sorted(build_root.iterdir()):
        output_file = dep_dir / "output"
        if not output_file.is_file():
            continue
        for line in output_file.read_text(encoding="utf-8", errors="replace").splitlines():
            if not line.startswith(LINK_SEARCH_PREFIX):
                continue
            value = line[len(LINK_SEARCH_PREFIX):]
            kind, sep, path = value.partition("=")
            if not sep:
                kind, path = "all", value
            if kind in SHARED_LINK_SEARCH_KINDS:
                paths.append(Path(path))
    return paths


class CargoInvoker(CrossCompileInvoker):
    """
    Runs `cargo <subcommand> --target <triple>` with the NDK clang wrapper
    selected as linker and C compiler for the requested API level.
    """

    def __init__(
        self,
        manifest_path: Path,
        target_dir: Path,
        profile: BuildProfile,
        ndk_root: Optional[Path] = None,
        sdk_root: Optional[Path] = None,
    ):
        self.manifest_path = Path(manifest_path)
        self.target_dir = Path(target_dir)
        self.profile = profile
        self.ndk_root = ndk_root if ndk_root is not None else find_ndk_root()
        self.sdk_root = sdk_root if sdk_root is not None else find_sdk_root()

    def _require_ndk(self) -> Path:
        if self.ndk_root is None:
            raise ConfigurationError(
                "Android NDK not found; set ANDROID_NDK_ROOT to the NDK installation"
            )
        return self.ndk_root

    def _toolchain_bin(self) -> Path:
        return self._require_ndk() / "toolchains" / "llvm" / "prebuilt" / _host_tag() / "bin"

    def _profile_args(self) -> List[str]:
        if self.profile.is_dev:
            return []
        if self.profile.name == "release":
            return ["--release"]
        return ["--profile", self.profile.name]

    def toolchain_env(self, target: BuildTarget, min_sdk_version: int) -> Dict[str, str]:
        """Environment variables pointing cargo and cc-rs at the NDK clang for ``target``."""
        bin_dir = self._toolchain_bin()
        suffix = ".cmd" if platform.system() == "Windows" else ""
        clang = bin_dir / f"{target.clang_triple}{min_sdk_version}-clang{suffix}"
        clangxx = bin_dir / f"{target.clang_triple}{min_sdk_version}-clang++{suffix}"
        ar = bin_dir / "llvm-ar"
        triple_env = target.rust_triple.replace("-", "_")
        cargo_env = re.sub(r"[^A-Z0-9]", "_", target.rust_triple.upper())
        return {
            f"CC_{triple_env}": str(clang),
            f"CXX_{triple_env}": str(clangxx),
            f"AR_{triple_env}": str(ar),
            f"CARGO_TARGET_{cargo_env}_LINKER": str(clang),
            f"CARGO_TARGET_{cargo_env}_AR": str(ar),
            "ANDROID_NDK_ROOT": str(self._require_ndk()),
        }

    def command(self, subcommand: str, target: BuildTarget, min_sdk_version: int,
                extra_args: Sequence[str]) -> CommandSpec:
        args = [
            "cargo",
            subcommand,
            "--manifest-path",
            str(self.manifest_path),
            "--target-dir",
            str(self.target_dir),
            "--target",
            target.rust_triple,
            *self._profile_args(),
            *extra_args,
        ]
        return CommandSpec(
            args=args,
            cwd=self.manifest_path.parent,
            env=self.toolchain_env(target, min_sdk_version),
        )

    def build(self, target: BuildTarget, min_sdk_version: int, extra_args: Sequence[str]) -> None:
        self.run("build", target, min_sdk_version, extra_args)

    def run(self, subcommand: str, target: BuildTarget, min_sdk_version: int,
            extra_args: Sequence[str]) -> None:
        logger.info(f"Running `cargo {subcommand}` for {target.rust_triple} (API {min_sdk_version})")
        run_captured(self.command(subcommand, target, min_sdk_version, extra_args))

    def build_dir(self, target: BuildTarget) -> Path:
        return self.target_dir / target.rust_triple / self.profile.output_dir_name

    def artifact_path(self, artifact: ArtifactIdentity, target: BuildTarget) -> Path:
        directory = self.build_dir(target)
        if artifact.build_subdir:
            directory = directory / artifact.build_subdir
        return directory / f"lib{artifact.lib_name}.so"

    def library_search_paths(self, target: BuildTarget) -> List[Path]:
        return read_link_search_paths(self.build_dir(target) / "build")

    def default_min_platform(self) -> int:
        platforms_file = self._require_ndk() / "meta" / "platforms.json"
        try:
            data = json.loads(platforms_file.read_text(encoding="utf-8"))
            return int(data["min"])
        except (OSError, ValueError, KeyError) as e:
            raise ConfigurationError(f"Cannot read NDK platform range from {platforms_file}: {e}") from e

    def default_target_platform(self) -> int:
        if self.sdk_root is None:
            raise ConfigurationError(
                "Android SDK not found; set ANDROID_HOME or declare sdk.target_sdk_version"
            )
        levels = []
        platforms_dir = self.sdk_root / "platforms"
        if platforms_dir.is_dir():
            for entry in platforms_dir.iterdir():
                match = re.fullmatch(r"android-(\d+)", entry.name)
                if match and (entry / "android.jar").is_file():
                    levels.append(int(match.group(1)))
        if not levels:
            raise ConfigurationError(f"No Android platforms installed in {platforms_dir}")
        return max(levels)

    def ndk_gdb_command(self, launch_dir: Path, activity: str, device_args: Sequence[str]) -> CommandSpec:
        name = "ndk-gdb.cmd" if platform.system() == "Windows" else "ndk-gdb"
        return CommandSpec(
            args=[str(self._require_ndk() / name), *device_args, "--launch", activity],
            cwd=launch_dir,
        )

    def run_debugger(self, launch_dir: Path, activity: str, abi: BuildTarget,
                     device_args: Sequence[str]) -> None:
        # ndk-gdb reads the ABI to debug from an ndk-build project layout.
        jni_dir = launch_dir / "jni"
        jni_dir.mkdir(parents=True, exist_ok=True)
        (jni_dir / "Android.mk").write_text(f"APP_ABI={abi.android_abi}\nTARGET_OUT=\n", encoding="utf-8")
        logger.info(f"Starting ndk-gdb for `{activity}` on {abi.android_abi}")
        run_interactive(self.ndk_gdb_command(launch_dir, activity, device_args))
