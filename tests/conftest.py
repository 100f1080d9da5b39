"""
Pytest configuration and shared fixtures for the ndkapk test suite.

This module provides common fixtures, in-memory collaborators and crate
manifest files for all test modules.
"""

import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ndkapk.collaborators.base import (  # noqa: E402
    CrossCompileInvoker,
    DebugKeyProvider,
    DeviceController,
    LibraryResolver,
    PackageBuilder,
    PackageWriter,
    SignedPackage,
    UnsignedPackage,
)
from ndkapk.models.runtime import (  # noqa: E402
    ArtifactIdentity,
    BuildTarget,
    PackageConfig,
    SigningKey,
)
from ndkapk.validation import CommandFailedError  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# In-memory collaborators
# ============================================================================


class FakeInvoker(CrossCompileInvoker):
    """Records compiler calls; fails for the targets listed in ``fail_on``."""

    def __init__(self, root: Path, fail_on: Sequence[BuildTarget] = (),
                 min_platform: int = 21, target_platform: int = 33):
        self.root = root
        self.fail_on = set(fail_on)
        self.min_platform = min_platform
        self.target_platform = target_platform
        self.calls: List[Tuple[str, BuildTarget, int, List[str]]] = []
        self.platform_queries = 0
        self.debugger_calls: List[Tuple[Path, str, BuildTarget, List[str]]] = []

    def build(self, target, min_sdk_version, extra_args):
        self.run("build", target, min_sdk_version, extra_args)

    def run(self, subcommand, target, min_sdk_version, extra_args):
        self.calls.append((subcommand, target, min_sdk_version, list(extra_args)))
        if target in self.fail_on:
            raise CommandFailedError(["cargo", subcommand, "--target", target.rust_triple], 101, b"error: linking failed")

    def artifact_path(self, artifact, target):
        directory = self.build_dir(target)
        if artifact.build_subdir:
            directory = directory / artifact.build_subdir
        return directory / f"lib{artifact.lib_name}.so"

    def build_dir(self, target):
        return self.root / target.rust_triple / "debug"

    def library_search_paths(self, target):
        return [self.root / "native" / target.android_abi]

    def default_min_platform(self):
        self.platform_queries += 1
        return self.min_platform

    def default_target_platform(self):
        self.platform_queries += 1
        return self.target_platform

    def run_debugger(self, launch_dir, activity, abi, device_args):
        self.debugger_calls.append((launch_dir, activity, abi, list(device_args)))

    @property
    def built_targets(self) -> List[BuildTarget]:
        return [target for subcommand, target, _, _ in self.calls if subcommand == "build"]


class FakeSignedPackage(SignedPackage):
    def __init__(self, config: PackageConfig, key: SigningKey, libraries):
        self.config = config
        self.key = key
        self.libraries = libraries

    @property
    def path(self) -> Path:
        return self.config.package_path

    @property
    def package_id(self) -> str:
        return self.config.package_id


class FakeUnsignedPackage(UnsignedPackage):
    def __init__(self, config: PackageConfig, libraries):
        self.config = config
        self.libraries = libraries

    def sign(self, key):
        return FakeSignedPackage(self.config, key, self.libraries)


class FakePackageBuilder(PackageBuilder):
    def __init__(self, config: PackageConfig):
        self.config = config
        self.libraries: List[Tuple[Path, BuildTarget]] = []
        self.finalized = False
        self.discarded = False

    def add_library(self, path, target):
        self.libraries.append((path, target))

    def finalize(self):
        self.finalized = True
        return FakeUnsignedPackage(self.config, list(self.libraries))

    def discard(self):
        self.discarded = True


class FakePackageWriter(PackageWriter):
    def __init__(self):
        self.builders: List[FakePackageBuilder] = []

    def create(self, config):
        builder = FakePackageBuilder(config)
        self.builders.append(builder)
        return builder


class FakeLibraryResolver(LibraryResolver):
    def __init__(self):
        self.artifact_calls: List[Tuple[Path, BuildTarget, List[Path]]] = []
        self.runtime_calls: List[Tuple[Path, BuildTarget]] = []

    def add_artifact_and_deps(self, builder, artifact_path, target, search_paths):
        self.artifact_calls.append((artifact_path, target, list(search_paths)))
        builder.add_library(artifact_path, target)

    def add_runtime_libs(self, builder, libs_dir, target, search_paths):
        self.runtime_calls.append((libs_dir, target))


class FakeDevice(DeviceController):
    """
    Scripted device: ``pid_polls`` is consumed one poll at a time (None means
    "not running yet"), ``alive_polls`` likewise; both repeat their last value
    and raise it if it is an exception.
    """

    def __init__(self, pid_polls: Sequence[Optional[bytes]] = (b"4242\n",),
                 alive_polls: Sequence[Any] = (False,), abi: Optional[BuildTarget] = None):
        self.pid_polls = list(pid_polls)
        self.alive_polls = list(alive_polls)
        self.abi = abi
        self.events: List[Tuple[str, Any]] = []
        self.log_processes: List[subprocess.Popen] = []

    @staticmethod
    def _next(values: List[Any]) -> Any:
        return values.pop(0) if len(values) > 1 else values[0]

    def install(self, package):
        self.events.append(("install", package.package_id))

    def launch(self, package):
        self.events.append(("launch", package.package_id))

    def poll_process_id(self, package_id):
        self.events.append(("poll_pid", package_id))
        value = self._next(self.pid_polls)
        if isinstance(value, Exception):
            raise value
        return value

    def stream_logs(self, pid):
        self.events.append(("stream_logs", pid))
        process = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)"])
        self.log_processes.append(process)
        return process

    def is_process_alive(self, package_id):
        self.events.append(("poll_alive", package_id))
        value = self._next(self.alive_polls)
        if isinstance(value, Exception):
            raise value
        return value

    def reverse_port_forward(self, forwards):
        self.events.append(("reverse", dict(forwards)))

    def detect_abi(self):
        return self.abi

    def debugger_args(self):
        return ["-s", "fake-serial"]

    def event_names(self) -> List[str]:
        return [name for name, _ in self.events]


class FakeDebugKeys(DebugKeyProvider):
    def __init__(self, path: Path = Path("/home/dev/.android/debug.keystore")):
        self.path = path
        self.requests = 0

    def default_key(self):
        self.requests += 1
        return SigningKey(path=self.path, password="android")


class StaticPackage(SignedPackage):
    """A signed package that only knows its id, for device-side tests."""

    def __init__(self, package_id: str = "rust.demo", path: Path = Path("/tmp/demo.apk")):
        self._package_id = package_id
        self._path = path

    @property
    def path(self):
        return self._path

    @property
    def package_id(self):
        return self._package_id


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def fake_invoker(temp_dir):
    return FakeInvoker(temp_dir / "target")


@pytest.fixture
def fake_writer():
    return FakePackageWriter()


@pytest.fixture
def fake_resolver():
    return FakeLibraryResolver()


@pytest.fixture
def fake_device():
    device = FakeDevice()
    yield device
    for process in device.log_processes:
        if process.poll() is None:
            process.kill()
            process.wait()


@pytest.fixture
def fake_debug_keys():
    return FakeDebugKeys()


@pytest.fixture
def lib_artifact():
    return ArtifactIdentity("demo-app")


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def sample_android_metadata() -> Dict[str, Any]:
    """A representative [package.metadata.android] table."""
    return {
        "apk_name": "demo",
        "assets": "assets",
        "build_targets": ["aarch64-linux-android", "x86_64-linux-android"],
        "strip": "strip",
        "reverse_port_forward": {"tcp:8080": "tcp:8080"},
        "sdk": {"min_sdk_version": 26, "target_sdk_version": 33},
        "application": {
            "label": "Demo",
            "activity": {
                "intent_filter": [
                    {"actions": ["android.intent.action.VIEW"], "categories": ["android.intent.category.DEFAULT"]}
                ],
                "meta_data": [{"name": "com.example.flag", "value": "on"}],
            },
        },
        "signing": {"release": {"path": "keys/release.keystore", "keystore_password": "hunter2"}},
    }


@pytest.fixture
def crate_manifest(temp_dir, sample_android_metadata):
    """Write a crate Cargo.toml and return its path."""
    import toml

    manifest_path = temp_dir / "demo-app" / "Cargo.toml"
    manifest_path.parent.mkdir(parents=True)
    data = {
        "package": {
            "name": "demo-app",
            "version": "1.2.3",
            "metadata": {"android": sample_android_metadata},
        },
        "lib": {"crate-type": ["cdylib"]},
    }
    with open(manifest_path, "w") as f:
        toml.dump(data, f)
    return manifest_path


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    yield

    from ndkapk.config import clear_config_cache, set_manifest_path

    clear_config_cache()
    set_manifest_path(Path("Cargo.toml"))


def fake_packaging_backend():
    """Packaging backend factory, loadable as `conftest:fake_packaging_backend`."""
    from ndkapk.collaborators.factory import PackagingBackend

    return PackagingBackend(FakePackageWriter(), FakeLibraryResolver())
