"""
External collaborators: abstract interfaces and the bundled implementations.
"""

from .adb import AdbDeviceController
from .base import (
    CrossCompileInvoker,
    DebugKeyProvider,
    DeviceController,
    LibraryResolver,
    PackageBuilder,
    PackageWriter,
    SignedPackage,
    UnsignedPackage,
)
from .cargo import CargoInvoker
from .factory import PackagingBackend, load_packaging_backend
from .keytool import KeytoolDebugKeyProvider

__all__ = [
    "CrossCompileInvoker",
    "DebugKeyProvider",
    "DeviceController",
    "LibraryResolver",
    "PackageBuilder",
    "PackageWriter",
    "SignedPackage",
    "UnsignedPackage",
    "AdbDeviceController",
    "CargoInvoker",
    "KeytoolDebugKeyProvider",
    "PackagingBackend",
    "load_packaging_backend",
]
