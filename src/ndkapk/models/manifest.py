"""
Android manifest data models.

These dataclasses are the in-memory form of the package metadata handed to the
packaging backend. Rendering them to XML is the backend's job.
"""

import copy
from dataclasses import dataclass, field
from typing import Dict, List, Optional

MAIN_ACTION = "android.intent.action.MAIN"
LAUNCHER_CATEGORY = "android.intent.category.LAUNCHER"
LIB_NAME_META = "android.app.lib_name"
NATIVE_ACTIVITY = "android.app.NativeActivity"


@dataclass
class IntentFilter:
    actions: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    # Each entry holds android:scheme / android:host style attributes.
    data: List[Dict[str, str]] = field(default_factory=list)


@dataclass
class MetaData:
    name: str
    value: str


@dataclass
class Activity:
    """The single entry-point activity of the package."""

    name: str = NATIVE_ACTIVITY
    # None means "not declared"; Android 12+ refuses to launch undeclared entry points.
    exported: Optional[bool] = None
    intent_filters: List[IntentFilter] = field(default_factory=list)
    meta_data: List[MetaData] = field(default_factory=list)

    def declares_main_action(self) -> bool:
        return any(MAIN_ACTION in f.actions for f in self.intent_filters)


@dataclass
class Application:
    label: str = ""
    debuggable: Optional[bool] = None
    activity: Activity = field(default_factory=Activity)


@dataclass
class Sdk:
    min_sdk_version: Optional[int] = None
    target_sdk_version: Optional[int] = None


@dataclass
class ManifestDescriptor:
    """
    Mutable package descriptor.

    Built from configuration, copied once per artifact, filled in by manifest
    defaulting and then stored inside a frozen PackageConfig.
    """

    package: str = ""
    version_name: Optional[str] = None
    version_code: Optional[int] = None
    sdk: Sdk = field(default_factory=Sdk)
    application: Application = field(default_factory=Application)

    def copy(self) -> "ManifestDescriptor":
        return copy.deepcopy(self)

    def is_complete(self) -> bool:
        """True once every field the packaging backend requires is set."""
        return (
            bool(self.package)
            and bool(self.application.label)
            and self.sdk.min_sdk_version is not None
            and self.sdk.target_sdk_version is not None
        )
