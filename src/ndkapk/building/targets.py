"""
Selection of the target architectures for a build session.
"""

import logging
from typing import List, Optional, Sequence

from ..collaborators.base import DeviceController
from ..models.runtime import BuildTarget
from ..validation import NdkApkError

logger = logging.getLogger(__name__)

FALLBACK_TARGET = BuildTarget.ARM64_V8A


def resolve_build_targets(
    explicit_triple: Optional[str],
    declared: Sequence[BuildTarget],
    device: Optional[DeviceController] = None,
) -> List[BuildTarget]:
    """Pick the ordered, non-empty list of targets to build.

    Precedence: an explicit ``--target`` triple, then the targets declared in
    the manifest, then the ABI of the connected device, then arm64-v8a.

    Raises:
        ConfigurationError: If the explicit triple is not an Android target.
    """
    if explicit_triple:
        return [BuildTarget.from_rust_triple(explicit_triple)]

    if declared:
        targets: List[BuildTarget] = []
        for target in declared:
            if target not in targets:
                targets.append(target)
        return targets

    if device is not None:
        try:
            detected = device.detect_abi()
        except NdkApkError as e:
            logger.debug(f"Device ABI detection failed: {e}")
            detected = None
        if detected is not None:
            logger.info(f"Building for the connected device's ABI `{detected.android_abi}`")
            return [detected]

    return [FALLBACK_TARGET]
