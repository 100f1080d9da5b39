"""
Multi-target build coordination.

Compiles the artifact once per target architecture, strictly in order, and
collects each target's native libraries into one package.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from ..collaborators.base import (
    CrossCompileInvoker,
    LibraryResolver,
    PackageBuilder,
    PackageWriter,
    UnsignedPackage,
)
from ..models.runtime import ArtifactIdentity, BuildTarget, PackageConfig

logger = logging.getLogger(__name__)


class MultiTargetBuildCoordinator:
    """
    Fans a build out over the selected targets and hands the results to the
    packaging backend. It knows nothing about the package format itself.
    """

    def __init__(
        self,
        invoker: CrossCompileInvoker,
        resolver: LibraryResolver,
        writer: PackageWriter,
    ):
        self.invoker = invoker
        self.resolver = resolver
        self.writer = writer

    def search_paths(self, target: BuildTarget) -> List[Path]:
        paths = list(self.invoker.library_search_paths(target))
        paths.append(self.invoker.build_dir(target) / "deps")
        return paths

    def assemble(
        self,
        artifact: ArtifactIdentity,
        targets: Sequence[BuildTarget],
        config: PackageConfig,
        min_sdk_version: int,
        build_args: Sequence[str] = (),
        runtime_libs: Optional[Path] = None,
    ) -> UnsignedPackage:
        """Build every target and finalize the package.

        A failure on any target stops the loop before the next target is
        compiled; the partially assembled package is discarded and the
        error propagates unchanged.

        Returns:
            The finalized, unsigned package.
        """
        if not targets:
            raise ValueError("At least one build target is required")

        builder = self.writer.create(config)
        try:
            for target in targets:
                self._build_target(builder, artifact, target, min_sdk_version, build_args, runtime_libs)
            unsigned = builder.finalize()
        except Exception:
            logger.error(f"Build of `{artifact.name}` failed; discarding partial package")
            builder.discard()
            raise

        logger.info(f"Assembled `{config.package_path}` for {[t.android_abi for t in targets]}")
        return unsigned

    def _build_target(
        self,
        builder: PackageBuilder,
        artifact: ArtifactIdentity,
        target: BuildTarget,
        min_sdk_version: int,
        build_args: Sequence[str],
        runtime_libs: Optional[Path],
    ) -> None:
        logger.info(f"Compiling `{artifact.name}` for {target.android_abi}")
        self.invoker.build(target, min_sdk_version, build_args)

        search_paths = self.search_paths(target)
        artifact_path = self.invoker.artifact_path(artifact, target)
        self.resolver.add_artifact_and_deps(builder, artifact_path, target, search_paths)
        if runtime_libs is not None:
            self.resolver.add_runtime_libs(builder, runtime_libs, target, search_paths)
