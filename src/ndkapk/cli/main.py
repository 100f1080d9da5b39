"""
Command-line interface for ndkapk.

Builds, signs and runs Android packages for crates with native code. Any
arguments ndkapk does not recognize are passed on to every `cargo`
invocation.

Usage:
    ndkapk [--manifest-path PATH] [--target TRIPLE] [--release] build [--example NAME]
    ndkapk run [--device SERIAL] [--no-logcat]
    ndkapk gdb [--example NAME]
    ndkapk cargo clippy -- -D warnings
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from ..building import ApkBuilder, BuildSessionConfig, Collaborators
from ..collaborators import (
    AdbDeviceController,
    CargoInvoker,
    KeytoolDebugKeyProvider,
    load_packaging_backend,
)
from ..config import find_workspace_manifest, get_config, set_manifest_path
from ..models.runtime import DEV_PROFILE, RELEASE_PROFILE, ArtifactIdentity, ArtifactKind, BuildProfile
from ..validation import NdkApkError, handle_cli_error

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def _add_artifact_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--example", metavar="NAME", help="Package the given example instead of the library.")
    group.add_argument("--bin", metavar="NAME", help="Package the given binary target instead of the library.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ndkapk",
        description="Build, sign and run Android packages for Rust crates.",
    )
    parser.add_argument(
        "--manifest-path",
        type=Path,
        default=Path("Cargo.toml"),
        help="Path to the crate's Cargo.toml (default: ./Cargo.toml).",
    )
    parser.add_argument(
        "--target",
        metavar="TRIPLE",
        help="Build for this target only, overriding build_targets and device detection.",
    )
    profile_group = parser.add_mutually_exclusive_group()
    profile_group.add_argument("--release", action="store_true", help="Use the release profile.")
    profile_group.add_argument("--profile", metavar="NAME", help="Use a custom cargo profile.")
    parser.add_argument(
        "--target-dir",
        type=Path,
        help="cargo target directory (default: $CARGO_TARGET_DIR or <workspace>/target).",
    )
    parser.add_argument("--device", metavar="SERIAL", help="adb serial of the device to use.")
    parser.add_argument(
        "--packaging-backend",
        metavar="MODULE:ATTR",
        help="Packaging backend factory (default: $NDKAPK_PACKAGING_BACKEND).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("check", help="Check the crate for every target.")

    build_parser_ = subparsers.add_parser("build", help="Build and sign a package.")
    _add_artifact_arguments(build_parser_)

    run_parser = subparsers.add_parser("run", help="Build, install and launch a package, then follow its log.")
    _add_artifact_arguments(run_parser)
    run_parser.add_argument("--no-logcat", action="store_true", help="Do not follow the app's log after launching.")

    gdb_parser = subparsers.add_parser("gdb", help="Build and install a package, then attach ndk-gdb to it.")
    _add_artifact_arguments(gdb_parser)

    cargo_parser = subparsers.add_parser("cargo", help="Run any cargo subcommand with the NDK environment.")
    cargo_parser.add_argument("subcommand", help="cargo subcommand, e.g. `clippy`.")
    cargo_parser.add_argument("cargo_args", nargs=argparse.REMAINDER, help="Arguments for the subcommand.")

    return parser


def resolve_profile(args: argparse.Namespace) -> BuildProfile:
    if args.release:
        return BuildProfile(RELEASE_PROFILE)
    return BuildProfile(args.profile or DEV_PROFILE)


def resolve_artifact(args: argparse.Namespace) -> Optional[ArtifactIdentity]:
    if getattr(args, "example", None):
        return ArtifactIdentity(args.example, ArtifactKind.EXAMPLE)
    if getattr(args, "bin", None):
        return ArtifactIdentity(args.bin, ArtifactKind.BIN)
    return None


def resolve_target_dir(args: argparse.Namespace, manifest_path: Path) -> Path:
    if args.target_dir is not None:
        return args.target_dir.resolve()
    if os.environ.get("CARGO_TARGET_DIR"):
        return Path(os.environ["CARGO_TARGET_DIR"]).resolve()
    workspace = find_workspace_manifest(manifest_path)
    root = workspace.parent if workspace is not None else manifest_path.resolve().parent
    return root / "target"


def create_builder(args: argparse.Namespace, build_args: Sequence[str]) -> ApkBuilder:
    """Load the crate configuration and wire up the collaborators for ``args.command``."""
    manifest_path = args.manifest_path.resolve()
    set_manifest_path(manifest_path)
    app_config = get_config()

    profile = resolve_profile(args)
    target_dir = resolve_target_dir(args, manifest_path)

    collaborators = Collaborators(
        invoker=CargoInvoker(manifest_path, target_dir, profile),
        device=AdbDeviceController(serial=args.device),
    )
    if args.command in ("build", "run", "gdb"):
        backend = load_packaging_backend(args.packaging_backend)
        collaborators.writer = backend.writer
        collaborators.resolver = backend.resolver
        collaborators.debug_keys = KeytoolDebugKeyProvider()

    session = BuildSessionConfig(
        app_config=app_config,
        profile=profile,
        target_dir=target_dir,
        explicit_target=args.target,
        build_args=list(build_args),
    )
    return ApkBuilder(session, collaborators)


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for ndkapk.

    Raises:
        SystemExit: With status 1 on any configuration, build, signing or device error
    """
    parser = build_parser()
    args, build_args = parser.parse_known_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        builder = create_builder(args, build_args)
        if args.command == "check":
            builder.check()
        elif args.command == "build":
            package = builder.build(resolve_artifact(args))
            logger.info(f"Built `{package.path}`")
        elif args.command == "run":
            builder.run(resolve_artifact(args), no_logcat=args.no_logcat)
        elif args.command == "gdb":
            builder.gdb(resolve_artifact(args))
        elif args.command == "cargo":
            builder.passthrough(args.subcommand, args.cargo_args)
    except NdkApkError as e:
        handle_cli_error(
            error=e,
            context=f"`{args.command}`",
            exit_code=1,
            include_traceback=args.verbose,
            logger=logger,
        )


if __name__ == "__main__":
    main_cli()
