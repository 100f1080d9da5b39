"""
Packaging backend factory.

The package container format lives outside this project. A backend is a
callable, named as `module:attribute`, returning a PackagingBackend.
"""

import importlib
import logging
import os
from typing import NamedTuple, Optional

from ..validation import ConfigurationError
from .base import LibraryResolver, PackageWriter

logger = logging.getLogger(__name__)

BACKEND_ENV_VAR = "NDKAPK_PACKAGING_BACKEND"


class PackagingBackend(NamedTuple):
    writer: PackageWriter
    resolver: LibraryResolver


def load_packaging_backend(spec: Optional[str] = None) -> PackagingBackend:
    """
    Import and instantiate a packaging backend.

    Args:
        spec: `module:attribute` path; defaults to $NDKAPK_PACKAGING_BACKEND

    Raises:
        ConfigurationError: If no backend is configured or it cannot be loaded
    """
    spec = spec or os.environ.get(BACKEND_ENV_VAR)
    if not spec:
        raise ConfigurationError(
            f"No packaging backend configured; pass --packaging-backend or set {BACKEND_ENV_VAR}"
        )

    module_name, _, attr = spec.partition(":")
    if not module_name or not attr:
        raise ConfigurationError(f"Packaging backend must look like `module:attribute`, got `{spec}`")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import packaging backend module `{module_name}`: {e}") from e

    factory = getattr(module, attr, None)
    if not callable(factory):
        raise ConfigurationError(f"`{spec}` is not a callable packaging backend factory")

    backend = factory()
    if not isinstance(backend, PackagingBackend):
        try:
            backend = PackagingBackend(*backend)
        except TypeError as e:
            raise ConfigurationError(f"`{spec}` must return a (writer, resolver) pair") from e
    if not isinstance(backend.writer, PackageWriter) or not isinstance(backend.resolver, LibraryResolver):
        raise ConfigurationError(f"`{spec}` returned objects that are not a PackageWriter and LibraryResolver")

    logger.info(f"Loaded packaging backend `{spec}`")
    return backend
