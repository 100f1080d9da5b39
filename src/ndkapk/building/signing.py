"""
Signing key resolution.

The policy is an ordered list of guarded rules; the first rule whose guard
matches decides the outcome. The last rule matches everything, so every input
yields either a key or a MissingSigningKeyError.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Tuple

from ..collaborators.base import DebugKeyProvider
from ..models.config import SigningEntry
from ..models.runtime import DEFAULT_DEV_KEYSTORE_PASSWORD, BuildProfile, SigningKey
from ..validation import ConfigurationError, MissingSigningKeyError

logger = logging.getLogger(__name__)


def keystore_env_var(profile: BuildProfile) -> str:
    return f"CARGO_APK_{profile.env_name}_KEYSTORE"


def keystore_password_env_var(profile: BuildProfile) -> str:
    return f"{keystore_env_var(profile)}_PASSWORD"


@dataclass
class SigningInputs:
    """Everything the signing policy looks at."""

    profile: BuildProfile
    environ: Mapping[str, str]
    configured: Dict[str, SigningEntry] = field(default_factory=dict)
    # Configured keystore paths are relative to this directory.
    manifest_dir: Path = Path(".")
    debug_keys: Optional[DebugKeyProvider] = None

    @property
    def env_path(self) -> Optional[str]:
        return self.environ.get(keystore_env_var(self.profile))

    @property
    def env_password(self) -> Optional[str]:
        return self.environ.get(keystore_password_env_var(self.profile))

    @property
    def configured_entry(self) -> Optional[SigningEntry]:
        return self.configured.get(self.profile.name)


@dataclass(frozen=True)
class SigningRule:
    name: str
    applies: Callable[[SigningInputs], bool]
    resolve: Callable[[SigningInputs], SigningKey]


def _key_from_env(inputs: SigningInputs) -> SigningKey:
    return SigningKey(path=Path(inputs.env_path), password=inputs.env_password)


def _key_from_env_with_default_password(inputs: SigningInputs) -> SigningKey:
    logger.warning(
        f"{keystore_password_env_var(inputs.profile)} not specified, falling back to default password"
    )
    return SigningKey(path=Path(inputs.env_path), password=DEFAULT_DEV_KEYSTORE_PASSWORD)


def _reject_partial_env_key(inputs: SigningInputs) -> SigningKey:
    logger.error(
        f"`{inputs.env_path}` was specified via `{keystore_env_var(inputs.profile)}`, but "
        f"`{keystore_password_env_var(inputs.profile)}` was not specified, both or neither "
        f"must be present for profiles other than `dev`"
    )
    raise MissingSigningKeyError(inputs.profile.name)


def _key_from_config(inputs: SigningInputs) -> SigningKey:
    entry = inputs.configured_entry
    return SigningKey(path=inputs.manifest_dir / entry.path, password=entry.keystore_password)


def _key_from_debug_provider(inputs: SigningInputs) -> SigningKey:
    if inputs.debug_keys is None:
        raise ConfigurationError("No debug key provider configured for the `dev` profile")
    return inputs.debug_keys.default_key()


def _missing_key(inputs: SigningInputs) -> SigningKey:
    raise MissingSigningKeyError(inputs.profile.name)


SIGNING_RULES: Tuple[SigningRule, ...] = (
    SigningRule(
        "environment path and password",
        lambda i: i.env_path is not None and i.env_password is not None,
        _key_from_env,
    ),
    SigningRule(
        "environment path with default dev password",
        lambda i: i.env_path is not None and i.profile.is_dev,
        _key_from_env_with_default_password,
    ),
    SigningRule(
        "environment path without password",
        lambda i: i.env_path is not None,
        _reject_partial_env_key,
    ),
    SigningRule(
        "configured keystore",
        lambda i: i.configured_entry is not None,
        _key_from_config,
    ),
    SigningRule(
        "platform debug key",
        lambda i: i.profile.is_dev,
        _key_from_debug_provider,
    ),
    SigningRule(
        "no key",
        lambda i: True,
        _missing_key,
    ),
)


def resolve_signing_key(inputs: SigningInputs) -> SigningKey:
    """Pick the signing key for the active profile.

    Raises:
        MissingSigningKeyError: If the profile is not `dev` and no complete
            key is available, or only half of an environment key is set.
        ConfigurationError: If the `dev` profile falls through to the debug
            key and no DebugKeyProvider was supplied.
    """
    if inputs.env_path is None and inputs.env_password is not None:
        logger.warning(
            f"{keystore_password_env_var(inputs.profile)} is set without "
            f"{keystore_env_var(inputs.profile)} and will be ignored"
        )
    for rule in SIGNING_RULES:
        if rule.applies(inputs):
            logger.debug(f"Signing key for `{inputs.profile}` chosen by rule: {rule.name}")
            return rule.resolve(inputs)
    # SIGNING_RULES ends with a catch-all rule.
    raise AssertionError("unreachable")
