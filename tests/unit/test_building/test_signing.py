"""
Unit tests for signing key resolution.

Covers every row of the environment / configuration / profile decision table.
"""

import logging
from pathlib import Path

import pytest

from ndkapk.building.signing import (
    SIGNING_RULES,
    SigningInputs,
    keystore_env_var,
    keystore_password_env_var,
    resolve_signing_key,
)
from ndkapk.models.config import SigningEntry
from ndkapk.models.runtime import BuildProfile, SigningKey
from ndkapk.validation import ConfigurationError, MissingSigningKeyError, ValidationError

DEV = BuildProfile("dev")
RELEASE = BuildProfile("release")
MANIFEST_DIR = Path("/work/demo")


def make_inputs(profile, environ=None, configured=None, debug_keys=None):
    return SigningInputs(
        profile=profile,
        environ=environ or {},
        configured=configured or {},
        manifest_dir=MANIFEST_DIR,
        debug_keys=debug_keys,
    )


@pytest.mark.unit
class TestEnvironmentNames:
    def test_profile_name_is_uppercased(self):
        assert keystore_env_var(RELEASE) == "CARGO_APK_RELEASE_KEYSTORE"
        assert keystore_password_env_var(BuildProfile("my-profile")) == "CARGO_APK_MY_PROFILE_KEYSTORE_PASSWORD"


@pytest.mark.unit
class TestSigningPolicy:
    """Test cases for resolve_signing_key."""

    @pytest.mark.parametrize("profile", [DEV, RELEASE])
    def test_env_path_and_password(self, profile, fake_debug_keys):
        environ = {
            keystore_env_var(profile): "/keys/ci.keystore",
            keystore_password_env_var(profile): "s3cret",
        }
        configured = {profile.name: SigningEntry(Path("cfg.keystore"), "cfg")}

        key = resolve_signing_key(make_inputs(profile, environ, configured, fake_debug_keys))

        assert key == SigningKey(Path("/keys/ci.keystore"), "s3cret")
        assert fake_debug_keys.requests == 0

    def test_env_path_without_password_on_dev_uses_default(self, caplog):
        environ = {keystore_env_var(DEV): "/keys/dev.keystore"}

        with caplog.at_level(logging.WARNING):
            key = resolve_signing_key(make_inputs(DEV, environ))

        assert key == SigningKey(Path("/keys/dev.keystore"), "android")
        assert "CARGO_APK_DEV_KEYSTORE_PASSWORD not specified" in caplog.text

    def test_env_path_without_password_on_release_fails(self):
        environ = {keystore_env_var(RELEASE): "/keys/release.keystore"}
        configured = {"release": SigningEntry(Path("cfg.keystore"), "cfg")}

        with pytest.raises(MissingSigningKeyError) as exc_info:
            resolve_signing_key(make_inputs(RELEASE, environ, configured))

        assert exc_info.value.profile == "release"

    @pytest.mark.parametrize("profile", [DEV, RELEASE])
    def test_configured_key_relative_to_manifest(self, profile, fake_debug_keys):
        configured = {profile.name: SigningEntry(Path("keys/app.keystore"), "pw")}

        key = resolve_signing_key(make_inputs(profile, configured=configured, debug_keys=fake_debug_keys))

        assert key == SigningKey(MANIFEST_DIR / "keys/app.keystore", "pw")
        assert fake_debug_keys.requests == 0

    def test_configured_key_for_other_profile_is_ignored(self):
        configured = {"dev": SigningEntry(Path("dev.keystore"), "pw")}

        with pytest.raises(MissingSigningKeyError):
            resolve_signing_key(make_inputs(RELEASE, configured=configured))

    def test_dev_falls_back_to_debug_key(self, fake_debug_keys):
        key = resolve_signing_key(make_inputs(DEV, debug_keys=fake_debug_keys))

        assert key.path == fake_debug_keys.path
        assert key.password == "android"
        assert fake_debug_keys.requests == 1

    def test_dev_without_debug_key_provider_is_a_wiring_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_signing_key(make_inputs(DEV))

        assert not isinstance(exc_info.value, MissingSigningKeyError)
        assert "debug key provider" in str(exc_info.value)

    def test_release_without_anything_fails(self, fake_debug_keys):
        with pytest.raises(MissingSigningKeyError) as exc_info:
            resolve_signing_key(make_inputs(RELEASE, debug_keys=fake_debug_keys))

        assert "CARGO_APK_RELEASE_KEYSTORE" in str(exc_info.value)
        assert fake_debug_keys.requests == 0

    def test_custom_profile_is_not_dev(self, fake_debug_keys):
        with pytest.raises(MissingSigningKeyError):
            resolve_signing_key(make_inputs(BuildProfile("staging"), debug_keys=fake_debug_keys))

    def test_password_without_path_is_ignored(self, caplog, fake_debug_keys):
        environ = {keystore_password_env_var(DEV): "orphan"}

        with caplog.at_level(logging.WARNING):
            key = resolve_signing_key(make_inputs(DEV, environ, debug_keys=fake_debug_keys))

        assert key.path == fake_debug_keys.path
        assert "will be ignored" in caplog.text

    def test_empty_password_is_accepted(self):
        environ = {keystore_env_var(RELEASE): "/k", keystore_password_env_var(RELEASE): ""}
        assert resolve_signing_key(make_inputs(RELEASE, environ)).password == ""

    def test_last_rule_matches_everything(self):
        assert SIGNING_RULES[-1].applies(make_inputs(RELEASE))


@pytest.mark.unit
class TestSigningKey:
    def test_path_required(self):
        with pytest.raises(ValidationError):
            SigningKey(path=None, password="x")

    def test_password_required(self):
        with pytest.raises(ValidationError):
            SigningKey(path=Path("/k"), password=None)
