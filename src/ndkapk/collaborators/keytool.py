"""
The SDK debug keystore, created with the JDK `keytool` on first use.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

from ..models.runtime import DEFAULT_DEV_KEYSTORE_PASSWORD, SigningKey
from ..system import CommandSpec, run_captured
from .base import DebugKeyProvider

logger = logging.getLogger(__name__)

DEBUG_KEY_ALIAS = "androiddebugkey"
DEBUG_KEY_DNAME = "CN=Android Debug,O=Android,C=US"


def android_user_home(env: Optional[Dict[str, str]] = None) -> Path:
    """Directory holding `debug.keystore`, following the SDK's lookup order."""
    env = os.environ if env is None else env
    if env.get("ANDROID_USER_HOME"):
        return Path(env["ANDROID_USER_HOME"])
    if env.get("ANDROID_SDK_HOME"):
        return Path(env["ANDROID_SDK_HOME"]) / ".android"
    return Path.home() / ".android"


class KeytoolDebugKeyProvider(DebugKeyProvider):
    def __init__(self, keystore_path: Optional[Path] = None, keytool: str = "keytool"):
        self.keystore_path = keystore_path or android_user_home() / "debug.keystore"
        self.keytool = keytool

    def default_key(self) -> SigningKey:
        if not self.keystore_path.is_file():
            logger.info(f"Creating debug keystore at `{self.keystore_path}`")
            self.keystore_path.parent.mkdir(parents=True, exist_ok=True)
            run_captured(CommandSpec(args=[
                self.keytool,
                "-genkey", "-v",
                "-keystore", str(self.keystore_path),
                "-storepass", DEFAULT_DEV_KEYSTORE_PASSWORD,
                "-alias", DEBUG_KEY_ALIAS,
                "-keypass", DEFAULT_DEV_KEYSTORE_PASSWORD,
                "-dname", DEBUG_KEY_DNAME,
                "-keyalg", "RSA",
                "-keysize", "2048",
                "-validity", "10000",
            ]))
        return SigningKey(path=self.keystore_path, password=DEFAULT_DEV_KEYSTORE_PASSWORD)
