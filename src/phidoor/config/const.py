# src/phidoor/config/const.py
from __future__ import annotations

# Compiled-in defaults; phidoor.yaml and PHIDOOR_* environment variables override them.
DEFAULT_BASE_DIR: str = "~/.phidoor"
CONFIG_FILENAME: str = "phidoor.yaml"

SERVER_URL: str = ""
REGISTER_PATH: str = "/register"
OPERATE_PATH: str = "/operate"
HTTP_TIMEOUT: float = 15.0

# application tag of the device key pair
KEY_TAG: str = "phidoor.keypair"
KEY_SIZE: int = 2048
SECURE_STORE: str = "keyring"
KEYRING_SERVICE_PREFIX: str = "phidoor"

# names of the two persisted values next to the key pair
DEVICE_ID_NAME: str = "deviceUUID"
SHARED_SECRET_NAME: str = "totpSecret"

TOTP_ALGORITHM: str = "sha1"
TOTP_DIGITS: int = 6
TOTP_PERIOD: int = 30
SALT_BYTES: int = 16

LOG_LEVEL: str = "INFO"
