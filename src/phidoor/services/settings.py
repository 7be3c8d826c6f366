"""Client settings resolved from defaults, ``phidoor.yaml`` and the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from phidoor.config import const
from phidoor.services.crypto.totp import SUPPORTED_ALGORITHMS
from phidoor.services.errors import ConfigurationError

__all__ = ["Settings", "config_path"]

_STORES = ("keyring", "file", "memory")
# fields written back by Settings.save(); base_dir is where the file lives
_PERSISTED = (
    "server_url",
    "store",
    "key_tag",
    "key_size",
    "totp_algorithm",
    "totp_digits",
    "totp_period",
    "timeout",
    "verify_tls",
    "log_level",
    "log_file",
)


def config_path(base_dir: Path | str) -> Path:
    return Path(base_dir).expanduser() / const.CONFIG_FILENAME


def _env_bool(value: str) -> bool | str:
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    # anything else is treated as a CA bundle path
    return value


@dataclass(frozen=True)
class Settings:
    base_dir: Path = Path(const.DEFAULT_BASE_DIR).expanduser()
    server_url: str = const.SERVER_URL
    store: str = const.SECURE_STORE
    key_tag: str = const.KEY_TAG
    key_size: int = const.KEY_SIZE
    totp_algorithm: str = const.TOTP_ALGORITHM
    totp_digits: int = const.TOTP_DIGITS
    totp_period: int = const.TOTP_PERIOD
    timeout: float = const.HTTP_TIMEOUT
    verify_tls: bool | str = True
    log_level: str = const.LOG_LEVEL
    log_file: str | None = None

    def __post_init__(self) -> None:
        if self.store not in _STORES:
            raise ConfigurationError(f"unknown secure store backend: {self.store}")
        if self.totp_algorithm.lower() not in SUPPORTED_ALGORITHMS:
            raise ConfigurationError(f"unsupported TOTP algorithm: {self.totp_algorithm}")
        if self.totp_digits <= 0 or self.totp_period <= 0:
            raise ConfigurationError("totp_digits and totp_period must be positive")
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")

    @classmethod
    def from_sources(cls, base_dir: Path | str | None = None, env: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if env is None else env
        root = Path(base_dir or env.get("PHIDOOR_HOME") or const.DEFAULT_BASE_DIR).expanduser()

        values: dict[str, Any] = {}
        path = config_path(root)
        if path.exists():
            try:
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"failed to parse {path}: {exc}") from exc
            if not isinstance(data, dict):
                raise ConfigurationError(f"{path} must contain a mapping")
            values.update({k: v for k, v in data.items() if k in _PERSISTED})

        for name in _PERSISTED:
            raw = env.get(f"PHIDOOR_{name.upper()}")
            if raw is not None:
                values[name] = raw
        return cls(base_dir=root, **_coerce(values))

    def with_overrides(self, **overrides: Any) -> "Settings":
        if "base_dir" in overrides and overrides["base_dir"] is not None:
            overrides["base_dir"] = Path(overrides["base_dir"]).expanduser()
        return replace(self, **_coerce(overrides))

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in _PERSISTED}

    def save(self) -> Path:
        path = config_path(self.base_dir)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True), encoding="utf-8")
        return path


def _coerce(values: Mapping[str, Any]) -> dict[str, Any]:
    known = {f.name for f in fields(Settings)}
    out: dict[str, Any] = {}
    for name, value in values.items():
        if name not in known:
            raise ConfigurationError(f"unknown setting: {name}")
        if value is None or not isinstance(value, str):
            out[name] = value
            continue
        try:
            if name in ("key_size", "totp_digits", "totp_period"):
                value = int(value)
            elif name == "timeout":
                value = float(value)
        except ValueError as exc:
            raise ConfigurationError(f"invalid value for {name}: {value!r}") from exc
        if name == "verify_tls":
            value = _env_bool(value)
        out[name] = value
    return out
