from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from phidoor.services.errors import ConfigurationError
from phidoor.services.settings import Settings, config_path


def test_defaults_without_sources(tmp_path):
    settings = Settings.from_sources(base_dir=tmp_path, env={})
    assert settings.base_dir == tmp_path
    assert settings.server_url == ""
    assert settings.store == "keyring"
    assert settings.key_tag == "phidoor.keypair"
    assert (settings.totp_algorithm, settings.totp_digits, settings.totp_period) == ("sha1", 6, 30)


def test_yaml_then_environment(tmp_path):
    config_path(tmp_path).write_text(
        yaml.safe_dump({"server_url": "https://door.example", "store": "file", "totp_digits": 8, "unrelated": 1}),
        encoding="utf-8",
    )
    env = {"PHIDOOR_TOTP_ALGORITHM": "sha256", "PHIDOOR_TIMEOUT": "2.5", "PHIDOOR_VERIFY_TLS": "false"}
    settings = Settings.from_sources(base_dir=tmp_path, env=env)

    assert settings.server_url == "https://door.example"
    assert settings.store == "file"
    assert settings.totp_digits == 8
    assert settings.totp_algorithm == "sha256"
    assert settings.timeout == 2.5
    assert settings.verify_tls is False


def test_home_from_environment(tmp_path):
    settings = Settings.from_sources(env={"PHIDOOR_HOME": str(tmp_path / "home")})
    assert settings.base_dir == tmp_path / "home"


def test_ca_bundle_path_in_verify_tls(tmp_path):
    settings = Settings.from_sources(base_dir=tmp_path, env={"PHIDOOR_VERIFY_TLS": "/etc/ssl/door-ca.pem"})
    assert settings.verify_tls == "/etc/ssl/door-ca.pem"


@pytest.mark.parametrize(
    "overrides",
    [{"store": "enclave"}, {"totp_algorithm": "md5"}, {"totp_digits": "0"}, {"totp_period": "-30"}, {"key_size": "big"}],
)
def test_invalid_values_are_configuration_errors(tmp_path, overrides):
    with pytest.raises(ConfigurationError):
        Settings(base_dir=tmp_path).with_overrides(**overrides)


def test_unparseable_yaml(tmp_path):
    config_path(tmp_path).write_text("server_url: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        Settings.from_sources(base_dir=tmp_path, env={})


def test_save_roundtrip(tmp_path):
    saved = Settings(base_dir=tmp_path).with_overrides(server_url="https://door.example", store="file", totp_period="60")
    path = saved.save()

    assert path == tmp_path / "phidoor.yaml"
    assert "base_dir" not in yaml.safe_load(path.read_text(encoding="utf-8"))
    assert Settings.from_sources(base_dir=tmp_path, env={}) == saved


def test_with_overrides_expands_base_dir(tmp_path):
    settings = Settings(base_dir=tmp_path).with_overrides(base_dir="~/door")
    assert settings.base_dir == Path("~/door").expanduser()
