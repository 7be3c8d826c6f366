from __future__ import annotations

import pytest
from typer.testing import CliRunner

from phidoor.apps.cli.app import app
from phidoor.services.identity import DoorHttpClient

runner = CliRunner()


@pytest.fixture()
def home(tmp_path, monkeypatch):
    monkeypatch.setenv("PHIDOOR_STORE", "file")
    monkeypatch.delenv("PHIDOOR_HOME", raising=False)
    return tmp_path


@pytest.fixture()
def server(fake_server, monkeypatch):
    monkeypatch.setattr(DoorHttpClient, "register", lambda self, payload: fake_server.register(payload))
    monkeypatch.setattr(DoorHttpClient, "operate", lambda self, payload: fake_server.operate(payload))
    return fake_server


def _invoke(home, *args, input=None):
    return runner.invoke(app, ["--home", str(home), *args], input=input)


def test_config_set_server_and_show(home):
    result = _invoke(home, "config", "set-server", "https://door.example/")
    assert result.exit_code == 0, result.output
    assert "https://door.example" in (home / "phidoor.yaml").read_text(encoding="utf-8")

    result = _invoke(home, "config", "show")
    assert result.exit_code == 0
    assert "server_url: https://door.example" in result.output


def test_config_set_rejects_unknown_keys(home):
    result = _invoke(home, "config", "set", "colour", "blue")
    assert result.exit_code != 0
    result = _invoke(home, "config", "set", "totp_algorithm", "md5")
    assert result.exit_code != 0


def test_status_of_fresh_device(home):
    result = _invoke(home, "door", "status")
    assert result.exit_code == 0
    assert "state: unregistered" in result.output
    assert "IdentityState" not in result.output
    assert "key pair: missing" in result.output


def test_public_key_requires_registration(home):
    result = _invoke(home, "door", "public-key")
    assert result.exit_code == 1


def test_register_unlock_reset_flow(home, server):
    result = _invoke(home, "door", "register")
    assert result.exit_code == 0, result.output
    assert "registered device" in result.output

    result = _invoke(home, "door", "status")
    assert "state: registered" in result.output

    result = _invoke(home, "door", "public-key")
    assert result.exit_code == 0
    assert "-----BEGIN PUBLIC KEY-----" in result.output

    result = _invoke(home, "door", "unlock")
    assert result.exit_code == 0, result.output
    assert "unlock request accepted" in result.output
    assert len(server.operations) == 1

    result = _invoke(home, "door", "reset", input="y\n")
    assert result.exit_code == 0, result.output
    assert not any((home / "secure").iterdir())


def test_unlock_failure_exit_code(home, server):
    result = _invoke(home, "door", "unlock")
    assert result.exit_code == 1
    assert "key_not_found" in result.output


def test_reset_can_be_aborted(home, server):
    _invoke(home, "door", "register")
    result = _invoke(home, "door", "reset", input="n\n")
    assert result.exit_code != 0
    assert any((home / "secure").iterdir())
