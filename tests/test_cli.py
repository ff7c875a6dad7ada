from __future__ import annotations

import json
import os

import pytest

import app as cli


def _main(tmp_path, *argv):
    return cli.main(["--root", str(tmp_path), *argv])


def test_login_status_logout_roundtrip(tmp_path, capsys):
    assert _main(tmp_path, "login", "admin@example.com", "--password", "x") == 0
    out = capsys.readouterr().out
    assert "Signed in as admin (admin). Next: /admin" in out
    assert os.path.exists(tmp_path / "runtime" / "credentials" / "user.json")

    assert _main(tmp_path, "status") == 0
    status = json.loads(capsys.readouterr().out)
    assert status["session"]["session"]["role"] == "admin"
    assert status["navigation"]["landing_path"] == "/admin"

    assert _main(tmp_path, "logout") == 0
    assert "Next: /login" in capsys.readouterr().out
    assert not os.path.exists(tmp_path / "runtime" / "credentials" / "user.json")


def test_register_then_ask(tmp_path, capsys):
    assert _main(tmp_path, "register", "sarah@example.com", "--password", "x", "--name", "Sarah") == 0
    assert "Signed in as Sarah (standard-user)" in capsys.readouterr().out
    assert _main(tmp_path, "ask", "opening", "a", "restaurant") == 0
    assert "restaurant or food business" in capsys.readouterr().out


def test_ask_requires_session(tmp_path, capsys):
    assert _main(tmp_path, "ask", "anything") == 1
    assert "Sign in required." in capsys.readouterr().err


def test_empty_password_fails(tmp_path, capsys):
    assert _main(tmp_path, "login", "sarah@example.com", "--password", "") == 1
    assert "Authentication failed" in capsys.readouterr().err


def test_invalid_config_fails_startup(tmp_path, capsys):
    cfg_dir = tmp_path / "config"
    cfg_dir.mkdir()
    (cfg_dir / "auth.json").write_text(json.dumps({"backend": "remote"}), encoding="utf-8")
    assert _main(tmp_path, "status") == 2
    assert "Startup failed" in capsys.readouterr().err


def test_subcommand_required(tmp_path):
    with pytest.raises(SystemExit):
        cli.main(["--root", str(tmp_path)])
