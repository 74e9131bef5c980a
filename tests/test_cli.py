import json
import sys

import pytest

import scripts.connect as cli


@pytest.fixture(autouse=True)
def restore_sys_argv():
    """Make sure every test sees a clean CLI invocation."""
    original = sys.argv[:]
    yield
    sys.argv = original


@pytest.fixture()
def cli_env(monkeypatch, tmp_path):
    """Production-like settings with a temporary audit dir and no secrets mount."""
    from styla_connect.config import settings

    monkeypatch.setattr(settings, "SECRETS_DIR", tmp_path / "secrets")
    for name in ("FLASK_SECRET_KEY", "CONNECTOR_DATABASE_URL", "CONNECTOR_ADMIN_TOKEN", "STYLA_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("STYLA_DEVELOPER_MODE", "false")
    monkeypatch.setenv("AUDIT_LOG_DIR", str(tmp_path / "audit"))


def test_connect_command_registers(cli_env, stub_styla, capsys):
    sys.argv = ["connect.py", "connect", "--email", "a@b.com", "--password", "pw"]

    cli.main()

    out = capsys.readouterr().out
    assert "Connection to Styla made successfully (client=acme)" in out
    assert len(stub_styla.calls) == 1


def test_connect_command_reads_password_from_env(cli_env, stub_styla, monkeypatch):
    monkeypatch.setenv("STYLA_PASSWORD", "from-env")
    sys.argv = ["connect.py", "connect", "--email", "a@b.com"]

    cli.main()

    assert stub_styla.calls[0]["data"]["styla_password"] == "from-env"


def test_connect_command_requires_password(cli_env, stub_styla):
    sys.argv = ["connect.py", "connect", "--email", "a@b.com"]

    with pytest.raises(SystemExit):
        cli.main()
    assert stub_styla.calls == []


def test_connect_command_exits_on_registration_error(cli_env, stub_styla, capsys):
    stub_styla.response = stub_styla.Response({"error": "bad credentials"}, 401)
    sys.argv = ["connect.py", "connect", "--email", "a@b.com", "--password", "pw"]

    with pytest.raises(SystemExit) as excinfo:
        cli.main()

    assert excinfo.value.code == 1
    assert "bad credentials" in capsys.readouterr().err


def test_no_create_user_flag(cli_env, stub_styla, capsys):
    sys.argv = ["connect.py", "connect", "--email", "a@b.com", "--password", "pw", "--no-create-user"]

    with pytest.raises(SystemExit):
        cli.main()

    assert "create the user manually" in capsys.readouterr().err
    assert stub_styla.calls == []


def test_status_command_prints_json(cli_env, capsys):
    sys.argv = ["connect.py", "status"]

    cli.main()

    out = capsys.readouterr().out
    status = json.loads(out[out.index("{"):])
    assert status["connected"] is False
    assert status["identity"] is None


def test_verify_audit_command(cli_env, stub_styla, capsys):
    sys.argv = ["connect.py", "connect", "--email", "a@b.com", "--password", "pw"]
    cli.main()
    capsys.readouterr()

    sys.argv = ["connect.py", "verify-audit"]
    with pytest.raises(SystemExit) as excinfo:
        cli.main()

    assert excinfo.value.code == 0
    assert "7/7 events with valid signatures" in capsys.readouterr().out


def test_no_command_prints_help(cli_env, capsys):
    sys.argv = ["connect.py"]

    cli.main()

    assert "usage" in capsys.readouterr().out


def test_invalid_settings_exit_with_error(cli_env, monkeypatch, capsys):
    monkeypatch.setenv("STYLA_REQUEST_TIMEOUT", "soon")
    sys.argv = ["connect.py", "status"]

    with pytest.raises(SystemExit) as excinfo:
        cli.main()

    assert excinfo.value.code == 1
    assert "[connect] Error: STYLA_REQUEST_TIMEOUT must be an integer" in capsys.readouterr().err
