"""Tests for server management commands."""

import os
from unittest.mock import MagicMock, patch

import httpx
import pytest
import typer

import chatmem.cli.server_cmd as server_cmd
from chatmem.config.loader import CONFIG_ENV_VAR
from chatmem.config.schema import ChatMemConfig


@pytest.fixture(autouse=True)
def state_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(server_cmd, "PID_FILE", tmp_path / "server.pid")
    monkeypatch.setattr(server_cmd, "LOG_FILE", tmp_path / "server.log")
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    return tmp_path


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "chatmem.yaml"
    path.write_text("memory:\n  backend: memory\nserver:\n  port: 8123\n")
    return path


def test_running_pid_missing():
    assert server_cmd._running_pid() is None


def test_running_pid_live_process():
    server_cmd._record_pid(os.getpid())

    assert server_cmd._running_pid() == os.getpid()


def test_running_pid_garbage_removes_file():
    server_cmd.PID_FILE.write_text("not-a-pid")

    assert server_cmd._running_pid() is None
    assert not server_cmd.PID_FILE.exists()


def test_running_pid_dead_process_removes_file():
    server_cmd._record_pid(4242)

    with patch.object(server_cmd.os, "kill", side_effect=ProcessLookupError):
        assert server_cmd._running_pid() is None

    assert not server_cmd.PID_FILE.exists()


def test_describe_memory_store():
    config = ChatMemConfig()
    config.memory.backend = "memory"

    assert server_cmd.describe_store(config, MagicMock()) == "in-memory"


def test_describe_fallback_store():
    """Redis configured but an in-memory store in use means fallback is active."""
    assert "fallback" in server_cmd.describe_store(ChatMemConfig(), MagicMock())


def test_describe_redis_store(redis_store):
    assert "reachable" in server_cmd.describe_store(ChatMemConfig(), redis_store)
    assert "unreachable" not in server_cmd.describe_store(ChatMemConfig(), redis_store)


def test_describe_missing_store():
    assert "unreachable" in server_cmd.describe_store(ChatMemConfig(), None)


def test_stop_without_server(capsys):
    server_cmd.stop_command()

    assert "No running chatmem server" in capsys.readouterr().out


def test_stop_sends_sigterm():
    server_cmd._record_pid(4242)

    with patch.object(server_cmd, "_running_pid", return_value=4242), patch.object(
        server_cmd.os, "kill"
    ) as mock_kill:
        server_cmd.stop_command()

    mock_kill.assert_called_once_with(4242, server_cmd.signal.SIGTERM)
    assert not server_cmd.PID_FILE.exists()


def test_start_refuses_when_running(capsys):
    with patch.object(server_cmd, "_running_pid", return_value=4242):
        with pytest.raises(typer.Exit):
            server_cmd.start_command()

    assert "already running" in capsys.readouterr().out


def test_start_rejects_invalid_config(tmp_path, capsys):
    bad = tmp_path / "bad.yaml"
    bad.write_text("memory:\n  ttl_seconds: 0\n")

    with pytest.raises(typer.Exit):
        server_cmd.start_command(config_path=str(bad))

    assert "memory.ttl_seconds" in capsys.readouterr().out


def test_start_detached_passes_config_to_child(config_file):
    """The background server must load the same file the CLI was given."""
    proc = MagicMock(pid=31337)

    with patch.object(server_cmd.subprocess, "Popen", return_value=proc) as mock_popen:
        server_cmd.start_command(config_path=str(config_file), detach=True)

    cmd = mock_popen.call_args.args[0]
    assert "chatmem.server.asgi:app" in cmd
    assert cmd[cmd.index("--port") + 1] == "8123"
    assert mock_popen.call_args.kwargs["env"][CONFIG_ENV_VAR] == str(config_file)
    assert server_cmd.PID_FILE.read_text() == "31337"


def test_start_foreground_without_store(capsys):
    """With Redis down and no fallback there is nothing to serve from."""
    with patch.object(server_cmd, "_build_store", return_value=None), patch(
        "uvicorn.run"
    ) as mock_run:
        with pytest.raises(typer.Exit):
            server_cmd.start_command()

    mock_run.assert_not_called()
    assert "Cannot start without a conversation store" in capsys.readouterr().out


def test_start_foreground_serves_built_store(config_file, capsys):
    with patch("uvicorn.run") as mock_run:
        server_cmd.start_command(config_path=str(config_file))

    assert mock_run.call_args.kwargs["port"] == 8123
    assert "in-memory" in capsys.readouterr().out
    assert not server_cmd.PID_FILE.exists()


def test_status_running(config_file, capsys):
    response = MagicMock()
    response.json.return_value = {"status": "healthy", "store": "ok", "version": "0.1.0"}

    with patch.object(server_cmd.httpx, "get", return_value=response) as mock_get:
        server_cmd.status_command(config_path=str(config_file))

    assert mock_get.call_args.args[0] == "http://127.0.0.1:8123/health"
    out = capsys.readouterr().out
    assert "Server is running" in out
    assert "0.1.0" in out
    assert "(ok)" in out


def test_status_not_running_checks_store(config_file, capsys):
    with patch.object(server_cmd.httpx, "get", side_effect=httpx.ConnectError("refused")):
        with pytest.raises(typer.Exit) as exc_info:
            server_cmd.status_command(config_path=str(config_file))

    assert exc_info.value.exit_code == 1
    out = capsys.readouterr().out
    assert "not running" in out
    assert "Store: in-memory" in out
