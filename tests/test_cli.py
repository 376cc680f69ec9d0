"""Command-line behaviour, exercised through click's test runner."""

import sys

import pytest
from click.testing import CliRunner

from readygate import __version__, cli

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def test_help(runner):
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "Wait for one or more services to be available before executing a command." in result.output
    for option in ("--quiet", "--strict", "--timeout", "--service", "--env-file"):
        assert option in result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert result.output == f"readygate {__version__}\n"


def test_unknown_option_is_a_usage_error(runner):
    result = runner.invoke(cli, ["--no-such-argument"])
    assert result.exit_code == 2


@pytest.mark.parametrize("service", ["h:123456", "no colon", ":123"])
def test_bad_service_syntax_is_a_usage_error(runner, service):
    result = runner.invoke(cli, ["-s", service])
    assert result.exit_code == 2
    assert "does not match regular expression" in result.output


def test_negative_timeout_is_a_usage_error(runner):
    result = runner.invoke(cli, ["-t", "-1"])
    assert result.exit_code == 2


def test_bad_environment_is_a_usage_error(runner, monkeypatch):
    monkeypatch.setenv("READYGATE_TIMEOUT", "later")
    result = runner.invoke(cli, [])
    assert result.exit_code == 2
    assert "READYGATE_TIMEOUT" in result.output


def test_available_service(runner, listening_port):
    result = runner.invoke(cli, ["-s", f"127.0.0.1:{listening_port}"])
    assert result.exit_code == 0
    assert f"[*] Waiting 15 seconds for 127.0.0.1:{listening_port}..." in result.output
    assert f"[+] 127.0.0.1:{listening_port} is available after" in result.output


def test_quiet_suppresses_status(runner, listening_port):
    result = runner.invoke(cli, ["-q", "-s", f"127.0.0.1:{listening_port}"])
    assert result.exit_code == 0
    assert result.output == ""


@posix_only
@pytest.mark.parametrize("strict", [[], ["--strict"], ["-S"]])
def test_exit_code_is_forwarded(runner, listening_port, strict):
    args = strict + ["-s", f"127.0.0.1:{listening_port}", "--", "sh", "-c", "exit 123"]
    result = runner.invoke(cli, args)
    assert result.exit_code == 123


@posix_only
def test_command_without_separator(runner, listening_port):
    result = runner.invoke(cli, ["-s", f"127.0.0.1:{listening_port}", "sh", "-c", "exit 7"])
    assert result.exit_code == 7


def test_unavailable_service(runner, closed_port):
    result = runner.invoke(cli, ["-t1", "-s", f"127.0.0.1:{closed_port}"])
    assert result.exit_code == 1
    assert f"[-] 127.0.0.1:{closed_port} timed out after waiting for 1 seconds" in result.output


@posix_only
def test_unavailable_service_still_runs_command(runner, closed_port):
    result = runner.invoke(cli, ["-t1", "-s", f"127.0.0.1:{closed_port}", "--", "sh", "-c", "exit 123"])
    assert result.exit_code == 123


@posix_only
def test_strict_prevents_command(runner, closed_port, tmp_path):
    marker = tmp_path / "ran"
    result = runner.invoke(
        cli,
        ["--strict", "-t1", "-s", f"127.0.0.1:{closed_port}", "--", "sh", "-c", f"touch {marker}; exit 123"],
    )
    assert result.exit_code == 1
    assert not marker.exists()


def test_command_not_found(runner):
    result = runner.invoke(cli, ["--", "readygate-no-such-command"])
    assert result.exit_code == 127


def test_services_from_environment(runner, monkeypatch, listening_port, closed_port):
    monkeypatch.setenv("READYGATE_SERVICES", f"127.0.0.1:{closed_port}")
    monkeypatch.setenv("READYGATE_TIMEOUT", "1")
    result = runner.invoke(cli, ["-s", f"127.0.0.1:{listening_port}"])
    assert result.exit_code == 1
    assert f"127.0.0.1:{closed_port}" in result.output
    assert f"[+] 127.0.0.1:{listening_port} is available" in result.output


def test_env_file(runner, tmp_path, listening_port):
    env_file = tmp_path / "gate.env"
    env_file.write_text(f"READYGATE_SERVICES=127.0.0.1:{listening_port}\nREADYGATE_TIMEOUT=3\n")

    result = runner.invoke(cli, ["--env-file", str(env_file)])

    assert result.exit_code == 0
    assert f"[*] Waiting 3 seconds for 127.0.0.1:{listening_port}..." in result.output


def test_missing_env_file(runner, tmp_path):
    result = runner.invoke(cli, ["--env-file", str(tmp_path / "missing.env")])
    assert result.exit_code == 2
    assert "Environment file not found" in result.output
