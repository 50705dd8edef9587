import io
import re
import subprocess

import pytest
from dotenv import dotenv_values
from rich.console import Console

import mwcontainers.core as core_module
from mwcontainers.core import MediaWikiContainers
from mwcontainers.errors import CommandError
from mwcontainers.services.site_config import SiteConfigService


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def info(self, *_args, **_kwargs):
        return None


class FakePopen:
    lines = "Done in 17.3s\n"

    def __init__(self, cmd, **kwargs):
        self.cmd = cmd
        self.stdout = io.StringIO(self.lines)
        self.returncode = None

    def poll(self):
        return self.returncode

    def terminate(self):
        self.returncode = -15

    def kill(self):
        self.returncode = -9

    def wait(self, timeout=None):
        return self.returncode


@pytest.fixture
def recorded_consoles(monkeypatch):
    out = Console(record=True, width=400, file=io.StringIO())
    err = Console(record=True, width=400, file=io.StringIO())
    monkeypatch.setattr(core_module, "console", out)
    monkeypatch.setattr(core_module, "error_console", err)
    return out, err


def build_deployer(tmp_path, environ=None):
    config = SiteConfigService(logger=DummyLogger()).load(
        data_dir=str(tmp_path / "data"),
        repo_dir=str(tmp_path / "repo"),
        environ=environ if environ is not None else {},
    )
    return MediaWikiContainers(config=config, sentinel_timeout=5)


def install_fakes(monkeypatch, deployer, tmp_path, history):
    """Routes every external command of an install through in-memory fakes."""
    repo = tmp_path / "repo"
    (repo / ".git").mkdir(parents=True)
    (repo / "mediawiki-containers").write_text("do_install() { :; }\n", encoding="utf-8")

    calls = []

    def fake_run(cmd, check=True, capture_output=False, timeout=None, env=None, cwd=None):
        calls.append({"cmd": cmd, "env": env})
        if cmd[:1] == ["journalctl"]:
            return subprocess.CompletedProcess(cmd, 0, stdout=history, stderr="")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    monkeypatch.setattr(deployer.command_runner, "run", fake_run)
    monkeypatch.setattr(deployer.repository_service, "which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr(core_module.subprocess, "Popen", FakePopen)
    return calls


def test_stop_does_not_start(tmp_path, monkeypatch):
    deployer = build_deployer(tmp_path)
    events = []
    monkeypatch.setattr(deployer, "stop", lambda: events.append("stop"))
    monkeypatch.setattr(deployer, "start", lambda: events.append("start"))

    assert deployer.run("stop") == 0
    assert events == ["stop"]


def test_restart_stops_then_starts(tmp_path, monkeypatch):
    deployer = build_deployer(tmp_path)
    events = []
    monkeypatch.setattr(deployer.lifecycle_service, "stop", lambda: events.append("stop"))
    monkeypatch.setattr(deployer.lifecycle_service, "start", lambda config: events.append("start"))

    assert deployer.run("restart") == 0
    assert events == ["stop", "start"]


def test_unknown_command_fails_without_container_operations(tmp_path, monkeypatch, recorded_consoles):
    deployer = build_deployer(tmp_path)

    def fail_run(*_args, **_kwargs):
        raise AssertionError("no command should run")

    monkeypatch.setattr(deployer.command_runner, "run", fail_run)

    assert deployer.run("deploy") == 1


def test_stop_twice_is_clean(tmp_path, monkeypatch):
    deployer = build_deployer(tmp_path)

    def absent(cmd, check=True, capture_output=False, **kwargs):
        return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="No such container")

    monkeypatch.setattr(deployer.command_runner, "run", absent)

    assert deployer.run("stop") == 0
    assert deployer.run("stop") == 0


def test_start_aborts_when_dns_container_fails(tmp_path, monkeypatch, recorded_consoles):
    deployer = build_deployer(tmp_path)
    calls = []

    def fake_run(cmd, check=True, capture_output=False, **kwargs):
        calls.append(cmd)
        raise CommandError("Command failed (125): docker run mediawiki-dnsmasq", 125)

    monkeypatch.setattr(deployer.command_runner, "run", fake_run)

    assert deployer.run("start") == 1
    assert len(calls) == 1
    assert "mediawiki-dnsmasq" in calls[0]
    _, err = recorded_consoles
    assert "docker run mediawiki-dnsmasq" in err.export_text()


def test_declined_install_runs_nothing(tmp_path, monkeypatch, recorded_consoles):
    deployer = build_deployer(tmp_path)
    monkeypatch.setattr(core_module.click, "confirm", lambda *args, **kwargs: False)

    def fail_run(*_args, **_kwargs):
        raise AssertionError("no command should run")

    monkeypatch.setattr(deployer.command_runner, "run", fail_run)

    assert deployer.run("install") == 1
    assert not (tmp_path / "data" / "config").exists()


def test_interrupted_prompt_aborts_cleanly(tmp_path, monkeypatch, recorded_consoles):
    deployer = build_deployer(tmp_path)

    def interrupted_confirm(*_args, **_kwargs):
        raise core_module.click.exceptions.Abort()

    monkeypatch.setattr(core_module.click, "confirm", interrupted_confirm)

    def fail_run(*_args, **_kwargs):
        raise AssertionError("no command should run")

    monkeypatch.setattr(deployer.command_runner, "run", fail_run)

    assert deployer.run("install") == 1

    _, err = recorded_consoles
    err_text = err.export_text()
    assert "Unexpected error" not in err_text
    assert "Installation aborted by operator." in err_text
    assert not (tmp_path / "data" / "config").exists()


def test_install_exports_and_reports_generated_password(tmp_path, monkeypatch, recorded_consoles):
    deployer = build_deployer(tmp_path)
    password = deployer.config.admin_password
    calls = install_fakes(
        monkeypatch,
        deployer,
        tmp_path,
        history="Done in 17.3s\nAH00558: apache2: Could not reliably determine the server's name\n",
    )

    assert deployer.run("install", assume_yes=True) == 0

    assert re.fullmatch(r"[A-Za-z0-9]{8}", password)
    assert dotenv_values(deployer.config.config_file)["MEDIAWIKI_ADMIN_PASS"] == password

    installer_call = next(call for call in calls if call["cmd"][0] == "bash")
    assert installer_call["env"]["MEDIAWIKI_ADMIN_PASS"] == password

    reloaded = SiteConfigService(logger=DummyLogger()).load(data_dir=deployer.config.data_dir, environ={})
    app_spec = deployer.lifecycle_service.dependent_specs(reloaded)[1]
    assert app_spec.name == "mediawiki"
    assert app_spec.env["MEDIAWIKI_ADMIN_PASS"] == password

    commands = [call["cmd"] for call in calls]
    assert ["docker", "pull", "mariadb"] in commands
    assert ["systemctl", "restart", "mediawiki-containers"] in commands
    assert commands.index(["docker", "pull", "wikimedia/mediawiki"]) < commands.index(
        ["systemctl", "restart", "mediawiki-containers"]
    )

    out, _ = recorded_consoles
    text = out.export_text()
    assert "http://localhost/" in text
    assert f"Admin password: {password}" in text


def test_install_reports_missing_apache_marker_without_failing(tmp_path, monkeypatch, recorded_consoles):
    deployer = build_deployer(tmp_path)
    install_fakes(
        monkeypatch,
        deployer,
        tmp_path,
        history="Done in 17.3s\nPHP Fatal error: Allowed memory size exhausted\n",
    )

    assert deployer.run("install", assume_yes=True) == 0

    out, err = recorded_consoles
    err_text = err.export_text()
    assert "PHP Fatal error: Allowed memory size exhausted" in err_text
    assert "AH00558" in err_text
    assert "Admin password" not in out.export_text()


def test_install_fails_when_journal_closes_early(tmp_path, monkeypatch, recorded_consoles):
    deployer = build_deployer(tmp_path)
    install_fakes(monkeypatch, deployer, tmp_path, history="")
    monkeypatch.setattr(FakePopen, "lines", "unit stopped\n")

    assert deployer.run("install", assume_yes=True) == 1

    _, err = recorded_consoles
    assert "ended before" in err.export_text()


def test_config_password_is_used_for_install(tmp_path, monkeypatch, recorded_consoles):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "config").write_text("MEDIAWIKI_ADMIN_PASS=Keep1234\n", encoding="utf-8")
    deployer = build_deployer(tmp_path)
    install_fakes(
        monkeypatch,
        deployer,
        tmp_path,
        history="AH00558: apache2 started\n",
    )

    assert deployer.run("install", assume_yes=True) == 0

    assert deployer.config.admin_password == "Keep1234"
    assert dotenv_values(str(data_dir / "config"))["MEDIAWIKI_ADMIN_PASS"] == "Keep1234"
