"""Tests for container engine selection."""
import subprocess

import pytest

from jail.core.config import JailConfig, Settings
from jail.core.errors import ConfigurationError, RuntimeUnavailableError
from jail.services import runtime as runtime_module
from jail.services.runtime import Runtime, detect, install_instructions, parse_runtime


def make_config(tmp_path, environ=None, runtime=None, mock=False):
    return JailConfig(
        data_dir=tmp_path / "data",
        config_dir=tmp_path / "config",
        environ=environ or {},
        settings=Settings(runtime=runtime),
        mock=mock,
    )


@pytest.fixture
def available(monkeypatch):
    """Control which runtimes report themselves available."""
    engines = set()
    monkeypatch.setattr(Runtime, "is_available", lambda self: self in engines)
    return engines


def test_runtime_commands():
    assert Runtime.DOCKER.command == "docker"
    assert Runtime.PODMAN.command == "podman"
    assert str(Runtime.PODMAN) == "podman"


def test_parse_runtime_is_case_insensitive():
    assert parse_runtime("Docker", "JAIL_RUNTIME") is Runtime.DOCKER


def test_parse_runtime_rejects_unknown_engine():
    with pytest.raises(ConfigurationError, match="Invalid JAIL_RUNTIME value: lxc"):
        parse_runtime("lxc", "JAIL_RUNTIME")


def test_autodetect_prefers_podman(tmp_path, available):
    available.update({Runtime.PODMAN, Runtime.DOCKER})
    assert detect(make_config(tmp_path)) is Runtime.PODMAN


def test_autodetect_falls_back_to_docker(tmp_path, available):
    available.add(Runtime.DOCKER)
    assert detect(make_config(tmp_path)) is Runtime.DOCKER


def test_autodetect_without_engines_gives_install_guidance(tmp_path, available):
    with pytest.raises(RuntimeUnavailableError) as exc_info:
        detect(make_config(tmp_path), host_os="Linux")

    assert "No container runtime found" in str(exc_info.value)
    assert "sudo apt install podman" in str(exc_info.value)


def test_env_override_wins_over_config_file(tmp_path, available):
    available.update({Runtime.PODMAN, Runtime.DOCKER})
    config = make_config(tmp_path, environ={"JAIL_RUNTIME": "docker"}, runtime="podman")

    assert detect(config) is Runtime.DOCKER


def test_unavailable_env_override_is_fatal(tmp_path, available):
    available.add(Runtime.PODMAN)
    config = make_config(tmp_path, environ={"JAIL_RUNTIME": "docker"})

    with pytest.raises(RuntimeUnavailableError, match="'docker'"):
        detect(config)


def test_unavailable_config_override_is_fatal(tmp_path, available):
    available.add(Runtime.DOCKER)
    config = make_config(tmp_path, runtime="podman")

    with pytest.raises(RuntimeUnavailableError, match="runtime setting"):
        detect(config)


def test_invalid_env_override_is_configuration_error(tmp_path, available):
    available.add(Runtime.PODMAN)
    with pytest.raises(ConfigurationError):
        detect(make_config(tmp_path, environ={"JAIL_RUNTIME": "rkt"}))


def test_mock_mode_skips_probing(tmp_path, monkeypatch):
    def fail(self):
        raise AssertionError("should not query the engine in mock mode")

    monkeypatch.setattr(Runtime, "is_available", fail)
    assert detect(make_config(tmp_path, mock=True)) is Runtime.PODMAN
    assert detect(make_config(tmp_path, runtime="docker", mock=True)) is Runtime.DOCKER


def test_is_available_requires_binary(monkeypatch):
    monkeypatch.setattr(runtime_module.shutil, "which", lambda cmd: None)
    assert Runtime.PODMAN.is_available() is False


def test_is_available_runs_health_check(monkeypatch):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 1)

    monkeypatch.setattr(runtime_module.shutil, "which", lambda cmd: f"/usr/bin/{cmd}")
    monkeypatch.setattr(runtime_module.subprocess, "run", fake_run)

    assert Runtime.DOCKER.is_available() is False
    assert calls == [["docker", "info"]]


def test_ssh_agent_mount_uses_socket_on_linux(tmp_path):
    config = make_config(tmp_path, environ={"SSH_AUTH_SOCK": "/tmp/agent.sock"})

    args = Runtime.PODMAN.ssh_agent_mount(config, host_os="Linux")

    assert args == [
        "-v", "/tmp/agent.sock:/run/ssh.sock:ro",
        "-e", "SSH_AUTH_SOCK=/run/ssh.sock",
    ]


def test_ssh_agent_mount_degrades_silently(tmp_path):
    config = make_config(tmp_path)

    assert Runtime.DOCKER.ssh_agent_mount(config, host_os="Linux") == []
    assert Runtime.PODMAN.ssh_agent_mount(config, host_os="Darwin") == []


def test_ssh_agent_mount_docker_desktop_on_macos(tmp_path):
    args = Runtime.DOCKER.ssh_agent_mount(make_config(tmp_path), host_os="Darwin")

    assert "/run/host-services/ssh-auth.sock:/run/ssh.sock:ro" in args


def test_install_instructions_per_platform():
    assert "brew install podman" in install_instructions("Darwin")
    assert "pacman" in install_instructions("Linux")
    assert "Docker or Podman" in install_instructions("Windows")
