"""Shared test fixtures for jail tests."""
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from jail.core.config import JailConfig, Settings
from jail.core.errors import ExternalCommandError
from jail.core.lifecycle import JailLifecycle
from jail.services.image import IMAGE_NAME
from jail.services.runtime import Runtime


class FakeEngine:
    """In-memory stand-in for ContainerEngine that tracks container state.

    Set names in ``fail`` (e.g. {"commit"}) to make those operations raise.
    """

    def __init__(self, runtime: Runtime = Runtime.PODMAN):
        self.runtime = runtime
        self.mock = False
        self.containers: Dict[str, Dict] = {}
        self.images = {IMAGE_NAME}
        self.calls: List[tuple] = []
        self.fail = set()
        self.shell_exit = 0
        self._counter = 0

    def _record(self, op: str, *args) -> None:
        self.calls.append((op, *args))
        if op in self.fail:
            raise ExternalCommandError(
                f"Failed to {op}", [self.runtime.command, op], returncode=1, stderr=f"{op} boom"
            )

    def _lookup(self, ref: str) -> Optional[str]:
        for name, container in self.containers.items():
            if ref in (name, container["id"]):
                return name
        return None

    def ops(self) -> List[str]:
        return [call[0] for call in self.calls]

    def image_exists(self, image: str) -> bool:
        self._record("image_inspect", image)
        return image in self.images

    def build_image(self, image: str, dockerfile: str) -> None:
        self._record("build", image)
        self.images.add(image)

    def commit(self, container_id: str, image: str) -> None:
        self._record("commit", container_id, image)
        self.images.add(image)

    def remove_image(self, image: str) -> None:
        self._record("rmi", image)
        self.images.discard(image)

    def find_container(self, name: str, running_only: bool = False) -> Optional[str]:
        container = self.containers.get(name)
        if container is None or (running_only and not container["running"]):
            return None
        return container["id"]

    def run_container(self, args: List[str]) -> str:
        self._record("run", list(args))
        name = args[args.index("--name") + 1]
        if name in self.containers:
            raise ExternalCommandError("Failed to create container", stderr="name in use")
        self._counter += 1
        container_id = f"c{self._counter:03d}"
        self.containers[name] = {
            "id": container_id,
            "running": True,
            "args": list(args),
            "image": args[-2],
        }
        return container_id

    def start(self, container: str) -> None:
        self._record("start", container)
        name = self._lookup(container)
        if name is None:
            raise ExternalCommandError("Failed to start container", stderr="no such container")
        self.containers[name]["running"] = True

    def stop(self, container: str) -> None:
        self._record("stop", container)
        name = self._lookup(container)
        if name is None:
            raise ExternalCommandError("Failed to stop container", stderr="no such container")
        self.containers[name]["running"] = False

    def remove(self, container: str) -> None:
        self._record("rm", container)
        name = self._lookup(container)
        if name is None:
            raise ExternalCommandError("Failed to remove container", stderr="no such container")
        del self.containers[name]

    def exec_shell(self, container_id: str, shell: str = "/bin/bash") -> int:
        self._record("exec", container_id)
        return self.shell_exit


class RecordingMaterializer:
    """Workspace materializer that writes a marker file instead of cloning."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.fail = False

    def materialize(self, source: str, workspace: Path) -> None:
        self.calls.append((source, workspace))
        (workspace / "README.md").write_text(f"cloned from {source}\n")
        if self.fail:
            raise ExternalCommandError("Failed to clone repository", ["git", "clone", source], returncode=128)


class ScriptedChooser:
    """Chooser stub that returns a fixed index and records what it was shown."""

    def __init__(self, index: int = 0):
        self.index = index
        self.shown: List[List[str]] = []

    def __call__(self, prompt: str, items) -> int:
        self.shown.append(list(items))
        return self.index


@pytest.fixture
def jail_config(tmp_path):
    """Isolated configuration rooted in a temporary directory."""
    return JailConfig(
        data_dir=tmp_path / "data",
        config_dir=tmp_path / "config",
        environ={},
        settings=Settings(),
    )


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def chooser():
    return ScriptedChooser()


@pytest.fixture
def materializer():
    return RecordingMaterializer()


@pytest.fixture
def lifecycle(jail_config, fake_engine, chooser, materializer, monkeypatch):
    """JailLifecycle wired to the fake engine on a Linux host with podman detected."""
    monkeypatch.setattr(
        "jail.core.lifecycle.detect", lambda config, host_os=None: Runtime.PODMAN
    )
    return JailLifecycle(
        jail_config,
        chooser=chooser,
        engine_factory=lambda runtime: fake_engine,
        materializer=materializer,
        host_os="Linux",
    )
