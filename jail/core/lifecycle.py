"""High-level jail operations: clone, create, enter, remove, code, list, status.

Each public method is one user command. Runtime resolution happens once per
call; an existing jail always uses the engine recorded at its creation.
"""
from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from rich.console import Console

from jail.core import naming
from jail.core.best_effort import best_effort
from jail.core.config import JailConfig
from jail.core.errors import (
    ConfigurationError,
    ExternalCommandError,
    JailError,
    JailExistsError,
    JailNotFoundError,
    PersistError,
)
from jail.core.logger import get_logger
from jail.core.metadata import MetadataStore
from jail.core.reconciler import ContainerReconciler
from jail.core.registry import Chooser, JailRegistry
from jail.models import EMPTY_SOURCE, MAX_PORT, ContainerState, JailListing, JailRecord
from jail.services import editor
from jail.services.engine import ContainerEngine
from jail.services.image import IMAGE_NAME, ensure_image
from jail.services.runtime import (
    PREFERRED_RUNTIMES,
    Runtime,
    detect,
    host_platform,
    parse_runtime,
)
from jail.services.workspace import WorkspaceMaterializer

logger = get_logger(__name__)
console = Console()


def validate_ports(ports: Iterable[int]) -> List[int]:
    """Reject ports outside the 16-bit range."""
    ports = list(ports)
    for port in ports:
        if not 1 <= port <= MAX_PORT:
            raise ConfigurationError(f"Invalid port {port}: must be between 1 and {MAX_PORT}")
    return ports


def _no_interactive_chooser(prompt: str, items: Sequence[str]) -> int:
    raise ConfigurationError(
        f"Multiple jails match ({', '.join(items)}); pass the full jail name"
    )


@dataclass
class EngineStatus:
    """Availability of one container engine on this host."""

    runtime: Runtime
    installed: bool
    available: bool

    @property
    def label(self) -> str:
        if self.available:
            return "available"
        if self.installed:
            return "installed but not running"
        return "not installed"


@dataclass
class StatusReport:
    """Read-only snapshot of engine and base image health."""

    engines: List[EngineStatus] = field(default_factory=list)
    active: Optional[Runtime] = None
    error: Optional[str] = None
    image: str = IMAGE_NAME
    image_present: Optional[bool] = None
    host_os: str = ""

    def start_hint(self, engine: EngineStatus) -> Optional[str]:
        """Command that brings an installed but stopped engine up, if one applies."""
        if engine.installed and not engine.available:
            # Podman on macOS runs inside a VM that must be started separately
            if engine.runtime is Runtime.PODMAN and self.host_os == "Darwin":
                return "podman machine start"
        return None


class JailLifecycle:
    """Orchestrates metadata, engine selection and reconciliation per command."""

    def __init__(
        self,
        config: JailConfig,
        chooser: Optional[Chooser] = None,
        engine_factory: Optional[Callable[[Runtime], ContainerEngine]] = None,
        materializer: Optional[WorkspaceMaterializer] = None,
        host_os: Optional[str] = None,
    ):
        """Initialize lifecycle operations.

        Args:
            config: Invocation context
            chooser: Interactive selector used when a filter is ambiguous
            engine_factory: Builds the engine wrapper for a runtime
            materializer: Copies/clones sources into workspaces
            host_os: platform.system() override
        """
        self.config = config
        self.store = MetadataStore(config.jails_dir)
        self.registry = JailRegistry(self.store)
        self.chooser = chooser or _no_interactive_chooser
        self.engine_factory = engine_factory or (
            lambda runtime: ContainerEngine(runtime, mock=config.mock)
        )
        self.materializer = materializer or WorkspaceMaterializer(mock=config.mock)
        self.host_os = host_os

    # Helpers

    def _engine_for(self, record: JailRecord) -> ContainerEngine:
        runtime = parse_runtime(record.runtime, f"runtime in record of jail '{record.name}'")
        return self.engine_factory(runtime)

    def _reconciler(self, engine: ContainerEngine) -> ContainerReconciler:
        return ContainerReconciler(engine, self.config, host_os=self.host_os)

    def _check_new_name(self, name: str) -> None:
        if not name or naming.dir_name(name) in {".", ".."} or "\x00" in name:
            raise ConfigurationError(f"Invalid jail name: '{name}'")
        if self.store.exists(name):
            raise JailExistsError(f"Jail '{name}' already exists")

    def _remember_container(self, record: JailRecord, container_id: str) -> None:
        if record.container_id != container_id:
            record.container_id = container_id
            self.store.save(record)

    # Creation

    def clone(self, source: str, name: Optional[str] = None, ports: Iterable[int] = ()) -> str:
        """Clone a git repository or copy a local path into a new jail, then enter it.

        A failed copy/clone removes the partially created jail directory.

        Returns:
            Id of the container that was entered
        """
        ports = validate_ports(ports)
        runtime = detect(self.config, self.host_os)
        jail_name = name or naming.derive_name(source)
        self._check_new_name(jail_name)

        console.print(f"[cyan]→[/cyan] Creating jail '[cyan]{jail_name}[/cyan]' from {source}")

        engine = self.engine_factory(runtime)
        ensure_image(engine)

        workspace_name = naming.workspace_name(jail_name)
        jail_dir = self.store.jail_path(jail_name)
        workspace = jail_dir / workspace_name
        self._make_workspace(workspace)

        console.print("[cyan]→[/cyan] Cloning repository...")
        try:
            self.materializer.materialize(source, workspace)
        except JailError:
            shutil.rmtree(jail_dir, ignore_errors=True)
            logger.debug(f"Rolled back partially created jail {jail_dir}")
            raise

        record = JailRecord(
            name=jail_name,
            source=source,
            runtime=runtime.value,
            workspace_dir=workspace_name,
            ports=set(ports),
        )
        self.store.save(record)
        console.print(f"[green]✓[/green] Jail '[cyan]{jail_name}[/cyan]' created successfully")

        return self.enter_jail(jail_name)

    def create(self, name: str, ports: Iterable[int] = ()) -> str:
        """Create a jail with an empty workspace, then enter it."""
        ports = validate_ports(ports)
        runtime = detect(self.config, self.host_os)
        self._check_new_name(name)

        console.print(f"[cyan]→[/cyan] Creating jail '[cyan]{name}[/cyan]'")

        engine = self.engine_factory(runtime)
        ensure_image(engine)

        workspace_name = name
        self._make_workspace(self.store.jail_path(name) / workspace_name)

        record = JailRecord(
            name=name,
            source=EMPTY_SOURCE,
            runtime=runtime.value,
            workspace_dir=workspace_name,
            ports=set(ports),
        )
        self.store.save(record)
        console.print(f"[green]✓[/green] Jail '[cyan]{name}[/cyan]' created successfully")

        return self.enter_jail(name)

    def _make_workspace(self, workspace: Path) -> None:
        try:
            workspace.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistError(f"Failed to create directory {workspace}: {e}") from e

    # Use

    def enter(self, pattern: Optional[str] = None, new_ports: Iterable[int] = ()) -> str:
        """Resolve a jail by name/filter and open a shell in it."""
        name = self.registry.resolve(pattern, self.chooser)
        return self.enter_jail(name, new_ports)

    def enter_jail(self, name: str, new_ports: Iterable[int] = ()) -> str:
        """Open an interactive shell in a jail, stopping the container afterwards.

        New ports are recorded before the container is touched, so the
        desired state survives a failure during reconciliation.

        Raises:
            ExternalCommandError: If the shell exits non-zero (after the stop)
        """
        new_ports = validate_ports(new_ports)
        record = self.store.load(name)
        jail_dir = self.store.jail_path(name)

        recreate = record.merge_ports(new_ports)
        if recreate:
            self.store.save(record)
            logger.debug(f"Recorded ports {list(record.sorted_ports())} for {name}")

        engine = self._engine_for(record)
        ensure_image(engine)

        container_id = self._reconciler(engine).ensure(record, jail_dir, force_recreate=recreate)

        try:
            self._remember_container(record, container_id)

            console.print(f"[cyan]→[/cyan] Entering jail '[cyan]{name}[/cyan]'...")
            console.print("  Type '[yellow]exit[/yellow]' to leave the jail")
            exit_code = engine.exec_shell(container_id)
        finally:
            console.print("[cyan]→[/cyan] Stopping container...")
            best_effort("stop container", engine.stop, container_id)

        if exit_code != 0:
            raise ExternalCommandError("Shell exited with error", returncode=exit_code)
        return container_id

    def code(self, name: str) -> str:
        """Start the jail's container and open VSCode attached to it.

        Returns:
            The folder URI handed to the editor
        """
        record = self.store.load(name)
        jail_dir = self.store.jail_path(name)

        engine = self._engine_for(record)
        ensure_image(engine)

        container_id = self._reconciler(engine).ensure(record, jail_dir)
        self._remember_container(record, container_id)

        console.print(f"[cyan]→[/cyan] Opening VSCode for jail '[cyan]{name}[/cyan]'...")
        uri = editor.open_editor(container_id, record.workspace_dir, mock=self.config.mock)
        console.print(
            "[green]✓[/green] VSCode opened. "
            "Make sure you have the 'Dev Containers' extension installed."
        )
        return uri

    # Removal

    def remove(self, pattern: Optional[str] = None) -> str:
        """Remove a jail: container cleanup is best effort, directory removal is not.

        Returns:
            Name of the removed jail
        """
        name = self.registry.resolve(pattern, self.chooser)
        if not self.store.exists(name):
            raise JailNotFoundError(f"Jail '{name}' not found")

        console.print(f"[cyan]→[/cyan] Removing jail '[cyan]{name}[/cyan]'...")

        loaded = best_effort("read jail metadata", self.store.load, name)
        if loaded.ok:
            engine = best_effort("select engine", self._engine_for, loaded.value)
            if engine.ok:
                cname = naming.container_name(name)
                best_effort("stop container", engine.value.stop, cname)
                best_effort("remove container", engine.value.remove, cname)

        self.store.delete(name)
        console.print(f"[green]✓[/green] Jail '[cyan]{name}[/cyan]' removed")
        return name

    # Reporting

    def list_jails(self) -> List[JailListing]:
        """Every jail with its source and whether its container is running.

        A record naming an unknown engine is listed by name only, like an
        unreadable one. An engine that cannot be queried reports ``stopped``.
        """
        listings = []
        for name, record in self.registry.list_entries():
            if record is None:
                listings.append(JailListing(name=name))
                continue

            engine = best_effort("select engine", self._engine_for, record)
            if not engine.ok:
                listings.append(JailListing(name=name))
                continue

            running = best_effort(
                "look up container",
                engine.value.find_container,
                naming.container_name(name),
                running_only=True,
            )
            state = ContainerState.RUNNING if running.value else ContainerState.STOPPED
            listings.append(JailListing(name=name, source=record.source, state=state))
        return listings

    def status(self) -> StatusReport:
        """Report engine availability and base image presence without changing anything."""
        report = StatusReport(host_os=self.host_os or host_platform())
        for runtime in PREFERRED_RUNTIMES:
            if self.config.mock:
                report.engines.append(EngineStatus(runtime, installed=True, available=True))
            else:
                report.engines.append(
                    EngineStatus(runtime, runtime.is_installed(), runtime.is_available())
                )

        try:
            report.active = detect(self.config, self.host_os)
        except JailError as e:
            report.error = str(e)
            return report

        report.image_present = self.engine_factory(report.active).image_exists(IMAGE_NAME)
        return report
