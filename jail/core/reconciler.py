"""Converge a jail's live container toward its persisted record.

The container for a jail is always named ``jail-<sanitized name>`` and there
is at most one per jail. ``ensure`` is idempotent: with an unchanged record
it returns the same container id and only starts a stopped container.

Changing launch configuration (new ports) requires a new container. The
recreate path commits the old container to a temporary image first so that
anything installed inside it survives; if that commit fails nothing is
removed and the original container is left stopped but intact.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

from rich.console import Console

from jail.core import naming
from jail.core.best_effort import best_effort
from jail.core.config import JailConfig
from jail.core.errors import ExternalCommandError
from jail.core.logger import get_logger
from jail.models import ContainerState, JailRecord
from jail.services.engine import ContainerEngine
from jail.services.image import IMAGE_NAME
from jail.services.runtime import host_platform

logger = get_logger(__name__)
console = Console()

CONTAINER_USER = "dev"
CONTAINER_SHELL = "/bin/bash"


class ContainerReconciler:
    """Ensures a matching container exists for a jail record."""

    def __init__(
        self,
        engine: ContainerEngine,
        config: JailConfig,
        host_os: Optional[str] = None,
        image: str = IMAGE_NAME,
    ):
        """Initialize reconciler.

        Args:
            engine: Engine wrapper for the jail's runtime
            config: Invocation context (used for SSH agent forwarding)
            host_os: platform.system() value; detected when omitted
            image: Base image for fresh containers
        """
        self.engine = engine
        self.config = config
        self.host_os = host_os or host_platform()
        self.image = image

    def state(self, name: str) -> Tuple[ContainerState, Optional[str]]:
        """Return the live state and id of a jail's container."""
        cname = naming.container_name(name)
        container_id = self.engine.find_container(cname)
        if not container_id:
            return ContainerState.ABSENT, None
        if self.engine.find_container(cname, running_only=True):
            return ContainerState.RUNNING, container_id
        return ContainerState.STOPPED, container_id

    def ensure(self, record: JailRecord, jail_dir: Path, force_recreate: bool = False) -> str:
        """Make sure the jail's container exists and is running.

        Args:
            record: Desired configuration (ports already merged)
            jail_dir: Directory holding the jail's workspace
            force_recreate: Rebuild the container to apply new launch options

        Returns:
            Id of the container to use
        """
        state, container_id = self.state(record.name)
        logger.debug(f"Container for {record.name} is {state.value}")

        if state is ContainerState.ABSENT:
            return self.create(record, jail_dir)

        if force_recreate:
            return self.recreate(record, jail_dir, container_id)

        if state is ContainerState.STOPPED:
            self.engine.start(container_id)
            logger.debug(f"Started container {container_id}")

        return container_id

    def create(self, record: JailRecord, jail_dir: Path, image: Optional[str] = None) -> str:
        """Launch a fresh container for the jail."""
        args = self.build_run_args(record, jail_dir, image or self.image)
        container_id = self.engine.run_container(args)
        logger.debug(f"Created container {container_id} for {record.name}")
        return container_id

    def recreate(self, record: JailRecord, jail_dir: Path, container_id: str) -> str:
        """Replace a container while preserving its filesystem state.

        stop -> commit to a temporary image -> rm -> run from that image -> rmi.

        Raises:
            ExternalCommandError: If any required step fails. A failed commit
                leaves the original container in place.
        """
        console.print("[cyan]→[/cyan] Updating container with new ports...")
        temp_image = naming.temp_image_name(record.name)

        self.engine.stop(container_id)

        try:
            self.engine.commit(container_id, temp_image)
        except ExternalCommandError as e:
            raise ExternalCommandError(
                "Failed to preserve container state",
                e.command,
                returncode=e.returncode,
                stderr=e.stderr,
            ) from e

        try:
            self.engine.remove(container_id)
            new_id = self.create(record, jail_dir, image=temp_image)
        except ExternalCommandError:
            logger.warning(
                f"Container state for {record.name} is preserved in image {temp_image}"
            )
            raise

        best_effort(f"remove temporary image {temp_image}", self.engine.remove_image, temp_image)
        return new_id

    def build_run_args(self, record: JailRecord, jail_dir: Path, image: str) -> List[str]:
        """Arguments for ``<engine> run`` that launch this jail's container."""
        args = ["-d", "-it", "--name", naming.container_name(record.name)]

        if self.host_os == "Darwin":
            # Host networking is unavailable inside the engine VM on macOS
            for port in record.sorted_ports():
                args.extend(["-p", f"{port}:{port}"])
        else:
            args.append("--network=host")

        container_workdir = f"/{record.workspace_dir}"
        args.extend([
            "-v", f"{Path(jail_dir) / record.workspace_dir}:{container_workdir}",
            "-w", container_workdir,
            "--user", CONTAINER_USER,
        ])

        args.extend(self.engine.runtime.ssh_agent_mount(self.config, self.host_os))

        args.extend([image, CONTAINER_SHELL])
        return args
