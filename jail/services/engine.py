"""Thin wrapper over the container engine command line."""
import shlex
import subprocess
from typing import List, Optional, Sequence

from jail.core.errors import ExternalCommandError
from jail.core.logger import get_logger
from jail.services.runtime import Runtime

logger = get_logger(__name__)

MOCK_CONTAINER_ID = "0123456789ab"


class ContainerEngine:
    """Runs podman/docker subcommands for one runtime.

    Every call blocks until the child process exits. Failures raise
    ExternalCommandError carrying the captured stderr.
    """

    def __init__(self, runtime: Runtime, mock: bool = False):
        """Initialize engine wrapper.

        Args:
            runtime: Engine to drive
            mock: If True, log commands instead of running them
        """
        self.runtime = runtime
        self.mock = mock

    def _run(
        self,
        args: Sequence[str],
        action: str,
        capture: bool = True,
        input: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        cmd = [self.runtime.command, *args]

        if self.mock:
            logger.info(f"MOCK: Would run: {shlex.join(cmd)}")
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

        logger.debug(f"Running: {shlex.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=capture,
                text=True,
                input=input,
            )
        except OSError as e:
            raise ExternalCommandError(f"Failed to {action}", cmd, stderr=str(e)) from e

        if result.returncode != 0:
            raise ExternalCommandError(
                f"Failed to {action}",
                cmd,
                returncode=result.returncode,
                stderr=result.stderr if capture else "",
            )
        return result

    # Images

    def image_exists(self, image: str) -> bool:
        if self.mock:
            logger.info(f"MOCK: Would inspect image {image}")
            return True

        try:
            self._run(["image", "inspect", image], f"inspect image {image}")
        except ExternalCommandError:
            return False
        return True

    def build_image(self, image: str, dockerfile: str) -> None:
        """Build an image from a Dockerfile streamed over stdin.

        Build output goes straight to the terminal.
        """
        self._run(
            ["build", "-t", image, "-f", "-", "."],
            f"build image {image}",
            capture=False,
            input=dockerfile,
        )

    def commit(self, container_id: str, image: str) -> None:
        self._run(["commit", container_id, image], f"commit container {container_id} to {image}")

    def remove_image(self, image: str) -> None:
        self._run(["rmi", image], f"remove image {image}")

    # Containers

    def find_container(self, name: str, running_only: bool = False) -> Optional[str]:
        """Return the id of the container with exactly this name, if any."""
        args = ["ps", "-q" if running_only else "-aq", "-f", f"name=^{name}$"]
        result = self._run(args, f"look up container {name}")
        ids = result.stdout.split()
        return ids[0] if ids else None

    def run_container(self, args: List[str]) -> str:
        """Create and start a detached container.

        Returns:
            The new container id
        """
        result = self._run(["run", *args], "create container")
        container_id = result.stdout.strip()
        if self.mock:
            return MOCK_CONTAINER_ID
        if not container_id:
            raise ExternalCommandError(
                "Failed to create container",
                result.args,
                stderr="no container id returned",
            )
        return container_id.splitlines()[-1]

    def start(self, container: str) -> None:
        self._run(["start", container], f"start container {container}")

    def stop(self, container: str) -> None:
        self._run(["stop", container], f"stop container {container}")

    def remove(self, container: str) -> None:
        self._run(["rm", container], f"remove container {container}")

    def exec_shell(self, container_id: str, shell: str = "/bin/bash") -> int:
        """Attach an interactive shell and return its exit status."""
        cmd = [self.runtime.command, "exec", "-it", container_id, shell]

        if self.mock:
            logger.info(f"MOCK: Would open shell: {shlex.join(cmd)}")
            return 0

        logger.debug(f"Opening interactive shell: {shlex.join(cmd)}")
        try:
            result = subprocess.run(cmd, check=False)
        except OSError as e:
            raise ExternalCommandError("Failed to enter container", cmd, stderr=str(e)) from e
        return result.returncode
