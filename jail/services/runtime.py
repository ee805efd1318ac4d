"""Container engine selection (Podman or Docker)."""
import platform
import shutil
import subprocess
from enum import Enum
from typing import List, Optional, Tuple

from jail.core.config import JailConfig
from jail.core.errors import ConfigurationError, RuntimeUnavailableError
from jail.core.logger import get_logger

logger = get_logger(__name__)

SSH_SOCKET_TARGET = "/run/ssh.sock"
DOCKER_DESKTOP_SSH_SOCKET = "/run/host-services/ssh-auth.sock"


def host_platform() -> str:
    """Return the host OS name as reported by platform.system() ("Linux", "Darwin", ...)."""
    return platform.system()


class Runtime(str, Enum):
    """Supported container engines. Add a member to support another engine."""

    PODMAN = "podman"
    DOCKER = "docker"

    @property
    def command(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value

    def is_installed(self) -> bool:
        return shutil.which(self.command) is not None

    def is_available(self) -> bool:
        """Check that the binary exists and the engine answers a health check."""
        if not self.is_installed():
            return False

        try:
            result = subprocess.run(
                [self.command, "info"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.debug(f"{self.command} info failed to start: {e}")
            return False
        return result.returncode == 0

    def ssh_agent_mount(self, config: JailConfig, host_os: Optional[str] = None) -> List[str]:
        """Extra run arguments that forward the host SSH agent.

        Returns an empty list when no agent socket can be mounted.
        """
        host_os = host_os or host_platform()
        env_arg = ["-e", f"SSH_AUTH_SOCK={SSH_SOCKET_TARGET}"]

        if host_os == "Darwin":
            if self is Runtime.DOCKER:
                return ["-v", f"{DOCKER_DESKTOP_SSH_SOCKET}:{SSH_SOCKET_TARGET}:ro"] + env_arg
            # Podman runs in a VM on macOS and cannot mount host sockets
            return []

        sock = config.environ.get("SSH_AUTH_SOCK")
        if not sock:
            return []
        return ["-v", f"{sock}:{SSH_SOCKET_TARGET}:ro"] + env_arg


# Auto-detection order
PREFERRED_RUNTIMES = (Runtime.PODMAN, Runtime.DOCKER)


def parse_runtime(value: str, origin: str) -> Runtime:
    """Parse a runtime name.

    Raises:
        ConfigurationError: If the value names no supported engine
    """
    try:
        return Runtime(value.strip().lower())
    except ValueError:
        raise ConfigurationError(
            f"Invalid {origin} value: {value}. Use 'podman' or 'docker'."
        ) from None


def runtime_override(config: JailConfig) -> Optional[Tuple[Runtime, str]]:
    """Return the explicitly requested runtime and where it came from.

    The environment wins over the config file.
    """
    env_value = config.runtime_env_override
    if env_value:
        return parse_runtime(env_value, "JAIL_RUNTIME"), "JAIL_RUNTIME"

    if config.settings.runtime:
        origin = f"runtime setting in {config.config_file}"
        return parse_runtime(config.settings.runtime, origin), origin

    return None


def install_instructions(host_os: Optional[str] = None) -> str:
    """Platform-specific guidance for installing a container engine."""
    host_os = host_os or host_platform()
    if host_os == "Darwin":
        return (
            "Install a container runtime:\n\n"
            "Podman (recommended):\n"
            "  brew install podman\n"
            "  podman machine init\n"
            "  podman machine start\n\n"
            "Docker Desktop:\n"
            "  brew install --cask docker\n"
            "  # Then launch Docker.app"
        )
    if host_os == "Linux":
        return (
            "Install a container runtime:\n\n"
            "Podman (recommended):\n"
            "  sudo apt install podman      # Ubuntu/Debian\n"
            "  sudo dnf install podman      # Fedora\n"
            "  sudo pacman -S podman        # Arch\n\n"
            "Docker:\n"
            "  See https://docs.docker.com/engine/install/"
        )
    return "Please install Docker or Podman for your platform."


def detect(config: JailConfig, host_os: Optional[str] = None) -> Runtime:
    """Resolve which container engine to use for this invocation.

    Order: JAIL_RUNTIME > config file > first available of podman, docker.
    An explicit override that is not usable is always an error; it never
    falls back to auto-detection.

    Raises:
        ConfigurationError: If an override names an unknown engine
        RuntimeUnavailableError: If the chosen or any engine is unusable
    """
    override = runtime_override(config)

    if config.mock:
        runtime = override[0] if override else Runtime.PODMAN
        logger.debug(f"MOCK: Using runtime {runtime} without probing")
        return runtime

    if override:
        runtime, origin = override
        if runtime.is_available():
            return runtime
        raise RuntimeUnavailableError(
            f"Configured runtime '{runtime}' ({origin}) is not available or not working"
        )

    for runtime in PREFERRED_RUNTIMES:
        if runtime.is_available():
            logger.debug(f"Auto-detected runtime: {runtime}")
            return runtime

    raise RuntimeUnavailableError(
        f"No container runtime found.\n\n{install_instructions(host_os)}"
    )
