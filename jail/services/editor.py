"""Hand a running jail container over to VSCode."""
import shlex
import subprocess

from jail.core import naming
from jail.core.errors import ExternalCommandError
from jail.core.logger import get_logger

logger = get_logger(__name__)

EDITOR_COMMAND = "code"
EDITOR_SCHEME = "vscode-remote"


def attach_uri(container_id: str, workspace_dir: str, scheme: str = EDITOR_SCHEME) -> str:
    """Build the Dev Containers URI for an attached container."""
    return f"{scheme}://attached-container+{naming.hex_encode(container_id)}/{workspace_dir}"


def open_editor(container_id: str, workspace_dir: str, mock: bool = False) -> str:
    """Open the editor attached to a container.

    Returns:
        The folder URI that was opened

    Raises:
        ExternalCommandError: If the editor cannot be launched or fails
    """
    uri = attach_uri(container_id, workspace_dir)
    cmd = [EDITOR_COMMAND, "--folder-uri", uri]

    if mock:
        logger.info(f"MOCK: Would run: {shlex.join(cmd)}")
        return uri

    try:
        result = subprocess.run(cmd, check=False)
    except OSError as e:
        raise ExternalCommandError(
            "Failed to open VSCode. Make sure the 'code' command is available", cmd, stderr=str(e)
        ) from e

    if result.returncode != 0:
        raise ExternalCommandError("Failed to open VSCode", cmd, returncode=result.returncode)
    return uri
