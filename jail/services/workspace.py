"""Populate a jail workspace from a local directory or a git remote."""
import shlex
import shutil
import subprocess
from pathlib import Path

from jail.core.errors import ExternalCommandError
from jail.core.logger import get_logger

logger = get_logger(__name__)


class WorkspaceMaterializer:
    """Copies or clones a source into a workspace directory."""

    def __init__(self, mock: bool = False):
        self.mock = mock

    def materialize(self, source: str, workspace: Path) -> None:
        """Fill ``workspace`` from ``source``.

        Existing local paths are copied; anything else is handed to git clone.

        Raises:
            ExternalCommandError: If the copy or clone fails
        """
        if Path(source).exists():
            self.copy_local(Path(source), workspace)
        else:
            self.git_clone(source, workspace)

    def copy_local(self, source: Path, workspace: Path) -> None:
        if self.mock:
            logger.info(f"MOCK: Would copy {source} into {workspace}")
            return

        logger.info(f"Copying {source} into {workspace}")
        try:
            if source.is_dir():
                shutil.copytree(source, workspace, symlinks=True, dirs_exist_ok=True)
            else:
                workspace.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, workspace / source.name)
        except (OSError, shutil.Error) as e:
            raise ExternalCommandError(f"Failed to copy {source}", stderr=str(e)) from e

    def git_clone(self, url: str, workspace: Path) -> None:
        cmd = ["git", "clone", url, "."]

        if self.mock:
            logger.info(f"MOCK: Would run: {shlex.join(cmd)} (in {workspace})")
            return

        logger.info(f"Cloning {url}")
        try:
            # Progress is shown on the terminal, so nothing is captured
            result = subprocess.run(cmd, cwd=workspace, check=False)
        except OSError as e:
            raise ExternalCommandError("Failed to run git clone", cmd, stderr=str(e)) from e

        if result.returncode != 0:
            raise ExternalCommandError(
                "Failed to clone repository", cmd, returncode=result.returncode
            )
