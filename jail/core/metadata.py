"""Persistence of jail records.

Each jail owns a directory under the jails root holding a ``jail.yml``
record next to its workspace. Reads and writes are plain read/modify/write
with no locking: concurrent invocations on the same jail are last-writer-wins.
"""
import shutil
from pathlib import Path
from typing import Iterator, Optional, Tuple

import yaml

from jail.core import naming
from jail.core.errors import JailNotFoundError, PersistError
from jail.core.logger import get_logger
from jail.models import JailRecord

logger = get_logger(__name__)

RECORD_FILE = "jail.yml"


class MetadataStore:
    """Load, save and delete jail records under a jails root directory."""

    def __init__(self, jails_dir: Path):
        """Initialize metadata store.

        Args:
            jails_dir: Root directory containing one subdirectory per jail
        """
        self.jails_dir = Path(jails_dir)

    def jail_path(self, name: str) -> Path:
        return self.jails_dir / naming.dir_name(name)

    def record_path(self, name: str) -> Path:
        return self.jail_path(name) / RECORD_FILE

    def exists(self, name: str) -> bool:
        """Check whether a jail directory is already taken for this name."""
        return self.jail_path(name).exists()

    def load(self, name: str) -> JailRecord:
        """Load a jail record.

        Raises:
            JailNotFoundError: If the jail directory or record file is missing
            PersistError: If the record cannot be read or parsed
        """
        path = self.record_path(name)
        if not path.exists():
            raise JailNotFoundError(f"Jail '{name}' not found")
        try:
            return self._read(path, fallback_name=name)
        except PersistError as e:
            raise PersistError(f"Jail '{name}' not found ({e})") from e

    def save(self, record: JailRecord) -> None:
        """Write a jail record, creating the jail directory if needed.

        Raises:
            PersistError: If the record cannot be written
        """
        path = self.record_path(record.name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)

            # Write atomically (write to temp, then rename)
            temp_file = path.with_suffix(".tmp")
            with open(temp_file, "w") as f:
                yaml.safe_dump(record.to_dict(), f, default_flow_style=False, sort_keys=False)
            temp_file.replace(path)
            logger.debug(f"Saved jail record to {path}")
        except (IOError, OSError, yaml.YAMLError) as e:
            raise PersistError(f"Failed to write jail metadata {path}: {e}") from e

    def delete(self, name: str) -> None:
        """Recursively remove a jail directory.

        Raises:
            JailNotFoundError: If the directory does not exist
            PersistError: If removal fails
        """
        path = self.jail_path(name)
        if not path.exists():
            raise JailNotFoundError(f"Jail '{name}' not found")
        try:
            shutil.rmtree(path)
        except OSError as e:
            raise PersistError(f"Failed to remove jail directory {path}: {e}") from e
        logger.debug(f"Removed jail directory {path}")

    def iter_records(self) -> Iterator[Tuple[str, Optional[JailRecord]]]:
        """Yield (name, record) for every jail directory holding a record file.

        The record is None when the file cannot be parsed; the name then
        falls back to the directory name.
        """
        if not self.jails_dir.is_dir():
            return

        for entry in sorted(self.jails_dir.iterdir()):
            record_file = entry / RECORD_FILE
            if not entry.is_dir() or not record_file.exists():
                continue

            fallback = entry.name.replace("_", "/")
            try:
                record = self._read(record_file, fallback_name=fallback)
            except PersistError as e:
                logger.debug(f"Skipping unreadable jail record: {e}")
                yield fallback, None
                continue
            yield record.name, record

    def _read(self, path: Path, fallback_name: str) -> JailRecord:
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
            return JailRecord.from_dict(data, fallback_name=fallback_name)
        except (IOError, OSError) as e:
            raise PersistError(f"Failed to read jail metadata {path}: {e}") from e
        except (yaml.YAMLError, ValueError) as e:
            raise PersistError(f"Failed to parse jail metadata {path}: {e}") from e
