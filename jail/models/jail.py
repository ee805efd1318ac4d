"""Jail record and container state models."""
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Set, Tuple

from pydantic import BaseModel, Field, field_validator

EMPTY_SOURCE = "(empty)"
DEFAULT_WORKSPACE_DIR = "workspace"
MAX_PORT = 65535


class ContainerState(str, Enum):
    """Live state of a jail's container as seen by the engine."""

    ABSENT = "absent"
    STOPPED = "stopped"
    RUNNING = "running"


class JailRecord(BaseModel):
    """Persisted declarative description of a jail."""

    name: str
    source: str = Field(..., description="Git URL, local path, or '(empty)'")
    runtime: str = Field(..., description="Engine tag, fixed at creation")
    workspace_dir: str = DEFAULT_WORKSPACE_DIR
    ports: Set[int] = Field(default_factory=set)
    created_at: int = Field(default_factory=lambda: int(time.time()))
    container_id: Optional[str] = Field(None, description="Last known container id (cache only)")

    @field_validator('runtime')
    @classmethod
    def normalize_runtime(cls, v):
        return v.lower()

    @field_validator('workspace_dir', mode='before')
    @classmethod
    def default_workspace_dir(cls, v):
        """Records written before workspace_dir existed use the old default."""
        return v or DEFAULT_WORKSPACE_DIR

    @field_validator('ports', mode='before')
    @classmethod
    def ports_or_empty(cls, v):
        return v or set()

    @field_validator('ports')
    @classmethod
    def validate_ports(cls, v):
        for port in v:
            if not 1 <= port <= MAX_PORT:
                raise ValueError(f"Port {port} is outside 1-{MAX_PORT}")
        return v

    @field_validator('container_id', mode='before')
    @classmethod
    def container_id_as_text(cls, v):
        return str(v) if v else None

    def merge_ports(self, new_ports: Iterable[int]) -> bool:
        """Add ports to the record.

        Returns:
            True if at least one port was not already present
        """
        added = set(new_ports) - self.ports
        self.ports |= added
        return bool(added)

    def sorted_ports(self) -> Tuple[int, ...]:
        return tuple(sorted(self.ports))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "source": self.source,
            "runtime": self.runtime,
            "workspace_dir": self.workspace_dir,
            "ports": list(self.sorted_ports()),
            "created_at": self.created_at,
        }
        if self.container_id:
            data["container_id"] = self.container_id
        return data

    @classmethod
    def from_dict(cls, data: Any, fallback_name: Optional[str] = None) -> "JailRecord":
        """Build a record from its serialized form.

        Raises:
            ValueError: If the data is not a mapping or fails validation
                (pydantic's ValidationError is a ValueError)
        """
        if not isinstance(data, dict):
            raise ValueError("record must be a mapping")
        if fallback_name and not data.get("name"):
            data = {**data, "name": fallback_name}
        return cls.model_validate(data)


@dataclass
class JailListing:
    """One row of the jail listing.

    ``state`` is None when the record could not be read.
    """

    name: str
    source: Optional[str] = None
    state: Optional[ContainerState] = None

    @property
    def is_corrupt(self) -> bool:
        return self.source is None
