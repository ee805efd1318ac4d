"""jail runtime configuration and settings."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from jail.core.errors import ConfigurationError

APP_NAME = "jail"
CONFIG_FILE_NAME = "config.yml"


class Settings(BaseModel):
    """Contents of the optional global config file."""

    model_config = ConfigDict(extra='forbid')

    runtime: Optional[str] = Field(None, description="Preferred container engine (podman or docker)")

    @classmethod
    def from_file(cls, path: Path) -> "Settings":
        """Load settings from a YAML file; a missing file yields defaults."""
        if not path.exists():
            return cls()

        try:
            with open(path) as f:
                raw = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to parse config file {path}: {e}") from e

        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")

        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid config file {path}: {e}") from e


@dataclass
class JailConfig:
    """Resolution context for a single jail invocation.

    Built once per process from an environment snapshot and the config file,
    then handed explicitly to everything that needs it.

    Attributes:
        data_dir: Per-user data root (jails live under data_dir/jails)
        config_dir: Directory holding config.yml
        environ: Snapshot of the environment variables used for resolution
        settings: Parsed config file
        mock: Simulate external commands instead of running them
    """

    data_dir: Path
    config_dir: Path
    environ: Dict[str, str] = field(default_factory=dict)
    settings: Settings = field(default_factory=Settings)
    mock: bool = False

    @property
    def jails_dir(self) -> Path:
        return self.data_dir / "jails"

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILE_NAME

    @property
    def runtime_env_override(self) -> Optional[str]:
        """Raw JAIL_RUNTIME value, if set."""
        value = self.environ.get("JAIL_RUNTIME")
        return value if value else None

    @classmethod
    def load(cls, environ: Optional[Mapping[str, str]] = None) -> "JailConfig":
        """Create config from environment variables and the config file.

        Environment variables:
            JAIL_DATA_DIR: Override the data root
            JAIL_CONFIG_DIR: Override the config directory
            JAIL_RUNTIME: Force a container engine (podman|docker)
            JAIL_MOCK: Set to 1 to simulate external commands
            XDG_DATA_HOME / XDG_CONFIG_HOME: Standard base directories

        Returns:
            JailConfig instance
        """
        env = dict(os.environ if environ is None else environ)
        home = Path(env.get("HOME") or Path.home())

        data_dir = env.get("JAIL_DATA_DIR")
        if not data_dir:
            data_dir = Path(env.get("XDG_DATA_HOME") or home / ".local" / "share") / APP_NAME

        config_dir = env.get("JAIL_CONFIG_DIR")
        if not config_dir:
            config_dir = Path(env.get("XDG_CONFIG_HOME") or home / ".config") / APP_NAME

        config_dir = Path(config_dir)
        return cls(
            data_dir=Path(data_dir),
            config_dir=config_dir,
            environ=env,
            settings=Settings.from_file(config_dir / CONFIG_FILE_NAME),
            mock=env.get("JAIL_MOCK") == "1",
        )
