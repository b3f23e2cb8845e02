"""
Rig reference.

A rig is a tracked repository root that polecats operate against. It is owned
outside this package; polecat and swarm managers only hold a read-only
reference to it.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

RIG_FILE_NAME = "rig.yaml"


class Rig(BaseModel):
    """A named repository root with a filesystem path and a remote URL."""
    model_config = ConfigDict(frozen=True)

    name: str
    path: Path
    git_url: str

    @field_validator('name')
    @classmethod
    def name_must_be_set(cls, v):
        if not v or not v.strip():
            raise ValueError('rig name must not be empty')
        return v

    @classmethod
    def load(cls, path: Path) -> "Rig":
        """
        Build a Rig reference for a directory.

        Reads <path>/rig.yaml (keys: name, git_url) when it exists. Without it,
        the rig is named after its directory and its own path is used as the
        clone source.

        Args:
            path: Rig root directory

        Returns:
            Rig reference

        Raises:
            ConfigurationError: If rig.yaml is unreadable or malformed
        """
        path = Path(path).resolve()
        data = {}

        rig_file = path / RIG_FILE_NAME
        if rig_file.exists():
            try:
                with open(rig_file) as f:
                    data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Cannot load rig file {rig_file}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigurationError(f"Rig file {rig_file} must contain a mapping")

        try:
            return cls(
                name=data.get("name") or path.name,
                path=path,
                git_url=data.get("git_url") or str(path),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid rig definition for {path}: {e}") from e
