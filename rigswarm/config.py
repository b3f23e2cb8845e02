"""
Swarm configuration.

Settings are layered, later layers overriding earlier ones:

- Built-in defaults
- User config at ~/.rigswarm/config.yaml
- Rig config at <rig>/.rigswarm.yaml

A missing file is skipped. A file that is not valid YAML, or whose top level
is not a mapping, raises ConfigurationError.
"""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

RIG_CONFIG_NAME = ".rigswarm.yaml"


class SwarmConfig:
    """
    Layered configuration for polecat management and swarm coordination.

    Supports:
    - Agents root directory name and branch prefix
    - State file name
    - Rig lock timeout
    - Strictness of the uncommitted-changes check on removal
    - Log level for the command-line surface
    """

    CONFIG_PATH = Path.home() / ".rigswarm" / "config.yaml"

    def __init__(self, data: dict):
        """Initialize with configuration data."""
        self._data = data

    @classmethod
    def get_default(cls) -> dict:
        """Get default configuration."""
        return {
            "polecats_dir": "polecats",
            "branch_prefix": "polecat/",
            "state_file": "state.json",
            "lock": {
                "timeout": 30,
            },
            "remove": {
                "strict_change_check": False,
            },
            "logging": {
                "level": "WARNING",
            },
        }

    @classmethod
    def load(cls, rig_path: Optional[Path] = None) -> "SwarmConfig":
        """
        Load configuration from the user file and, if given, the rig file.

        Args:
            rig_path: Rig root whose .rigswarm.yaml should be layered on top

        Returns:
            Merged SwarmConfig
        """
        merged = cls.get_default()

        paths = [cls.CONFIG_PATH]
        if rig_path is not None:
            paths.append(Path(rig_path) / RIG_CONFIG_NAME)

        for path in paths:
            overrides = cls._read(path)
            if overrides:
                logger.debug(f"Applying config overrides from {path}")
                merged = cls._deep_merge(merged, overrides)

        return cls(merged)

    @staticmethod
    def _read(path: Path) -> dict:
        """Read one YAML layer, returning {} when the file is absent."""
        if not path.exists():
            return {}

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return data

    @staticmethod
    def _deep_merge(base: dict, override: dict) -> dict:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = SwarmConfig._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    # ========================================================================
    # Property Accessors
    # ========================================================================

    @property
    def polecats_dir(self) -> str:
        """Name of the agents root directory under the rig."""
        return self._data.get("polecats_dir", "polecats")

    @property
    def branch_prefix(self) -> str:
        return self._data.get("branch_prefix", "polecat/")

    @property
    def state_file(self) -> str:
        return self._data.get("state_file", "state.json")

    @property
    def lock_timeout(self) -> float:
        """Seconds to wait for the rig lock (-1 waits forever)."""
        return float(self.get("lock.timeout", 30))

    @property
    def strict_change_check(self) -> bool:
        """Whether a failed uncommitted-changes check blocks removal."""
        return bool(self.get("remove.strict_change_check", False))

    @property
    def log_level(self) -> str:
        return str(self.get("logging.level", "WARNING")).upper()

    # ========================================================================
    # Generic Get
    # ========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a config value using dot notation.

        Examples:
            config.get("lock.timeout")
            config.get("remove.strict_change_check")

        Args:
            key: Dot-separated key path
            default: Default value if not found

        Returns:
            Config value or default
        """
        parts = key.split(".")
        value = self._data

        for part in parts:
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value
