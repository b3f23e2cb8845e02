"""
rigswarm - Polecat lifecycle and swarm coordination

Manages ephemeral worker agents ("polecats") that each work in an isolated
clone of a shared repository ("rig"), and assigns issues across the pool
without ever handing one polecat two issues or one issue to two polecats.
"""

from .errors import (
    RigSwarmError,
    PolecatExistsError,
    PolecatNotFoundError,
    UncommittedChangesError,
    InvalidTransitionError,
    NoAvailablePolecatError,
    IssueAlreadyAssignedError,
    ProvisioningError,
    PersistenceError,
    LockTimeoutError,
    ConfigurationError,
)

from .config import SwarmConfig
from .rig import Rig
from .git import Git, GitError, VersionControl

from .polecat import (
    State,
    Polecat,
    Summary,
    Transition,
    PolecatManager,
)

from .swarm import SwarmManager, SwarmStatus

__version__ = "0.3.0"
__all__ = [
    # Errors
    "RigSwarmError",
    "PolecatExistsError",
    "PolecatNotFoundError",
    "UncommittedChangesError",
    "InvalidTransitionError",
    "NoAvailablePolecatError",
    "IssueAlreadyAssignedError",
    "ProvisioningError",
    "PersistenceError",
    "LockTimeoutError",
    "ConfigurationError",

    # Rig and collaborators
    "SwarmConfig",
    "Rig",
    "Git",
    "GitError",
    "VersionControl",

    # Polecats
    "State",
    "Polecat",
    "Summary",
    "Transition",
    "PolecatManager",

    # Swarm
    "SwarmManager",
    "SwarmStatus",
]
