"""
Error taxonomy for rigswarm.

Every failure surfaced by the polecat manager or the swarm coordinator is a
subclass of RigSwarmError, so callers can branch on the class (or on the
stable ``exit_code``) instead of matching message strings.
"""


class RigSwarmError(Exception):
    """Base exception for rigswarm errors"""
    exit_code = 1


class PolecatExistsError(RigSwarmError):
    """Raised when creating a polecat whose workspace directory already exists"""
    exit_code = 3


class PolecatNotFoundError(RigSwarmError):
    """Raised when operating on a polecat that has no workspace directory"""
    exit_code = 4


class UncommittedChangesError(RigSwarmError):
    """Raised when removing a polecat whose workspace has local modifications"""
    exit_code = 5


class InvalidTransitionError(RigSwarmError):
    """Raised when a guarded transition is attempted from the wrong state"""
    exit_code = 6

    def __init__(self, name: str, transition: str, state: str, allowed=None):
        self.name = name
        self.transition = transition
        self.state = state
        self.allowed = sorted(allowed) if allowed else []
        message = f"polecat {name!r} cannot {transition} from state {state!r}"
        if self.allowed:
            message += f" (allowed from: {', '.join(self.allowed)})"
        super().__init__(message)


class NoAvailablePolecatError(RigSwarmError):
    """Raised when no polecat in the rig is available for new work"""
    exit_code = 7


class IssueAlreadyAssignedError(RigSwarmError):
    """Raised when an issue is already carried by some polecat"""
    exit_code = 8

    def __init__(self, issue: str, holder: str):
        self.issue = issue
        self.holder = holder
        super().__init__(f"issue {issue!r} is already assigned to polecat {holder!r}")


class ProvisioningError(RigSwarmError):
    """Raised when cloning, branching or checking out a workspace fails"""
    exit_code = 9


class PersistenceError(RigSwarmError):
    """Raised when a polecat record cannot be read, written or parsed"""
    exit_code = 10


class LockTimeoutError(RigSwarmError):
    """Raised when the rig lock cannot be acquired in time"""
    exit_code = 11


class ConfigurationError(RigSwarmError):
    """Configuration is invalid"""
    exit_code = 2
