"""
Polecat lifecycle management.

PolecatManager owns creation, removal, state transitions and persistence of
polecats for a single rig. The agents root directory is the source of truth:

    <rig>/polecats/
        .swarm.lock          rig lock (see storage.RigLock)
        <name>/              workspace clone on branch polecat/<name>
            state.json       polecat record

A polecat exists iff its directory exists. A directory without a state file
is a valid, bare polecat whose record is synthesized as idle.
"""

import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from ..config import SwarmConfig
from ..errors import (
    PersistenceError,
    PolecatExistsError,
    PolecatNotFoundError,
    ProvisioningError,
    UncommittedChangesError,
)
from ..git import Git, GitError, VersionControlFactory
from ..rig import Rig
from ..storage import RigLock, read_json, write_json_atomic
from .lifecycle import Transition, apply_transition
from .schema import Polecat, State

logger = logging.getLogger(__name__)


def validate_name(name: str) -> str:
    """Polecat names are single, visible path components."""
    if not name or name in (".", "..") or name.startswith("."):
        raise ValueError(f"invalid polecat name: {name!r}")
    if "/" in name or "\\" in name or "\x00" in name:
        raise ValueError(f"polecat name must not contain path separators: {name!r}")
    return name


class PolecatManager:
    """Manage polecats of one rig."""

    def __init__(
        self,
        rig: Rig,
        git_factory: VersionControlFactory = Git,
        config: Optional[SwarmConfig] = None,
    ):
        """
        Args:
            rig: Rig the polecats belong to
            git_factory: Builds a VersionControl for a workspace path
            config: Settings; loaded for the rig when omitted
        """
        self.rig = rig
        self.config = config or SwarmConfig.load(rig.path)
        self._git_factory = git_factory
        self.root = Path(rig.path) / self.config.polecats_dir
        self.lock = RigLock(self.root, timeout=self.config.lock_timeout)

    # ========================================================================
    # Paths
    # ========================================================================

    def polecat_dir(self, name: str) -> Path:
        return self.root / name

    def state_file(self, name: str) -> Path:
        return self.polecat_dir(name) / self.config.state_file

    def branch_name(self, name: str) -> str:
        return f"{self.config.branch_prefix}{name}"

    def exists(self, name: str) -> bool:
        """Check if a polecat exists (its workspace directory is present)."""
        return self.polecat_dir(name).is_dir()

    # ========================================================================
    # Create / Remove
    # ========================================================================

    def add(self, name: str) -> Polecat:
        """
        Create a new idle polecat with its own clone of the rig.

        Clones the rig into the polecat directory, creates and checks out
        branch polecat/<name>, then writes the record. If any step fails the
        partially created directory is removed before the error is raised.

        Args:
            name: Polecat name, unique within the rig

        Returns:
            The new Polecat

        Raises:
            PolecatExistsError: If the polecat directory already exists
            ProvisioningError: If clone, branch or checkout fails
            PersistenceError: If the record cannot be written
        """
        validate_name(name)

        with self.lock:
            polecat_path = self.polecat_dir(name)
            if polecat_path.exists():
                raise PolecatExistsError(f"polecat {name!r} already exists in rig {self.rig.name!r}")

            branch = self.branch_name(name)
            try:
                self.root.mkdir(parents=True, exist_ok=True)
                self._git_factory(self.root).clone(self.rig.git_url, polecat_path)

                workspace = self._git_factory(polecat_path)
                workspace.create_branch(branch)
                workspace.checkout(branch)
                workspace.exclude([self.config.state_file, f".{self.config.state_file}.*.tmp"])
            except (GitError, OSError) as e:
                self._rollback(polecat_path)
                raise ProvisioningError(f"provisioning polecat {name!r} failed: {e}") from e

            now = datetime.now(timezone.utc)
            polecat = Polecat(
                name=name,
                rig=self.rig.name,
                state=State.IDLE,
                clone_path=polecat_path,
                branch=branch,
                created_at=now,
                updated_at=now,
            )

            try:
                self._save(polecat)
            except PersistenceError:
                self._rollback(polecat_path)
                raise

        logger.info(f"Created polecat {name} in rig {self.rig.name} on branch {branch}")
        return polecat

    def remove(self, name: str, force: bool = False) -> None:
        """
        Delete a polecat and its whole workspace.

        Args:
            name: Polecat name
            force: Skip the uncommitted-changes check

        Raises:
            PolecatNotFoundError: If the polecat does not exist
            UncommittedChangesError: If the workspace has local modifications
            PersistenceError: If the directory cannot be removed
        """
        self._require(name)
        with self.lock:
            self._require(name)

            polecat_path = self.polecat_dir(name)
            if not force and self._has_uncommitted_changes(name, polecat_path):
                raise UncommittedChangesError(f"polecat {name!r} has uncommitted changes")

            try:
                shutil.rmtree(polecat_path)
            except OSError as e:
                raise PersistenceError(f"removing polecat dir {polecat_path}: {e}") from e

        logger.info(f"Removed polecat {name} from rig {self.rig.name}")

    def _require(self, name: str) -> None:
        if not self.exists(name):
            raise PolecatNotFoundError(f"polecat {name!r} not found in rig {self.rig.name!r}")

    def _has_uncommitted_changes(self, name: str, polecat_path: Path) -> bool:
        try:
            return self._git_factory(polecat_path).has_uncommitted_changes()
        except (GitError, OSError) as e:
            if self.config.strict_change_check:
                raise UncommittedChangesError(
                    f"cannot determine whether polecat {name!r} has uncommitted changes: {e}"
                ) from e
            logger.warning(f"Change check failed for polecat {name}, assuming clean: {e}")
            return False

    def _rollback(self, polecat_path: Path) -> None:
        logger.debug(f"Rolling back partially created workspace {polecat_path}")
        shutil.rmtree(polecat_path, ignore_errors=True)

    # ========================================================================
    # Queries
    # ========================================================================

    def get(self, name: str) -> Polecat:
        """
        Return the current record of a polecat.

        Raises:
            PolecatNotFoundError: If the polecat does not exist
            PersistenceError: If the state file is unreadable or corrupt
        """
        self._require(name)
        return self._load(name)

    def list(self) -> List[Polecat]:
        """
        List all polecats in the rig, ordered by name.

        Entries that are not directories are ignored; polecats whose record
        cannot be loaded are skipped with a warning.
        """
        if not self.root.is_dir():
            return []

        polecats = []
        for entry in sorted(self.root.iterdir(), key=lambda p: p.name):
            if not entry.is_dir() or entry.name.startswith("."):
                continue
            try:
                polecats.append(self.get(entry.name))
            except (PersistenceError, PolecatNotFoundError) as e:
                logger.warning(f"Skipping polecat {entry.name}: {e}")

        return polecats

    def find_by_issue(self, issue: str) -> Optional[Polecat]:
        """Return the polecat carrying issue, if any."""
        for polecat in self.list():
            if issue and polecat.issue == issue:
                return polecat
        return None

    # ========================================================================
    # State Transitions
    # ========================================================================

    def set_state(self, name: str, state: State) -> Polecat:
        """
        Override a polecat's state without any guard.

        Working, done and stuck polecats keep their issue. Forcing idle or active
        drops it: an available polecat carries no issue.
        """
        state = State(state)
        issue = "" if state.is_available() else None
        return self._transition(name, Transition.SET, target=state, issue=issue)

    def assign_issue(self, name: str, issue: str) -> Polecat:
        """Assign an issue, moving the polecat to working from any state."""
        if not issue:
            raise ValueError("issue must not be empty")
        return self._transition(name, Transition.ASSIGN, issue=issue)

    def clear_issue(self, name: str) -> Polecat:
        """Drop the assigned issue and return the polecat to idle from any state."""
        return self._transition(name, Transition.CLEAR, issue="")

    def wake(self, name: str) -> Polecat:
        """Transition a polecat from idle to active."""
        return self._transition(name, Transition.WAKE)

    def sleep(self, name: str) -> Polecat:
        """Transition a polecat from active to idle."""
        return self._transition(name, Transition.SLEEP)

    def _transition(
        self,
        name: str,
        transition: Transition,
        target: Optional[State] = None,
        issue: Optional[str] = None,
    ) -> Polecat:
        # A missing polecat must not create the agents root
        self._require(name)
        with self.lock:
            polecat = self.get(name)
            previous = polecat.state

            polecat.state = apply_transition(name, previous, transition, target)
            if issue is not None:
                polecat.issue = issue
            polecat.touch()

            self._save(polecat)

        logger.info(f"Polecat {name}: {transition.value} {previous.value} -> {polecat.state.value}"
                    + (f" (issue {polecat.issue})" if polecat.issue else ""))
        return polecat

    # ========================================================================
    # Persistence
    # ========================================================================

    def _save(self, polecat: Polecat) -> None:
        """Persist a polecat record (atomic replace)."""
        write_json_atomic(self.state_file(polecat.name), polecat.to_dict())

    def _load(self, name: str) -> Polecat:
        """Read a polecat record, synthesizing a bare one if the file is missing."""
        polecat_path = self.polecat_dir(name)
        data = read_json(self.state_file(name))

        if data is None:
            logger.debug(f"No state file for polecat {name}, using bare idle record")
            return Polecat(
                name=name,
                rig=self.rig.name,
                state=State.IDLE,
                clone_path=polecat_path,
                branch=self.branch_name(name),
            )

        stored_path = data.get("clone_path")
        if stored_path and Path(stored_path) != polecat_path:
            logger.debug(f"Polecat {name} recorded clone_path {stored_path}, using {polecat_path}")
        data = {**data, "name": name, "clone_path": str(polecat_path)}

        try:
            return Polecat.from_dict(data)
        except ValidationError as e:
            raise PersistenceError(f"Invalid state file for polecat {name}: {e}") from e
