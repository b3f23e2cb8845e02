"""
Version-control collaborator.

Polecat workspaces are plain clones of the rig repository. The manager only
needs four operations from version control, expressed by VersionControl;
Git implements them with the git command line.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, List, Optional

from .errors import RigSwarmError

logger = logging.getLogger(__name__)


class GitError(RigSwarmError):
    """Raised when a git command fails"""
    pass


class VersionControl(ABC):
    """
    Interface for version-control operations against one workspace path.
    """

    def __init__(self, work_dir: Path):
        self.work_dir = Path(work_dir)

    @abstractmethod
    def clone(self, url: str, dest: Path) -> None:
        """Clone url into dest."""
        pass

    @abstractmethod
    def create_branch(self, name: str) -> None:
        """Create a branch at the current HEAD of work_dir."""
        pass

    @abstractmethod
    def checkout(self, name: str) -> None:
        """Check out an existing branch in work_dir."""
        pass

    @abstractmethod
    def has_uncommitted_changes(self) -> bool:
        """Return True if work_dir has local modifications."""
        pass

    def exclude(self, patterns: List[str]) -> None:
        """Keep patterns out of status for this workspace only. Optional."""
        pass


VersionControlFactory = Callable[[Path], VersionControl]


class Git(VersionControl):
    """VersionControl backed by the git executable."""

    def _run_git(self, args: List[str], cwd: Optional[Path] = None) -> subprocess.CompletedProcess:
        """Run a git command.

        Args:
            args: Git command arguments (without 'git')
            cwd: Working directory (defaults to work_dir)

        Returns:
            CompletedProcess result

        Raises:
            GitError: If git is missing or exits non-zero
        """
        cwd = cwd or self.work_dir
        logger.debug(f"git {' '.join(args)} (in {cwd})")
        try:
            return subprocess.run(
                ["git"] + args,
                cwd=cwd,
                capture_output=True,
                text=True,
                check=True
            )
        except FileNotFoundError as e:
            raise GitError(f"git executable not found: {e}") from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise GitError(f"git {args[0]} failed: {stderr or e}") from e

    def clone(self, url: str, dest: Path) -> None:
        dest = Path(dest)
        self._run_git(["clone", url, str(dest)], cwd=dest.parent)

    def create_branch(self, name: str) -> None:
        self._run_git(["branch", name])

    def checkout(self, name: str) -> None:
        self._run_git(["checkout", name])

    def has_uncommitted_changes(self) -> bool:
        result = self._run_git(["status", "--porcelain"])
        return bool(result.stdout.strip())

    def exclude(self, patterns: List[str]) -> None:
        """Append patterns to .git/info/exclude, skipping ones already present."""
        result = self._run_git(["rev-parse", "--git-path", "info/exclude"])
        exclude_file = Path(result.stdout.strip())
        if not exclude_file.is_absolute():
            exclude_file = self.work_dir / exclude_file

        exclude_file.parent.mkdir(parents=True, exist_ok=True)
        existing = exclude_file.read_text().splitlines() if exclude_file.exists() else []
        missing = [p for p in patterns if p not in existing]
        if not missing:
            return

        with open(exclude_file, "a") as f:
            if existing and existing[-1] != "":
                f.write("\n")
            f.write("\n".join(missing) + "\n")
