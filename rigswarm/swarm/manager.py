"""
Swarm coordination.

SwarmManager matches pending issues to available polecats of one rig. Pool
membership is never cached: every call enumerates the agents root, so a
coordinator restarted after a crash sees exactly what is on disk.

assign_next runs its select-then-assign sequence under the rig lock, so two
callers (threads or processes) can never pick the same polecat, and an issue
can never end up on two polecats.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from ..config import SwarmConfig
from ..errors import IssueAlreadyAssignedError, NoAvailablePolecatError
from ..polecat.manager import PolecatManager
from ..polecat.schema import Polecat, State
from ..rig import Rig
from .schema import SwarmStatus

logger = logging.getLogger(__name__)

# Bare polecats (no recorded creation time) are treated as the oldest
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def assignment_order(polecat: Polecat) -> tuple:
    """Sort key: oldest created_at first, ties broken by name."""
    return (polecat.created_at or _OLDEST, polecat.name)


class SwarmManager:
    """
    Coordinates work assignment across the polecats of one rig.

    Features:
    - Deterministic, fair selection (creation order)
    - At most one issue per polecat and one polecat per issue
    - Stateless over restarts: the agents root is the only source of truth
    """

    def __init__(
        self,
        rig: Rig,
        polecats: Optional[PolecatManager] = None,
        config: Optional[SwarmConfig] = None,
    ):
        """
        Initialize the swarm manager.

        Args:
            rig: Rig whose pool is coordinated
            polecats: Polecat manager to use; built for the rig when omitted
            config: Settings passed to a newly built polecat manager
        """
        self.rig = rig
        self.work_dir = rig.path
        self.polecats = polecats or PolecatManager(rig, config=config)

    def available(self) -> List[Polecat]:
        """Available polecats in assignment order."""
        pool = self.polecats.list()
        return sorted((p for p in pool if p.state.is_available()), key=assignment_order)

    def assign_next(self, issue: str) -> Polecat:
        """
        Assign an issue to the next available polecat.

        Args:
            issue: Opaque issue identifier

        Returns:
            The polecat now working on issue

        Raises:
            IssueAlreadyAssignedError: If some polecat already carries issue
            NoAvailablePolecatError: If no polecat is idle or active
        """
        if not issue:
            raise ValueError("issue must not be empty")

        with self.polecats.lock:
            pool = self.polecats.list()

            for polecat in pool:
                if polecat.issue == issue:
                    raise IssueAlreadyAssignedError(issue, polecat.name)

            candidates = sorted((p for p in pool if p.state.is_available()), key=assignment_order)
            if not candidates:
                raise NoAvailablePolecatError(
                    f"no available polecat in rig {self.rig.name!r} for issue {issue!r} "
                    f"({len(pool)} polecat(s), none idle or active)"
                )

            chosen = self.polecats.assign_issue(candidates[0].name, issue)

        logger.info(f"Assigned {issue} to polecat {chosen.name} in rig {self.rig.name}")
        return chosen

    def release(self, name: str) -> Polecat:
        """Return a polecat to the pool, clearing its issue."""
        return self.polecats.clear_issue(name)

    def mark_stuck(self, name: str) -> Polecat:
        """Flag a polecat as needing assistance. Its issue is kept."""
        return self.polecats.set_state(name, State.STUCK)

    def mark_done(self, name: str) -> Polecat:
        """Flag a polecat as finished. Its issue is kept until release."""
        return self.polecats.set_state(name, State.DONE)

    def status(self) -> SwarmStatus:
        """Snapshot of the pool: counts by state plus per-polecat summaries."""
        pool = self.polecats.list()

        status = SwarmStatus(rig=self.rig.name, total=len(pool))
        for polecat in pool:
            status.counts[polecat.state] += 1
            status.polecats.append(polecat.summary())
        status.available = sum(1 for p in pool if p.state.is_available())

        return status
