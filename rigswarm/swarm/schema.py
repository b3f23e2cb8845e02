"""
Swarm status snapshot.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from ..polecat.schema import State, Summary


class SwarmStatus(BaseModel):
    """Read-only view of a rig's pool of polecats."""
    rig: str
    total: int = 0
    available: int = 0
    counts: dict[State, int] = Field(default_factory=lambda: {state: 0 for state in State})
    polecats: list[Summary] = Field(default_factory=list)
    taken_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return self.model_dump(mode='json')
