"""
Polecat Schema Definitions

A polecat is one ephemeral worker bound to an isolated clone of a rig. Its
record is persisted as <rig>/polecats/<name>/state.json.
"""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, field_validator


class State(str, Enum):
    """Lifecycle state of a polecat."""
    IDLE = "idle"  # not doing anything
    ACTIVE = "active"  # session running, no work assigned
    WORKING = "working"  # carrying an issue
    DONE = "done"  # finished its issue, awaiting release
    STUCK = "stuck"  # needs assistance

    def is_available(self) -> bool:
        """Whether a polecat in this state can be assigned new work."""
        return self in (State.IDLE, State.ACTIVE)

    def is_working(self) -> bool:
        return self is State.WORKING


# Serialized field order of state.json
RECORD_FIELDS = (
    "name", "rig", "state", "clone_path", "branch",
    "issue", "created_at", "updated_at",
)


class Summary(BaseModel):
    """Concise view of a polecat for status listings."""
    name: str
    state: State
    issue: str = ""


class Polecat(BaseModel):
    """Persisted record of one polecat."""
    name: str
    rig: str
    state: State = State.IDLE
    clone_path: Path
    branch: str = ""
    issue: str = ""  # set only while working
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator('created_at', 'updated_at')
    @classmethod
    def assume_utc(cls, v):
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator('issue', mode='before')
    @classmethod
    def none_issue_is_empty(cls, v):
        return "" if v is None else v

    def touch(self) -> None:
        """Stamp updated_at with the current time."""
        self.updated_at = datetime.now(timezone.utc)

    def summary(self) -> Summary:
        return Summary(name=self.name, state=self.state, issue=self.issue)

    def to_dict(self) -> dict:
        """Serialize for state.json; issue is omitted when empty."""
        data = self.model_dump(mode='json')
        ordered = {key: data[key] for key in RECORD_FIELDS}
        if not self.issue:
            del ordered["issue"]
        return ordered

    @classmethod
    def from_dict(cls, data: dict) -> "Polecat":
        return cls.model_validate(data)
