"""
Polecat Module

Lifecycle management for polecats: ephemeral worker agents, each bound to
its own clone of a rig on a dedicated branch.

Key Components:
- Polecat: Persisted record of one polecat
- State: Lifecycle states and the availability predicate
- TRANSITIONS: The state machine, one rule per named transition
- PolecatManager: Create, remove, query and transition polecats
"""

from .schema import (
    State,
    Polecat,
    Summary,
)

from .lifecycle import (
    Transition,
    TransitionRule,
    TRANSITIONS,
    apply_transition,
    allowed_transitions,
)

from .manager import (
    PolecatManager,
    validate_name,
)

__all__ = [
    # Schema
    "State",
    "Polecat",
    "Summary",

    # State machine
    "Transition",
    "TransitionRule",
    "TRANSITIONS",
    "apply_transition",
    "allowed_transitions",

    # Manager
    "PolecatManager",
    "validate_name",
]
