"""
Polecat state machine.

All transition rules live in TRANSITIONS. Each named transition declares the
source states it accepts (None meaning any state) and the state it produces
(None meaning the caller supplies the target, as for SET).
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional

from ..errors import InvalidTransitionError
from .schema import State


class Transition(str, Enum):
    """Named operations that change a polecat's state."""
    WAKE = "wake"
    SLEEP = "sleep"
    ASSIGN = "assign"
    CLEAR = "clear"
    SET = "set"


@dataclass(frozen=True)
class TransitionRule:
    sources: Optional[FrozenSet[State]]
    target: Optional[State]

    def allows(self, state: State) -> bool:
        return self.sources is None or state in self.sources


TRANSITIONS: dict[Transition, TransitionRule] = {
    Transition.WAKE: TransitionRule(frozenset({State.IDLE}), State.ACTIVE),
    Transition.SLEEP: TransitionRule(frozenset({State.ACTIVE}), State.IDLE),
    Transition.ASSIGN: TransitionRule(None, State.WORKING),
    Transition.CLEAR: TransitionRule(None, State.IDLE),
    Transition.SET: TransitionRule(None, None),
}


def apply_transition(
    name: str,
    current: State,
    transition: Transition,
    target: Optional[State] = None,
) -> State:
    """
    Compute the state that results from applying a transition.

    Args:
        name: Polecat name, for error reporting
        current: State before the transition
        transition: Which transition to apply
        target: Target state, required for Transition.SET and ignored otherwise

    Returns:
        The resulting state

    Raises:
        InvalidTransitionError: If current is not an allowed source state
        ValueError: If SET is applied without a target
    """
    rule = TRANSITIONS[transition]
    if not rule.allows(current):
        allowed = [s.value for s in rule.sources] if rule.sources else None
        raise InvalidTransitionError(name, transition.value, current.value, allowed)

    if rule.target is not None:
        return rule.target
    if target is None:
        raise ValueError(f"transition {transition.value!r} requires a target state")
    return State(target)


def allowed_transitions(current: State) -> list[Transition]:
    """Transitions that may be applied from current, in declaration order."""
    return [t for t, rule in TRANSITIONS.items() if rule.allows(current)]
