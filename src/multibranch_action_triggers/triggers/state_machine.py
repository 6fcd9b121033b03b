from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class DispatchState(str, Enum):
    RECEIVED = "received"
    ANCESTRY_RESOLVED = "ancestry_resolved"
    FILTER_EVALUATED = "filter_evaluated"
    PARAMETERS_RECONCILED = "parameters_reconciled"
    DISPATCHED = "dispatched"
    SKIPPED = "skipped"


TERMINAL_STATES: frozenset[DispatchState] = frozenset(
    {DispatchState.DISPATCHED, DispatchState.SKIPPED}
)

ALLOWED_TRANSITIONS: dict[DispatchState, set[DispatchState]] = {
    DispatchState.RECEIVED: {DispatchState.ANCESTRY_RESOLVED, DispatchState.SKIPPED},
    DispatchState.ANCESTRY_RESOLVED: {DispatchState.FILTER_EVALUATED, DispatchState.SKIPPED},
    DispatchState.FILTER_EVALUATED: {DispatchState.PARAMETERS_RECONCILED, DispatchState.SKIPPED},
    DispatchState.PARAMETERS_RECONCILED: {DispatchState.DISPATCHED, DispatchState.SKIPPED},
    DispatchState.DISPATCHED: set(),
    DispatchState.SKIPPED: set(),
}


class SkipReason(str, Enum):
    NOT_A_CHILD = "not_a_child"
    NO_PROPERTY = "no_property"
    EXCLUDED = "excluded"
    NOT_INCLUDED = "not_included"
    ERROR = "error"


class IllegalTransitionError(ValueError):
    pass


def transition(*, current: DispatchState, to: DispatchState) -> DispatchState:
    allowed = ALLOWED_TRANSITIONS.get(current, set())
    if to not in allowed:
        raise IllegalTransitionError(f"Illegal transition: {current.value} -> {to.value}")
    return to


@dataclass(slots=True)
class DispatchTrace:
    """States visited while handling one lifecycle event."""

    state: DispatchState = DispatchState.RECEIVED
    history: list[DispatchState] = field(default_factory=lambda: [DispatchState.RECEIVED])

    def advance(self, to: DispatchState) -> None:
        self.state = transition(current=self.state, to=to)
        self.history.append(self.state)

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES
