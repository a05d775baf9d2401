"""Election state machine — enforces the one-way phase progression.

Election lifecycle:
    NotStarted → Started → Ended

State semantics:
- NotStarted: candidates and voters are being prepared. No ballots.
- Started: ballots may be cast.
- Ended: terminal — tallies are frozen and the winner can be read.

Fail-closed: any transition not listed below is rejected, and only the
admin may request a transition.
"""

from __future__ import annotations

from ballotbox.errors import InvalidStateError
from ballotbox.governance.access_control import AccessControl
from ballotbox.models.election import ElectionState


# Valid transitions: {from_state: {allowed_to_states}}
_TRANSITIONS: dict[ElectionState, set[ElectionState]] = {
    ElectionState.NOT_STARTED: {ElectionState.STARTED},
    ElectionState.STARTED: {ElectionState.ENDED},
    # Terminal state — no outgoing transitions
    ElectionState.ENDED: set(),
}

_REJECTIONS: dict[ElectionState, str] = {
    ElectionState.STARTED: "Election already started",
    ElectionState.ENDED: "Election not started",
}


class ElectionStateMachine:
    """Tracks the election phase and gates operations by it."""

    def __init__(
        self,
        access: AccessControl,
        state: ElectionState = ElectionState.NOT_STARTED,
    ) -> None:
        self._access = access
        self._state = state

    @property
    def state(self) -> ElectionState:
        return self._state

    def start_election(self, caller: str) -> ElectionState:
        self._access.require_admin(caller)
        return self._advance(ElectionState.STARTED)

    def end_election(self, caller: str) -> ElectionState:
        self._access.require_admin(caller)
        return self._advance(ElectionState.ENDED)

    def require_state(self, *allowed: ElectionState, reason: str = "") -> None:
        """Raise InvalidStateError unless the current state is in allowed."""
        if self._state not in allowed:
            raise InvalidStateError(
                reason or f"Operation not allowed while election is {self._state.value}"
            )

    def require_not(self, forbidden: ElectionState, reason: str = "") -> None:
        if self._state == forbidden:
            raise InvalidStateError(
                reason or f"Operation not allowed while election is {self._state.value}"
            )

    def _advance(self, target: ElectionState) -> ElectionState:
        if target not in _TRANSITIONS[self._state]:
            raise InvalidStateError(
                _REJECTIONS.get(target, f"Invalid transition to {target.value}")
                + f" (current: {self._state.value})"
            )
        self._state = target
        return self._state

    @staticmethod
    def is_terminal(state: ElectionState) -> bool:
        return not _TRANSITIONS.get(state)

    @staticmethod
    def valid_transitions(state: ElectionState) -> set[ElectionState]:
        """Return the set of valid target states from the given state."""
        return set(_TRANSITIONS.get(state, set()))
