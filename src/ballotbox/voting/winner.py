"""Winner calculator — reads the final tally once the election has ended.

Ties go to the lowest candidate id: the scan replaces the leader only on
a strictly greater count.
"""

from __future__ import annotations

from ballotbox.errors import NotFoundError
from ballotbox.governance.state_machine import ElectionStateMachine
from ballotbox.models.election import ElectionState, Winner
from ballotbox.registry.candidates import CandidateRegistry


class WinnerCalculator:
    """Pure read over the candidate registry."""

    def __init__(
        self,
        candidates: CandidateRegistry,
        state_machine: ElectionStateMachine,
    ) -> None:
        self._candidates = candidates
        self._state_machine = state_machine

    def get_winner(self) -> Winner:
        self._state_machine.require_state(
            ElectionState.ENDED, reason="Election not ended",
        )
        candidates = self._candidates.all_candidates()
        if not candidates:
            raise NotFoundError("No candidates registered")

        leader = candidates[0]
        for candidate in candidates[1:]:
            if candidate.vote_count > leader.vote_count:
                leader = candidate
        return Winner(
            winner_id=leader.candidate_id,
            header=leader.header,
            slogan=leader.slogan,
            vote_count=leader.vote_count,
        )
