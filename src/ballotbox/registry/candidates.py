"""Candidate registry — sequentially numbered, append-only.

Candidates are added by the admin before the election ends and are
never removed. Ids start at 0 and follow insertion order.
"""

from __future__ import annotations

from ballotbox.errors import NotFoundError, ValidationError, require_text
from ballotbox.governance.access_control import AccessControl
from ballotbox.governance.state_machine import ElectionStateMachine
from ballotbox.models.candidate import Candidate
from ballotbox.models.election import ElectionState


class CandidateRegistry:
    """Stores and serves candidate records."""

    def __init__(
        self,
        access: AccessControl,
        state_machine: ElectionStateMachine,
    ) -> None:
        self._access = access
        self._state_machine = state_machine
        self._candidates: list[Candidate] = []

    def add_candidate(self, caller: str, header: str, slogan: str) -> int:
        """Append a candidate. Returns the new candidate count."""
        self._access.require_admin(caller)
        require_text(header, "Header")
        require_text(slogan, "Slogan")
        self._state_machine.require_not(
            ElectionState.ENDED, "Cannot add candidates after the election ended",
        )
        self._candidates.append(
            Candidate(
                candidate_id=len(self._candidates),
                header=header,
                slogan=slogan,
            )
        )
        return len(self._candidates)

    def get_candidate(self, candidate_id: int) -> Candidate:
        if isinstance(candidate_id, bool) or not isinstance(candidate_id, int):
            raise ValidationError(f"Candidate id must be an integer, got {candidate_id!r}")
        if not (0 <= candidate_id < len(self._candidates)):
            raise NotFoundError(f"Candidate not found: {candidate_id}")
        return self._candidates[candidate_id]

    def get_total_candidates(self) -> int:
        return len(self._candidates)

    def all_candidates(self) -> list[Candidate]:
        return list(self._candidates)

    def increment_vote(self, candidate_id: int, weight: int = 1) -> int:
        """Add weight to a candidate's tally. Internal to the voting engine."""
        if weight < 1:
            raise ValueError(f"Vote weight must be positive, got {weight}")
        candidate = self.get_candidate(candidate_id)
        candidate.vote_count += weight
        return candidate.vote_count

    def total_votes(self) -> int:
        return sum(c.vote_count for c in self._candidates)
