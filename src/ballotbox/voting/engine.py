"""Voting engine — casts ballots and updates tallies.

Weighted delegation: a ballot cast by voter V carries weight
1 + (number of pending delegators whose chain resolves to V). V and each
of those delegators are marked voted for the same candidate, so every
eligible voter contributes exactly one unit of weight, directly or
through delegation.

When a voter delegates to a chain whose terminal has already voted, the
delegated weight is forwarded to that terminal's candidate at once.
"""

from __future__ import annotations

from ballotbox.errors import AlreadyVotedError, NotVerifiedError
from ballotbox.governance.state_machine import ElectionStateMachine
from ballotbox.models.election import ElectionState
from ballotbox.models.voter import Voter
from ballotbox.registry.candidates import CandidateRegistry
from ballotbox.registry.voters import VoterRegistry
from ballotbox.voting.delegation import Delegation, DelegationResolver


class VotingEngine:
    """The only component that mutates candidate tallies."""

    def __init__(
        self,
        voters: VoterRegistry,
        candidates: CandidateRegistry,
        resolver: DelegationResolver,
        state_machine: ElectionStateMachine,
    ) -> None:
        self._voters = voters
        self._candidates = candidates
        self._resolver = resolver
        self._state_machine = state_machine

    def cast_vote(self, caller: str, candidate_id: int) -> int:
        """Cast the caller's ballot. Returns the weight counted."""
        self._state_machine.require_state(
            ElectionState.STARTED, reason="Election is not in progress",
        )
        voter = self._voters.get(caller)
        if voter is None or not voter.is_eligible():
            raise NotVerifiedError("Not verified to vote")
        if voter.voted:
            raise AlreadyVotedError("Already voted")
        if voter.delegate is not None:
            raise AlreadyVotedError(f"Voting right delegated to {voter.delegate}")
        self._candidates.get_candidate(candidate_id)

        ballots = [voter] + self._resolver.pending_delegators(voter.address)
        return self._count(ballots, candidate_id)

    def forward_delegation(self, delegation: Delegation) -> int:
        """Count a fresh delegation to a terminal that already voted.

        Returns the weight forwarded, or 0 when the terminal has not
        voted yet and the weight stays pending.
        """
        terminal = delegation.terminal
        if not terminal.voted or terminal.vote is None:
            return 0
        ballots = [v for v in delegation.carried if not v.voted]
        return self._count(ballots, terminal.vote)

    def _count(self, ballots: list[Voter], candidate_id: int) -> int:
        weight = len(ballots)
        self._candidates.increment_vote(candidate_id, weight)
        for ballot in ballots:
            ballot.voted = True
            ballot.vote = candidate_id
        return weight
