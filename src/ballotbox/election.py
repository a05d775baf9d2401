"""Election aggregate — one election, its admin, registries, and tallies.

The aggregate wires the components together and is the only handle
callers hold. Commands raise ElectionError subclasses on any guard
failure, and every guard runs before the first mutation, so a rejected
command leaves the aggregate untouched.

Read methods return copies so a caller cannot mutate committed state.
"""

from __future__ import annotations

import copy

from ballotbox.governance.access_control import AccessControl
from ballotbox.governance.state_machine import ElectionStateMachine
from ballotbox.models.candidate import Candidate
from ballotbox.models.election import ElectionDetails, ElectionState, Winner
from ballotbox.models.voter import Voter, VoterListing
from ballotbox.registry.candidates import CandidateRegistry
from ballotbox.registry.voters import VoterRegistry
from ballotbox.voting.delegation import DelegationResolver
from ballotbox.voting.engine import VotingEngine
from ballotbox.voting.winner import WinnerCalculator


class Election:
    """A single election instance.

    Usage:
        election = Election(details, admin="0xadmin")
        election.add_candidate("0xadmin", "Alice", "Forward")
        election.register_as_voter("0xv1", "Voter One", "555-0101")
        election.verify_voter("0xadmin", "0xv1", True)
        election.start_election("0xadmin")
        election.cast_vote("0xv1", 0)
        election.end_election("0xadmin")
        winner = election.get_winner()
    """

    def __init__(self, details: ElectionDetails, admin: str) -> None:
        self._details = details
        self._access = AccessControl(admin)
        self._state_machine = ElectionStateMachine(self._access)
        self._candidates = CandidateRegistry(self._access, self._state_machine)
        self._voters = VoterRegistry(self._access)
        self._resolver = DelegationResolver(self._voters, self._state_machine)
        self._engine = VotingEngine(
            self._voters, self._candidates, self._resolver, self._state_machine,
        )
        self._winner = WinnerCalculator(self._candidates, self._state_machine)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_election(self, caller: str) -> ElectionState:
        return self._state_machine.start_election(caller)

    def end_election(self, caller: str) -> ElectionState:
        return self._state_machine.end_election(caller)

    def transfer_admin(self, caller: str, new_admin: str) -> str:
        return self._access.transfer_admin(caller, new_admin)

    def add_candidate(self, caller: str, header: str, slogan: str) -> int:
        return self._candidates.add_candidate(caller, header, slogan)

    def register_as_voter(self, caller: str, name: str, phone: str) -> int:
        """Register the caller. Returns the new voter count."""
        self._voters.register_as_voter(caller, name, phone)
        return self._voters.voter_count

    def verify_voter(self, caller: str, address: str, status: bool) -> bool:
        return self._voters.verify_voter(caller, address, status).is_verified

    def remove_voter(self, caller: str, address: str) -> int:
        """Revoke a voter's registration. Returns the new voter count."""
        self._voters.remove_voter(caller, address)
        return self._voters.voter_count

    def delegate(self, caller: str, to: str) -> int:
        """Delegate the caller's ballot.

        Returns the weight counted immediately (non-zero only when the
        chain ends at a voter who has already voted).
        """
        delegation = self._resolver.delegate(caller, to)
        return self._engine.forward_delegation(delegation)

    def cast_vote(self, caller: str, candidate_id: int) -> int:
        """Cast the caller's ballot. Returns the weight counted."""
        return self._engine.cast_vote(caller, candidate_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_election_details(self) -> ElectionDetails:
        return self._details

    def get_election_state(self) -> ElectionState:
        return self._state_machine.state

    @property
    def admin(self) -> str:
        return self._access.admin

    def is_admin(self, identity: str) -> bool:
        return self._access.is_admin(identity)

    def get_total_candidates(self) -> int:
        return self._candidates.get_total_candidates()

    def get_candidate(self, candidate_id: int) -> Candidate:
        return copy.copy(self._candidates.get_candidate(candidate_id))

    def candidates(self) -> list[Candidate]:
        return [copy.copy(c) for c in self._candidates.all_candidates()]

    def get_voter_details(self, address: str) -> Voter:
        return copy.copy(self._voters.get_voter_details(address))

    def get_voter_list(self) -> list[VoterListing]:
        return self._voters.get_voter_list()

    def voters(self) -> list[Voter]:
        return [copy.copy(v) for v in self._voters.all_voters()]

    @property
    def voter_count(self) -> int:
        return self._voters.voter_count

    def resolve_delegate(self, address: str) -> str:
        """Address of the voter who will cast address's ballot."""
        return self._resolver.resolve(address).address

    def delegation_chain(self, address: str) -> list[str]:
        return self._resolver.chain(address)

    def get_winner(self) -> Winner:
        return self._winner.get_winner()
