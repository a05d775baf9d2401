"""Tests for delegation — proves chains stay acyclic and weight is never lost."""

import pytest

from ballotbox.election import Election
from ballotbox.errors import (
    AlreadyVotedError,
    DelegateNotVerifiedError,
    DelegationCycleError,
    InvalidStateError,
    NotFoundError,
    NotVerifiedError,
    SelfDelegationError,
)
from ballotbox.invariants import check_invariants
from ballotbox.models.election import ElectionDetails


ADMIN = "0xadmin"


def _make_election(*addresses: str, start: bool = False) -> Election:
    election = Election(
        ElectionDetails("John Doe", "john@example.com", "Administrator", "Board 2025", "Org"),
        ADMIN,
    )
    election.add_candidate(ADMIN, "Candidate 1", "Slogan 1")
    election.add_candidate(ADMIN, "Candidate 2", "Slogan 2")
    for address in addresses:
        election.register_as_voter(address, f"Voter {address}", "555")
        election.verify_voter(ADMIN, address, True)
    if start:
        election.start_election(ADMIN)
    return election


class TestDelegateGuards:
    def test_delegate_to_verified(self) -> None:
        election = _make_election("0xv1", "0xv2")
        assert election.delegate("0xv1", "0xv2") == 0
        assert election.get_voter_details("0xv1").delegate == "0xv2"

    def test_delegate_to_unverified(self) -> None:
        election = _make_election("0xv1")
        election.register_as_voter("0xv3", "Voter Three", "1122334455")
        with pytest.raises(DelegateNotVerifiedError, match="Delegate not verified"):
            election.delegate("0xv1", "0xv3")
        assert election.get_voter_details("0xv1").delegate is None

    def test_delegate_to_unknown(self) -> None:
        election = _make_election("0xv1")
        with pytest.raises(DelegateNotVerifiedError):
            election.delegate("0xv1", "0xghost")

    def test_unverified_caller(self) -> None:
        election = _make_election("0xv2")
        election.register_as_voter("0xv1", "Voter One", "1")
        with pytest.raises(NotVerifiedError):
            election.delegate("0xv1", "0xv2")

    def test_self_delegation(self) -> None:
        election = _make_election("0xv1")
        with pytest.raises(SelfDelegationError):
            election.delegate("0xv1", " 0xv1 ")

    def test_direct_cycle(self) -> None:
        election = _make_election("0xa", "0xb")
        election.delegate("0xa", "0xb")
        with pytest.raises(DelegationCycleError):
            election.delegate("0xb", "0xa")
        assert election.get_voter_details("0xb").delegate is None

    def test_long_cycle(self) -> None:
        election = _make_election("0xa", "0xb", "0xc", "0xd")
        election.delegate("0xa", "0xb")
        election.delegate("0xb", "0xc")
        election.delegate("0xc", "0xd")
        with pytest.raises(DelegationCycleError):
            election.delegate("0xd", "0xa")
        assert check_invariants(election) == []

    def test_cannot_delegate_twice(self) -> None:
        election = _make_election("0xa", "0xb", "0xc")
        election.delegate("0xa", "0xb")
        with pytest.raises(AlreadyVotedError):
            election.delegate("0xa", "0xc")
        assert election.get_voter_details("0xa").delegate == "0xb"

    def test_cannot_delegate_after_voting(self) -> None:
        election = _make_election("0xa", "0xb", start=True)
        election.cast_vote("0xa", 0)
        with pytest.raises(AlreadyVotedError):
            election.delegate("0xa", "0xb")

    def test_cannot_delegate_after_end(self) -> None:
        election = _make_election("0xa", "0xb", start=True)
        election.end_election(ADMIN)
        with pytest.raises(InvalidStateError):
            election.delegate("0xa", "0xb")

    def test_chain_ending_at_unverified_voter(self) -> None:
        election = _make_election("0xa", "0xb", "0xc")
        election.delegate("0xb", "0xc")
        election.verify_voter(ADMIN, "0xc", False)
        with pytest.raises(DelegateNotVerifiedError, match="chain ends at 0xc"):
            election.delegate("0xa", "0xb")


class TestResolution:
    def test_resolve_chain(self) -> None:
        election = _make_election("0xa", "0xb", "0xc")
        election.delegate("0xa", "0xb")
        election.delegate("0xb", "0xc")
        assert election.resolve_delegate("0xa") == "0xc"
        assert election.resolve_delegate("0xc") == "0xc"
        assert election.delegation_chain("0xa") == ["0xa", "0xb", "0xc"]

    def test_resolve_unknown(self) -> None:
        election = _make_election("0xa")
        with pytest.raises(NotFoundError):
            election.resolve_delegate("0xghost")

    def test_chain_through_removed_voter(self) -> None:
        """Removed voters still route delegated weight they already carry."""
        election = _make_election("0xa", "0xb", "0xc")
        election.delegate("0xa", "0xb")
        election.delegate("0xb", "0xc")
        election.remove_voter(ADMIN, "0xa")
        election.remove_voter(ADMIN, "0xb")
        assert election.voter_count == 1
        assert election.resolve_delegate("0xa") == "0xc"

    def test_corrupted_cycle_detected(self) -> None:
        election = _make_election("0xa", "0xb")
        election.delegate("0xa", "0xb")
        # Bypass the guards to simulate a corrupted record.
        election._voters.get("0xb").delegate = "0xa"
        with pytest.raises(DelegationCycleError):
            election.resolve_delegate("0xa")
        with pytest.raises(DelegationCycleError):
            election.delegation_chain("0xa")


class TestForwarding:
    def test_delegate_to_voter_who_already_voted(self) -> None:
        election = _make_election("0xa", "0xb", start=True)
        election.cast_vote("0xb", 1)
        assert election.delegate("0xa", "0xb") == 1
        voter = election.get_voter_details("0xa")
        assert voter.voted is True
        assert voter.vote == 1
        assert election.get_candidate(1).vote_count == 2
        assert check_invariants(election) == []

    def test_forwarding_carries_subchain(self) -> None:
        election = _make_election("0xa", "0xb", "0xc", start=True)
        election.delegate("0xa", "0xb")
        election.cast_vote("0xc", 0)
        assert election.delegate("0xb", "0xc") == 2
        assert election.get_candidate(0).vote_count == 3
        assert election.get_voter_details("0xa").vote == 0
        assert check_invariants(election) == []

    def test_delegation_before_start_is_pending(self) -> None:
        election = _make_election("0xa", "0xb")
        assert election.delegate("0xa", "0xb") == 0
        assert election.get_voter_details("0xa").voted is False
