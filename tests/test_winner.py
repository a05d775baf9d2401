"""Tests for winner determination."""

import pytest

from ballotbox.election import Election
from ballotbox.errors import InvalidStateError, NotFoundError
from ballotbox.models.election import ElectionDetails, Winner


ADMIN = "0xadmin"


def _make_election(*headers: str) -> Election:
    election = Election(
        ElectionDetails("John Doe", "john@example.com", "Administrator", "Board 2025", "Org"),
        ADMIN,
    )
    for index, header in enumerate(headers):
        election.add_candidate(ADMIN, header, f"Slogan {index + 1}")
    return election


def _vote(election: Election, address: str, candidate_id: int) -> None:
    election.register_as_voter(address, f"Voter {address}", "555")
    election.verify_voter(ADMIN, address, True)
    election.cast_vote(address, candidate_id)


class TestPhaseGate:
    def test_before_start(self) -> None:
        election = _make_election("A", "B")
        with pytest.raises(InvalidStateError, match="Election not ended"):
            election.get_winner()

    def test_while_started(self) -> None:
        election = _make_election("A", "B")
        election.start_election(ADMIN)
        with pytest.raises(InvalidStateError, match="Election not ended"):
            election.get_winner()

    def test_no_candidates(self) -> None:
        election = _make_election()
        election.start_election(ADMIN)
        election.end_election(ADMIN)
        with pytest.raises(NotFoundError):
            election.get_winner()


class TestSelection:
    def test_majority_wins(self) -> None:
        election = _make_election("Candidate 1", "Candidate 2")
        election.start_election(ADMIN)
        _vote(election, "0xv1", 0)
        _vote(election, "0xv2", 0)
        _vote(election, "0xv3", 1)
        election.end_election(ADMIN)
        assert election.get_winner() == Winner(
            winner_id=0, header="Candidate 1", slogan="Slogan 1", vote_count=2,
        )

    def test_tie_goes_to_lowest_id(self) -> None:
        election = _make_election("A", "B", "C")
        election.start_election(ADMIN)
        _vote(election, "0xv1", 1)
        _vote(election, "0xv2", 2)
        election.end_election(ADMIN)
        assert election.get_winner().winner_id == 1

    def test_no_votes_first_candidate_wins(self) -> None:
        election = _make_election("A", "B")
        election.start_election(ADMIN)
        election.end_election(ADMIN)
        winner = election.get_winner()
        assert winner.winner_id == 0
        assert winner.vote_count == 0

    def test_idempotent(self) -> None:
        election = _make_election("A", "B")
        election.start_election(ADMIN)
        _vote(election, "0xv1", 1)
        election.end_election(ADMIN)
        first = election.get_winner()
        assert election.get_winner() == first
        assert election.get_candidate(1).vote_count == 1


class TestDelegationScenario:
    def test_delegated_weight_decides(self) -> None:
        election = _make_election("A", "B")
        for address in ("0xv1", "0xv2"):
            election.register_as_voter(address, f"Voter {address}", "555")
            election.verify_voter(ADMIN, address, True)
        election.start_election(ADMIN)
        election.delegate("0xv2", "0xv1")
        election.cast_vote("0xv1", 0)
        assert election.get_candidate(0).vote_count == 2
        election.end_election(ADMIN)
        winner = election.get_winner()
        assert winner.winner_id == 0
        assert winner.header == "A"
        assert winner.vote_count == 2
