"""Core data models for the election."""

from ballotbox.models.candidate import Candidate
from ballotbox.models.election import ElectionDetails, ElectionState, Winner
from ballotbox.models.voter import Voter, VoterListing

__all__ = [
    "Candidate",
    "ElectionDetails",
    "ElectionState",
    "Voter",
    "VoterListing",
    "Winner",
]
