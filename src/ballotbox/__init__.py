"""Ballotbox — single-election core with delegated voting."""

from ballotbox.election import Election
from ballotbox.errors import ElectionError, ErrorKind
from ballotbox.models import (
    Candidate,
    ElectionDetails,
    ElectionState,
    Voter,
    VoterListing,
    Winner,
)
from ballotbox.service import ElectionService, ServiceResult

__version__ = "0.1.0"

__all__ = [
    "Candidate",
    "Election",
    "ElectionDetails",
    "ElectionError",
    "ElectionService",
    "ElectionState",
    "ErrorKind",
    "ServiceResult",
    "Voter",
    "VoterListing",
    "Winner",
]
