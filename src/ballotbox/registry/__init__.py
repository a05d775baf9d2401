"""Candidate and voter registries."""

from ballotbox.registry.candidates import CandidateRegistry
from ballotbox.registry.voters import VoterRegistry

__all__ = ["CandidateRegistry", "VoterRegistry"]
