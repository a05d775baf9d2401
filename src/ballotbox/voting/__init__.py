"""Ballot casting, delegation, and winner determination."""

from ballotbox.voting.delegation import Delegation, DelegationResolver
from ballotbox.voting.engine import VotingEngine
from ballotbox.voting.winner import WinnerCalculator

__all__ = ["Delegation", "DelegationResolver", "VotingEngine", "WinnerCalculator"]
