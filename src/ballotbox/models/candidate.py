"""Candidate record."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Candidate:
    """A candidate on the ballot.

    Candidates are never deleted. vote_count is mutated only by the
    voting engine.
    """
    candidate_id: int
    header: str
    slogan: str
    vote_count: int = 0
