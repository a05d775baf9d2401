"""Voter records.

A Voter is created on self-registration and never erased. Removal only
clears is_registered, so the audit trail (name, phone, recorded vote)
survives.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class Voter:
    """A voter known to the registry.

    voted and vote are set at most once and never revert.
    delegate holds the address this voter handed its ballot to, if any.
    """
    address: str
    name: str
    phone: str
    is_registered: bool = True
    is_verified: bool = False
    voted: bool = False
    vote: Optional[int] = None
    delegate: Optional[str] = None

    def is_eligible(self) -> bool:
        """A voter may act only while registered and verified."""
        return self.is_registered and self.is_verified


@dataclass(frozen=True)
class VoterListing:
    """Public row of the voter list."""
    address: str
    name: str
    phone: str
    is_verified: bool
