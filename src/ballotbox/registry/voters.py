"""Voter registry — registration, verification, and removal.

The registry is the source of truth for who may take part in the
election. Voters self-register; only the admin verifies or removes them.

Invariants enforced:
- A registered voter cannot register again.
- Removal revokes future participation only. Name, phone, and any
  recorded vote are kept, and tallies are never adjusted.
- Re-registration after removal replaces name and phone with the new
  values. Earlier values stay in the ledger's voter_registered events.
- voter_count equals the number of voters currently registered.
- The voter list keeps first-registration order and includes removed
  voters.

Thread-safety: this class is not thread-safe. The service layer
serialises all mutations.
"""

from __future__ import annotations

from typing import Optional

from ballotbox.errors import (
    AlreadyRegisteredError,
    NotFoundError,
    ValidationError,
    canonical_identity,
    require_text,
)
from ballotbox.governance.access_control import AccessControl
from ballotbox.models.voter import Voter, VoterListing


class VoterRegistry:
    """Registry of every voter that ever registered."""

    def __init__(self, access: AccessControl) -> None:
        self._access = access
        # dict preserves insertion order, which is registration order
        self._voters: dict[str, Voter] = {}
        self._voter_count = 0

    def register_as_voter(self, caller: str, name: str, phone: str) -> Voter:
        """Register the caller.

        A previously removed voter may register again. Its record is
        reactivated unverified with the new name and phone. Its ballot
        history (voted, vote, delegate) is kept.
        """
        address = canonical_identity(caller)
        existing = self._voters.get(address)
        if existing is not None and existing.is_registered:
            raise AlreadyRegisteredError(f"Already registered: {address}")
        require_text(name, "Name")
        require_text(phone, "Phone")

        if existing is None:
            voter = Voter(address=address, name=name, phone=phone)
            self._voters[address] = voter
        else:
            voter = existing
            voter.name = name
            voter.phone = phone
            voter.is_registered = True
            voter.is_verified = False
        self._voter_count += 1
        return voter

    def verify_voter(self, caller: str, address: str, status: bool) -> Voter:
        self._access.require_admin(caller)
        if not isinstance(status, bool):
            raise ValidationError(
                f"Verification status must be true or false, got {status!r}"
            )
        voter = self._require_registered(address)
        voter.is_verified = status
        return voter

    def remove_voter(self, caller: str, address: str) -> Voter:
        self._access.require_admin(caller)
        voter = self._require_registered(address)
        voter.is_registered = False
        self._voter_count -= 1
        return voter

    def get_voter_details(self, address: str) -> Voter:
        voter = self.get(address)
        if voter is None:
            raise NotFoundError(f"Voter not found: {address}")
        return voter

    def get_voter_list(self) -> list[VoterListing]:
        return [
            VoterListing(
                address=v.address,
                name=v.name,
                phone=v.phone,
                is_verified=v.is_verified,
            )
            for v in self._voters.values()
        ]

    def get(self, address: str) -> Optional[Voter]:
        """Look up a voter by address. Returns None if never registered."""
        if not isinstance(address, str):
            return None
        return self._voters.get(address.strip())

    def all_voters(self) -> list[Voter]:
        return list(self._voters.values())

    @property
    def voter_count(self) -> int:
        """Voters currently registered."""
        return self._voter_count

    @property
    def record_count(self) -> int:
        """Voter records ever created, removed ones included."""
        return len(self._voters)

    def _require_registered(self, address: str) -> Voter:
        voter = self.get(address)
        if voter is None or not voter.is_registered:
            raise NotFoundError(f"Voter not registered: {address}")
        return voter
