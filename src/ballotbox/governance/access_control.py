"""Access control — the single admin identity and its gate.

Invariant: exactly one admin identity exists at any time. It changes
only through transfer_admin, invoked by the current admin.
"""

from __future__ import annotations

from ballotbox.errors import UnauthorizedError, canonical_identity


class AccessControl:
    """Owns the admin identity for one election."""

    def __init__(self, admin: str) -> None:
        self._admin = canonical_identity(admin, "Admin")

    @property
    def admin(self) -> str:
        return self._admin

    def is_admin(self, identity: str) -> bool:
        if not isinstance(identity, str):
            return False
        return identity.strip() == self._admin

    def require_admin(self, caller: str) -> None:
        """Raise UnauthorizedError unless caller is the admin."""
        if not self.is_admin(caller):
            raise UnauthorizedError("Only admin can perform this action")

    def transfer_admin(self, caller: str, new_admin: str) -> str:
        """Hand admin rights to new_admin. Returns the new admin identity."""
        self.require_admin(caller)
        self._admin = canonical_identity(new_admin, "New admin")
        return self._admin
