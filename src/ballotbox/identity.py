"""Identity providers — where the calling identity comes from.

The core never derives a caller's identity itself. It asks an injected
provider, and a provider that cannot answer raises TransportError.
Authentication (signatures, wallets) is the provider's concern.
"""

from __future__ import annotations

import os
from typing import Protocol

from ballotbox.errors import TransportError

IDENTITY_ENV_VAR = "BALLOTBOX_IDENTITY"


class IdentityProvider(Protocol):
    """Supplies the identity of the current caller."""

    def current_identity(self) -> str:
        ...


class StaticIdentityProvider:
    """Always answers with one fixed identity."""

    def __init__(self, identity: str) -> None:
        self._identity = identity

    def current_identity(self) -> str:
        if not self._identity or not self._identity.strip():
            raise TransportError("Identity provider has no identity configured")
        return self._identity.strip()


class EnvironmentIdentityProvider:
    """Reads the caller identity from an environment variable."""

    def __init__(self, variable: str = IDENTITY_ENV_VAR) -> None:
        self._variable = variable

    def current_identity(self) -> str:
        value = os.environ.get(self._variable, "").strip()
        if not value:
            raise TransportError(f"No caller identity: {self._variable} is not set")
        return value
