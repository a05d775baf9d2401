"""Election-level data models.

ElectionDetails is fixed at construction. ElectionState progression is
one-way: NotStarted → Started → Ended. No regression.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from ballotbox.errors import require_text


class ElectionState(str, enum.Enum):
    """Lifecycle phase of the election."""
    NOT_STARTED = "NotStarted"
    STARTED = "Started"
    ENDED = "Ended"


@dataclass(frozen=True)
class ElectionDetails:
    """Descriptive record of the election and its administrator.

    Invariants:
    - every field is non-empty
    - immutable after construction
    """
    admin_name: str
    admin_email: str
    admin_title: str
    election_title: str
    organization_title: str

    def __post_init__(self) -> None:
        require_text(self.admin_name, "Admin Name")
        require_text(self.admin_email, "Admin Email")
        require_text(self.admin_title, "Admin Title")
        require_text(self.election_title, "Election Title")
        require_text(self.organization_title, "Organization Title")

    def to_dict(self) -> dict[str, str]:
        return {
            "admin_name": self.admin_name,
            "admin_email": self.admin_email,
            "admin_title": self.admin_title,
            "election_title": self.election_title,
            "organization_title": self.organization_title,
        }

    @staticmethod
    def from_dict(data: dict[str, str]) -> ElectionDetails:
        return ElectionDetails(
            admin_name=data["admin_name"],
            admin_email=data["admin_email"],
            admin_title=data["admin_title"],
            election_title=data["election_title"],
            organization_title=data["organization_title"],
        )


@dataclass(frozen=True)
class Winner:
    """Outcome of a finished election."""
    winner_id: int
    header: str
    slogan: str
    vote_count: int
