"""Election configuration.

Configuration lives in a config directory holding `election.json`:

    {
      "election": {
        "admin_name": "...", "admin_email": "...", "admin_title": "...",
        "election_title": "...", "organization_title": "..."
      },
      "admin": "0x...",
      "data_dir": "data",
      "log_level": "INFO"
    }

Environment variables (optionally loaded from a .env file) override the
file: BALLOTBOX_ADMIN, BALLOTBOX_DATA_DIR, BALLOTBOX_LOG_LEVEL. A relative
data_dir is resolved against the config directory's parent.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from ballotbox.models.election import ElectionDetails

CONFIG_FILENAME = "election.json"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ElectionConfig:
    """Resolved configuration for one election instance."""
    details: ElectionDetails
    admin: str
    data_dir: Path
    log_level: str = "INFO"

    @property
    def ledger_path(self) -> Path:
        return self.data_dir / "events.jsonl"

    @staticmethod
    def from_config_dir(config_dir: Path) -> ElectionConfig:
        """Load election.json from config_dir. Environment is not consulted."""
        path = config_dir / CONFIG_FILENAME
        if not path.exists():
            raise FileNotFoundError(f"Election config not found: {path}")
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        return ElectionConfig.from_dict(data, base_dir=config_dir.resolve().parent)

    @staticmethod
    def from_dict(data: dict[str, Any], base_dir: Path) -> ElectionConfig:
        if "election" not in data:
            raise ValueError("Election config missing 'election' section")
        if "admin" not in data:
            raise ValueError("Election config missing 'admin' field")
        section = data["election"]
        if not isinstance(section, dict):
            raise ValueError("Election config 'election' must be an object")
        for key in (
            "admin_name", "admin_email", "admin_title",
            "election_title", "organization_title",
        ):
            if key not in section:
                raise ValueError(f"Election config missing 'election.{key}'")

        data_dir = Path(data.get("data_dir", "data"))
        if not data_dir.is_absolute():
            data_dir = base_dir / data_dir
        return ElectionConfig(
            details=ElectionDetails.from_dict(section),
            admin=str(data["admin"]),
            data_dir=data_dir,
            log_level=_check_level(data.get("log_level", "INFO")),
        )

    def with_overrides(
        self,
        admin: Optional[str] = None,
        data_dir: Optional[Path] = None,
        log_level: Optional[str] = None,
    ) -> ElectionConfig:
        return ElectionConfig(
            details=self.details,
            admin=admin or self.admin,
            data_dir=data_dir or self.data_dir,
            log_level=_check_level(log_level) if log_level else self.log_level,
        )


def load_config(config_dir: Path, env_file: Optional[Path] = None) -> ElectionConfig:
    """Load config_dir/election.json and apply environment overrides.

    env_file defaults to `.env` beside the config directory. Variables
    already set in the process environment win over the file.
    """
    env_path = env_file or config_dir.resolve().parent / ".env"
    load_dotenv(env_path)
    config = ElectionConfig.from_config_dir(config_dir)
    env_data_dir = os.environ.get("BALLOTBOX_DATA_DIR")
    return config.with_overrides(
        admin=os.environ.get("BALLOTBOX_ADMIN"),
        data_dir=Path(env_data_dir) if env_data_dir else None,
        log_level=os.environ.get("BALLOTBOX_LOG_LEVEL"),
    )


def _check_level(level: str) -> str:
    upper = str(level).upper()
    if upper not in _LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level!r}")
    return upper
