"""Application settings - all configuration loaded from environment variables.

Usage:
    from config.settings import Settings
    settings = Settings()
    settings.validate()   # raises ValueError on an invalid value
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Settings:
    """Centralised application configuration.

    All values are read from environment variables at instantiation time
    so that tests can override them by patching ``os.environ``.
    """

    # ── Flask ───────────────────────────────────────────────────────────────
    debug: bool = field(
        default_factory=lambda: os.environ.get("FLASK_DEBUG", "0") == "1"
    )
    port: int = field(
        default_factory=lambda: int(os.environ.get("PORT", "5000"))
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").upper()
    )

    # ── Data service ────────────────────────────────────────────────────────
    #: The SQLite file location is read by ``core.store`` from DB_PATH.
    #: Optional JSON file of insight records loaded at startup.
    seed_path: Optional[str] = field(
        default_factory=lambda: os.environ.get("SEED_PATH") or None
    )
    #: Re-push topics after every accepted command.
    emit_on_change: bool = field(
        default_factory=lambda: os.environ.get("EMIT_ON_CHANGE", "1") != "0"
    )

    def validate(self) -> None:
        """Raise ``ValueError`` if any setting is unusable."""
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"LOG_LEVEL {self.log_level!r} is not a logging level.")
        if self.seed_path and not os.path.isfile(self.seed_path):
            raise ValueError(f"SEED_PATH {self.seed_path!r} does not exist.")
