"""Run-wide state shared by the CLI and the pipeline stages."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .settings import OracleSettings

LOGGER_NAME = "derisk_oracle"


@dataclass
class AppState:
    """Settings and logger for one oracle run.

    Stages receive this instead of reading configuration or globals.
    """

    settings: OracleSettings
    logger: logging.Logger

    @classmethod
    def from_settings(cls, settings: OracleSettings) -> "AppState":
        """Build state with the package logger."""
        return cls(settings=settings, logger=logging.getLogger(LOGGER_NAME))

    @property
    def describe(self) -> str:
        """One-line run description used in start-up logs."""
        s = self.settings
        action = "submit" if s.submit_enabled else "dry run"
        return (
            f"{s.protocol_name} on {s.network.value} "
            f"(mode={s.mode.value}, prover={s.prover.value}, {action})"
        )
