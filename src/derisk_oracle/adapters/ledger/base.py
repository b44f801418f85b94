from __future__ import annotations

from abc import ABC, abstractmethod

from ...domain import Confirmation


class BaseLedger(ABC):
    """Destination for proven scores."""

    @property
    @abstractmethod
    def ledger_name(self) -> str:
        """Return the name of this ledger."""
        ...

    @abstractmethod
    async def submit_score(
        self, protocol_id: str, journal_bytes: bytes, seal: bytes
    ) -> Confirmation:
        """Submit a journal and its proof; return once the ledger confirms.

        Raises:
            SubmissionFailure: If signing, broadcast or confirmation fails
        """
        ...

    @abstractmethod
    async def read_score(self, protocol_id: str) -> int:
        """Return the last confirmed score for ``protocol_id``."""
        ...
