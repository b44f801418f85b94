from __future__ import annotations

from abc import ABC, abstractmethod

from ...domain import ReserveRecord


class BaseChainDataSource(ABC):
    """Abstract source of per-reserve lending protocol data."""

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return the name of this data source."""
        ...

    @abstractmethod
    async def list_reserve_ids(self) -> list[str]:
        """Return the identifiers of every reserve, in protocol order."""
        ...

    @abstractmethod
    async def fetch_record(self, reserve_id: str) -> ReserveRecord:
        """Fetch one reserve.

        Raises:
            FetchError: If any underlying read fails
        """
        ...
