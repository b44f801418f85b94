from __future__ import annotations

import asyncio
import time
from typing import Callable

from ..adapters.chain.base import BaseChainDataSource
from ..domain import ReserveRecord, ScoringInput
from ..errors import NoReservesAvailable
from ..logger import get_logger
from ..timeouts import with_deadline

logger = get_logger(__name__)


def _process_fetch_results(
    reserve_ids: list[str],
    results: list[ReserveRecord | BaseException],
) -> list[ReserveRecord]:
    """Keep successful records in enumeration order and log the failures.

    Raises:
        NoReservesAvailable: If every fetch failed
    """
    records: list[ReserveRecord] = []
    failures: list[str] = []

    for reserve_id, result in zip(reserve_ids, results):
        if isinstance(result, BaseException):
            logger.warning("Skipping reserve %s: %s", reserve_id, result)
            failures.append(reserve_id)
        else:
            logger.debug(
                "Reserve %s: supplied=%d debt=%d price=%d decimals=%d",
                reserve_id,
                result.total_supplied,
                result.total_stable_debt + result.total_variable_debt,
                result.price_usd,
                result.decimals,
            )
            records.append(result)

    if not records:
        raise NoReservesAvailable(
            f"No reserve data could be fetched ({len(failures)} of "
            f"{len(reserve_ids)} failed)"
        )

    if failures:
        logger.warning(
            "Fetched %d of %d reserves; skipped: %s",
            len(records),
            len(reserve_ids),
            ", ".join(failures),
        )
    else:
        logger.info("Fetched all %d reserves", len(records))

    return records


class DataAggregator:
    """Builds a scoring input from a chain data source, tolerating per-reserve failures."""

    def __init__(
        self,
        protocol_name: str,
        *,
        max_concurrency: int = 5,
        fetch_timeout: float | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the aggregator.

        Args:
            protocol_name: Name recorded in the scoring input
            max_concurrency: Upper bound on in-flight reserve fetches
            fetch_timeout: Per-call deadline in seconds; None disables it
            clock: Wall-clock source for the snapshot timestamp
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.protocol_name = protocol_name
        self.max_concurrency = max_concurrency
        self.fetch_timeout = fetch_timeout
        self.clock = clock

    async def collect(self, source: BaseChainDataSource) -> ScoringInput:
        """Fetch every reserve from ``source``.

        Raises:
            FetchError: If the reserve list itself cannot be read
            Timeout: If listing reserves exceeds the deadline
            NoReservesAvailable: If no reserve could be fetched
        """
        logger.info("Fetching reserve list from %s...", source.source_name)
        reserve_ids = await with_deadline(
            source.list_reserve_ids(),
            self.fetch_timeout,
            stage="fetch",
            what="Listing reserves",
        )
        logger.info("Found %d reserves", len(reserve_ids))

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def fetch_one(reserve_id: str) -> ReserveRecord:
            async with semaphore:
                return await with_deadline(
                    source.fetch_record(reserve_id),
                    self.fetch_timeout,
                    stage="fetch",
                    what=f"Fetching reserve {reserve_id}",
                )

        results = await asyncio.gather(
            *[fetch_one(reserve_id) for reserve_id in reserve_ids],
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, BaseException) and not isinstance(
                result, Exception
            ):
                raise result

        records = _process_fetch_results(reserve_ids, list(results))

        return ScoringInput(
            reserves=tuple(records),
            protocol_name=self.protocol_name,
            timestamp=int(self.clock()),
        )
