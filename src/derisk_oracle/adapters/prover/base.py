from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RawProof:
    """Large intermediate proof produced by the execution stage.

    ``handle`` identifies the proof to the backend that produced it; ``payload``
    carries backend-specific bytes when the proof is held locally.
    """

    handle: str
    payload: bytes = b""
    stats: dict[str, Any] = field(default_factory=dict, hash=False)


class BaseProver(ABC):
    """Two-stage verifiable-execution backend."""

    @property
    @abstractmethod
    def prover_name(self) -> str:
        """Return the name of this prover."""
        ...

    @abstractmethod
    async def execute(self, input_bytes: bytes) -> RawProof:
        """Run the scoring program on encoded input and prove the execution.

        Raises:
            ExecutionFailure: If the program or its proof cannot be produced
        """
        ...

    @abstractmethod
    async def compact(self, raw_proof: RawProof) -> tuple[bytes, bytes]:
        """Compress a raw proof into (journal_bytes, compact_seal).

        Raises:
            CompactionFailure: If compaction fails
        """
        ...
