from __future__ import annotations

from ..adapters.prover.base import BaseProver
from ..constants import DEFAULT_SEAL_MAX_BYTES, DEFAULT_SEAL_MIN_BYTES
from ..domain import Journal, ProofArtifact, ScoringInput
from ..errors import CompactionFailure, ExecutionFailure, OracleError
from ..logger import get_logger
from ..report.encoder import decode_journal, encode_input
from ..timeouts import with_deadline

logger = get_logger(__name__)


class VerifiableExecutionAdapter:
    """Runs the scoring program under a prover and extracts (journal, proof).

    Proving is two sequential stages with distinct failure kinds:
    execution (``ExecutionFailure``) then compaction (``CompactionFailure``).
    """

    def __init__(
        self,
        prover: BaseProver,
        *,
        seal_size_range: tuple[int, int] = (
            DEFAULT_SEAL_MIN_BYTES,
            DEFAULT_SEAL_MAX_BYTES,
        ),
        execute_timeout: float | None = None,
        compact_timeout: float | None = None,
    ):
        self.prover = prover
        self.seal_size_range = seal_size_range
        self.execute_timeout = execute_timeout
        self.compact_timeout = compact_timeout

    async def run(self, scoring_input: ScoringInput) -> tuple[Journal, ProofArtifact]:
        """Prove the score of ``scoring_input``.

        Raises:
            ExecutionFailure: If encoding or the execution stage fails
            CompactionFailure: If compaction fails or yields an unreadable journal
            ArithmeticOverflow: If the prover reports overflow while scoring
            Timeout: If a stage exceeds its deadline
        """
        try:
            input_bytes = encode_input(scoring_input)
        except ValueError as e:
            raise ExecutionFailure(f"Failed to encode input: {e}") from e

        logger.info(
            "Executing scoring program with %s prover (%d reserves, %d input bytes)...",
            self.prover.prover_name,
            len(scoring_input.reserves),
            len(input_bytes),
        )
        try:
            raw_proof = await with_deadline(
                self.prover.execute(input_bytes),
                self.execute_timeout,
                stage="execute",
                what="Proof execution",
            )
        except OracleError:
            raise
        except Exception as e:
            raise ExecutionFailure(f"Prover execution failed: {e}") from e
        logger.info("Execution proof ready (%s)", raw_proof.handle)
        if raw_proof.stats:
            logger.debug("Execution stats: %s", raw_proof.stats)

        logger.info("Compacting proof...")
        try:
            journal_bytes, seal = await with_deadline(
                self.prover.compact(raw_proof),
                self.compact_timeout,
                stage="compact",
                what="Proof compaction",
            )
        except OracleError:
            raise
        except Exception as e:
            raise CompactionFailure(f"Prover compaction failed: {e}") from e

        try:
            journal = decode_journal(journal_bytes)
        except ValueError as e:
            raise CompactionFailure(f"Prover returned an invalid journal: {e}") from e

        self._check_seal_size(seal)

        return journal, ProofArtifact(
            seal=bytes(seal),
            journal_bytes=bytes(journal_bytes),
            receipt={
                "prover": self.prover.prover_name,
                "handle": raw_proof.handle,
                "stats": raw_proof.stats,
            },
        )

    def _check_seal_size(self, seal: bytes) -> None:
        low, high = self.seal_size_range
        if not low <= len(seal) <= high:
            logger.warning(
                "Seal size %d bytes is outside the expected compact range %d-%d bytes",
                len(seal),
                low,
                high,
            )
        else:
            logger.info("Seal size %d bytes", len(seal))
