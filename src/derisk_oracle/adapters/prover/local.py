from __future__ import annotations

import hashlib

from ...constants import DEV_SEAL_SELECTOR
from ...errors import CompactionFailure, ExecutionFailure
from ...logger import get_logger
from ...processors.safety_score import score
from ...report.encoder import decode_input, encode_journal
from .base import BaseProver, RawProof

logger = get_logger(__name__)


class LocalProver(BaseProver):
    """Development prover that scores in-process and emits an unverifiable seal.

    The seal is ``DEV_SEAL_SELECTOR`` followed by SHA-256(image_id || journal),
    which binds it to the journal for bookkeeping but proves nothing. Use it
    for dry runs and tests; submit real proofs from a proving backend.
    """

    def __init__(self, image_id: str):
        self.image_id = bytes.fromhex(image_id.removeprefix("0x"))

    @property
    def prover_name(self) -> str:
        return "local"

    async def execute(self, input_bytes: bytes) -> RawProof:
        try:
            scoring_input = decode_input(input_bytes)
        except ValueError as e:
            raise ExecutionFailure(f"Failed to decode input: {e}") from e

        journal = score(scoring_input)
        journal_bytes = encode_journal(journal)
        logger.debug(
            "Executed locally: %d reserves, journal=%s",
            len(scoring_input.reserves),
            journal_bytes.hex(),
        )
        return RawProof(
            handle=hashlib.sha256(input_bytes).hexdigest(),
            payload=journal_bytes,
            stats={"reserves": len(scoring_input.reserves)},
        )

    async def compact(self, raw_proof: RawProof) -> tuple[bytes, bytes]:
        if not raw_proof.payload:
            raise CompactionFailure(f"Raw proof {raw_proof.handle} has no journal")
        digest = hashlib.sha256(self.image_id + raw_proof.payload).digest()
        return raw_proof.payload, DEV_SEAL_SELECTOR + digest
