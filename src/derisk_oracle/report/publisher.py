from __future__ import annotations

import json
import logging

from ..adapters.ledger.base import BaseLedger
from ..domain import Confirmation, Journal, ProofArtifact
from ..errors import OracleError, SubmissionFailure
from ..settings import DryRunFormat
from ..timeouts import with_deadline
from .encoder import encode_journal
from .formatter import format_summary_table
from .generator import ScoreReport

logger = logging.getLogger(__name__)


class ProofSubmitter:
    """Delivers a journal and its proof to a ledger. Submissions are never retried."""

    def __init__(
        self,
        ledger: BaseLedger,
        protocol_id: str,
        *,
        timeout: float | None = None,
    ):
        self.ledger = ledger
        self.protocol_id = protocol_id
        self.timeout = timeout

    async def submit(self, journal: Journal, proof: ProofArtifact) -> Confirmation:
        """Submit one proven score and wait for confirmation.

        Raises:
            SubmissionFailure: On any encoding, transport or confirmation failure,
                including an exceeded deadline
        """
        journal_bytes = encode_journal(journal)
        if journal_bytes != proof.journal_bytes:
            raise SubmissionFailure(
                "Journal does not match the journal bound to the proof; "
                "refusing to submit"
            )

        logger.info(
            "Submitting score %d for %s to %s (journal=%d bytes, seal=%d bytes)",
            journal.safety_score,
            self.protocol_id,
            self.ledger.ledger_name,
            len(journal_bytes),
            len(proof.seal),
        )

        try:
            confirmation = await with_deadline(
                self.ledger.submit_score(self.protocol_id, journal_bytes, proof.seal),
                self.timeout,
                stage="submit",
                what="Score submission",
            )
        except SubmissionFailure:
            raise
        except OracleError as e:
            raise SubmissionFailure(str(e)) from e
        except Exception as e:
            raise SubmissionFailure(f"Score submission failed: {e}") from e

        logger.info(
            "Transaction confirmed: %s (block %s, gas used %s)",
            confirmation.tx_hash,
            confirmation.block_number,
            confirmation.gas_used,
        )
        return confirmation

    async def read_current(self) -> int:
        """Return the last confirmed score recorded on the ledger."""
        return await with_deadline(
            self.ledger.read_score(self.protocol_id),
            self.timeout,
            stage="read",
            what="Reading current score",
        )


async def publish_to_stdout(
    report: ScoreReport,
    dry_run_format: DryRunFormat = DryRunFormat.TABLE,
) -> None:
    """Publish report to stdout (dry run mode).

    Args:
        report: The score report to publish
        dry_run_format: Output format (TABLE for rich dashboard, JSON for raw JSON)
    """
    if dry_run_format == DryRunFormat.JSON:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        format_summary_table(report)


async def publish_report(
    report: ScoreReport,
    submitter: ProofSubmitter | None,
    dry_run_format: DryRunFormat = DryRunFormat.TABLE,
) -> Confirmation | None:
    """Publish the report: to stdout when no submitter is given, else to the ledger.

    After a submission the on-chain score is read back; a mismatch is logged
    as a warning since the ledger may have accepted a newer score.
    """
    if submitter is None:
        await publish_to_stdout(report, dry_run_format)
        return None

    confirmation = await submitter.submit(report.journal, report.proof)

    try:
        current = await submitter.read_current()
    except Exception as e:
        logger.warning("Submitted, but reading back the score failed: %s", e)
        return confirmation

    if current != report.journal.safety_score:
        logger.warning(
            "On-chain score %d differs from submitted score %d",
            current,
            report.journal.safety_score,
        )
    else:
        logger.info("On-chain score confirmed: %d", current)
    return confirmation
