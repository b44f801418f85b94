"""Reading and writing run artifacts in the output directory."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from ..constants import (
    INPUT_SNAPSHOT_FILE,
    JOURNAL_FILE,
    RECEIPT_FILE,
    SEAL_FILE,
    SUMMARY_FILE,
)
from ..domain import ProofArtifact, ScoringInput
from ..errors import ArtifactError
from .generator import ScoreReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SavedArtifacts:
    journal: Path
    seal: Path
    summary: Path
    receipt: Path | None = None


def save_input_snapshot(scoring_input: ScoringInput, output_dir: Path) -> Path:
    """Write the input snapshot as pretty-printed JSON."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / INPUT_SNAPSHOT_FILE
    path.write_text(json.dumps(scoring_input.to_dict(), indent=2) + "\n")
    logger.info("Saved input data to %s", path)
    return path


def load_input_snapshot(path: Path) -> ScoringInput:
    """Load an input snapshot written by save_input_snapshot.

    Raises:
        ArtifactError: If the file is missing, unreadable or not a valid snapshot
    """
    try:
        with path.open() as f:
            data = json.load(f)
        return ScoringInput.from_dict(data)
    except OSError as e:
        raise ArtifactError(f"Cannot read input snapshot {path}: {e}") from e
    except (KeyError, TypeError, ValueError) as e:
        raise ArtifactError(f"Invalid input snapshot {path}: {e}") from e


def save_proof_artifacts(report: ScoreReport, output_dir: Path) -> SavedArtifacts:
    """Write journal bytes, seal bytes, the summary JSON and the prover receipt."""
    output_dir.mkdir(parents=True, exist_ok=True)
    saved = SavedArtifacts(
        journal=output_dir / JOURNAL_FILE,
        seal=output_dir / SEAL_FILE,
        summary=output_dir / SUMMARY_FILE,
        receipt=output_dir / RECEIPT_FILE if report.proof.receipt else None,
    )
    saved.journal.write_bytes(report.proof.journal_bytes)
    saved.seal.write_bytes(report.proof.seal)
    saved.summary.write_text(json.dumps(report.summary(), indent=2) + "\n")
    if saved.receipt is not None:
        saved.receipt.write_text(
            json.dumps(report.proof.receipt, indent=2, default=str) + "\n"
        )

    logger.info("Saved proof artifacts:")
    logger.info("  - Journal: %s", saved.journal)
    logger.info("  - Seal: %s", saved.seal)
    logger.info("  - Summary: %s", saved.summary)
    if saved.receipt is not None:
        logger.info("  - Receipt: %s", saved.receipt)
    return saved


def load_proof_artifact(output_dir: Path) -> ProofArtifact:
    """Load a previously saved journal and seal, plus the receipt when present.

    Raises:
        ArtifactError: If the journal or seal is missing or unreadable
    """
    try:
        seal = (output_dir / SEAL_FILE).read_bytes()
        journal_bytes = (output_dir / JOURNAL_FILE).read_bytes()
    except OSError as e:
        raise ArtifactError(f"Cannot read proof artifacts in {output_dir}: {e}") from e

    receipt: dict = {}
    receipt_path = output_dir / RECEIPT_FILE
    if receipt_path.exists():
        try:
            receipt = json.loads(receipt_path.read_text())
        except ValueError as e:
            logger.warning("Ignoring unreadable receipt %s: %s", receipt_path, e)

    return ProofArtifact(seal=seal, journal_bytes=journal_bytes, receipt=receipt)
