from __future__ import annotations

from dataclasses import dataclass

from ..domain import Journal, ProofArtifact


@dataclass
class ScoreReport:
    """Proven score ready for publishing."""

    protocol_name: str
    protocol_address: str
    journal: Journal
    proof: ProofArtifact
    reserve_count: int = 0

    def summary(self) -> dict[str, object]:
        """Human-readable summary persisted next to the proof artifacts."""
        return {
            "safety_score": self.journal.safety_score,
            "safety_score_percentage": round(self.journal.percentage, 4),
            "total_assets_usd": self.journal.total_assets_usd,
            "total_liabilities_usd": self.journal.total_liabilities_usd,
            "timestamp": self.journal.timestamp,
        }

    def to_dict(self) -> dict[str, object]:
        return {
            "protocol_name": self.protocol_name,
            "protocol_address": self.protocol_address,
            "reserve_count": self.reserve_count,
            **self.summary(),
            "journal": self.proof.journal_bytes.hex(),
            "seal": self.proof.seal.hex(),
        }


def generate_report(
    protocol_name: str,
    protocol_address: str,
    journal: Journal,
    proof: ProofArtifact,
    reserve_count: int = 0,
) -> ScoreReport:
    """Assemble a score report from the proving stage outputs."""
    return ScoreReport(
        protocol_name=protocol_name,
        protocol_address=protocol_address,
        journal=journal,
        proof=proof,
        reserve_count=reserve_count,
    )
