from __future__ import annotations

from dataclasses import dataclass

from ..domain import Confirmation, Journal, ProofArtifact, ScoringInput
from ..report import ScoreReport
from ..state import AppState


@dataclass
class PipelineContext:
    state: AppState
    scoring_input: ScoringInput | None = None
    journal: Journal | None = None
    proof: ProofArtifact | None = None
    report: ScoreReport | None = None
    confirmation: Confirmation | None = None

    @property
    def scoring_input_required(self) -> ScoringInput:
        if self.scoring_input is None:
            raise RuntimeError(
                "Scoring input has not been set. Ensure collect_input() or load_input() is called before accessing this property."
            )
        return self.scoring_input

    @property
    def journal_required(self) -> Journal:
        if self.journal is None:
            raise RuntimeError(
                "Journal has not been set. Ensure prove_score() is called before accessing this property."
            )
        return self.journal

    @property
    def proof_required(self) -> ProofArtifact:
        if self.proof is None:
            raise RuntimeError(
                "Proof has not been set. Ensure prove_score() is called before accessing this property."
            )
        return self.proof

    @property
    def report_required(self) -> ScoreReport:
        if self.report is None:
            raise RuntimeError(
                "Report has not been set. Ensure build_report() is called before accessing this property."
            )
        return self.report
