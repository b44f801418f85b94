"""Verifiable execution of the scoring program."""

from __future__ import annotations

from ..adapters.prover import BaseProver, HttpProver, LocalProver
from ..processors import VerifiableExecutionAdapter
from ..report import generate_report
from ..report.artifacts import save_proof_artifacts
from ..settings import OracleSettings, ProverBackend
from .context import PipelineContext


def build_prover(settings: OracleSettings) -> BaseProver:
    """Create the prover backend selected in settings."""
    if settings.prover == ProverBackend.HTTP:
        api_key = (
            settings.prover_api_key.get_secret_value()
            if settings.prover_api_key
            else None
        )
        return HttpProver(
            settings.prover_url_required,
            settings.image_id,
            api_key=api_key,
            poll_interval=settings.prover_poll_interval,
        )
    return LocalProver(settings.image_id)


async def prove_score(ctx: PipelineContext, prover: BaseProver | None = None) -> None:
    """Prove the score of the context's scoring input.

    Sets the journal and proof in the context.
    """
    s = ctx.state.settings
    log = ctx.state.logger
    scoring_input = ctx.scoring_input_required

    log.info(
        "Input summary: protocol=%s reserves=%d timestamp=%d",
        scoring_input.protocol_name,
        len(scoring_input.reserves),
        scoring_input.timestamp,
    )

    adapter = VerifiableExecutionAdapter(
        prover or build_prover(s),
        seal_size_range=s.seal_size_range,
        execute_timeout=s.execute_timeout,
        compact_timeout=s.compact_timeout,
    )
    journal, proof = await adapter.run(scoring_input)

    log.info(
        "Safety score: %.4f%% (raw %d)", journal.percentage, journal.safety_score
    )

    ctx.journal = journal
    ctx.proof = proof


async def build_report(ctx: PipelineContext) -> None:
    """Assemble the score report and save proof artifacts."""
    s = ctx.state.settings
    scoring_input = ctx.scoring_input

    report = generate_report(
        protocol_name=scoring_input.protocol_name if scoring_input else s.protocol_name,
        protocol_address=s.protocol_address_required,
        journal=ctx.journal_required,
        proof=ctx.proof_required,
        reserve_count=len(scoring_input.reserves) if scoring_input else 0,
    )
    save_proof_artifacts(report, s.output_dir)

    ctx.report = report
