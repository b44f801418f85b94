"""Report publication: stdout for dry runs, the oracle contract otherwise."""

from __future__ import annotations

from ..adapters.ledger import BaseLedger, DeRiskOracleLedger
from ..errors import ArtifactError
from ..report import generate_report
from ..report.artifacts import load_proof_artifact
from ..report.encoder import decode_journal
from ..report.publisher import ProofSubmitter
from ..report.publisher import publish_report as publish_report_impl
from ..settings import OracleSettings, ProverBackend
from .context import PipelineContext


def build_submitter(
    settings: OracleSettings, ledger: BaseLedger | None = None
) -> ProofSubmitter:
    """Create a ProofSubmitter bound to the configured oracle contract."""
    if ledger is None:
        private_key = (
            settings.private_key.get_secret_value() if settings.private_key else None
        )
        ledger = DeRiskOracleLedger.from_rpc(
            settings.rpc_url_required,
            settings.oracle_address_required,
            private_key=private_key,
            receipt_timeout=settings.submit_timeout or 300.0,
        )
    return ProofSubmitter(
        ledger,
        settings.protocol_address_required,
        timeout=settings.submit_timeout,
    )


async def load_proof(ctx: PipelineContext) -> None:
    """Load previously saved proof artifacts from the output directory."""
    s = ctx.state.settings
    log = ctx.state.logger

    log.info("Loading proof artifacts from %s", s.output_dir)
    proof = load_proof_artifact(s.output_dir)
    try:
        journal = decode_journal(proof.journal_bytes)
    except ValueError as e:
        raise ArtifactError(f"Saved journal in {s.output_dir} is invalid: {e}") from e

    ctx.proof = proof
    ctx.journal = journal
    ctx.report = generate_report(
        protocol_name=s.protocol_name,
        protocol_address=s.protocol_address_required,
        journal=ctx.journal,
        proof=proof,
    )


async def publish_report(
    ctx: PipelineContext, ledger: BaseLedger | None = None
) -> None:
    """Publish the score report.

    Prints the report when submission is off; otherwise submits it to the
    ledger and records the confirmation in the context.
    """
    s = ctx.state.settings
    log = ctx.state.logger
    report = ctx.report_required

    if not s.submit_enabled:
        log.info("Publishing report to stdout (submit disabled)...")
        await publish_report_impl(report, None, s.dry_run_format)
        return

    if s.prover == ProverBackend.LOCAL:
        log.warning(
            "Submitting a development seal from the local prover; "
            "the oracle contract will reject it unless it accepts development proofs"
        )

    submitter = build_submitter(s, ledger)
    ctx.confirmation = await publish_report_impl(report, submitter, s.dry_run_format)


async def read_current_score(
    settings: OracleSettings, ledger: BaseLedger | None = None
) -> int:
    """Read the last confirmed score for the configured protocol."""
    return await build_submitter(settings, ledger).read_current()
