"""High-level pipeline orchestration."""

from __future__ import annotations

import asyncio

from ..errors import OracleError, Timeout
from ..settings import RunMode
from ..state import AppState
from .collect import collect_input, load_input
from .context import PipelineContext
from .prove import build_report, prove_score
from .publish import load_proof, publish_report


async def run_oracle(state: AppState) -> PipelineContext:
    """Execute the oracle pipeline for the configured mode.

    - fetch-only: collect reserves, save the input snapshot
    - prove-only: load the snapshot, prove, save artifacts, publish
    - full: collect, save the snapshot, prove, save artifacts, publish
    - submit-only: load saved proof artifacts, publish

    Args:
        state: Application state containing settings and logger

    Returns:
        The pipeline context holding every stage output

    Raises:
        OracleError: Any fatal failure, with its originating stage
    """
    s = state.settings
    log = state.logger

    log.info(
        "Starting run: %s",
        state.describe,
        extra={"mode": s.mode.value, "network": s.network.value, "submit": s.submit_enabled},
    )

    ctx = PipelineContext(state=state)
    timeout_s = s.global_timeout_seconds

    async def _run_pipeline() -> None:
        if s.mode == RunMode.SUBMIT_ONLY:
            await load_proof(ctx)
            await publish_report(ctx)
            return

        if s.mode == RunMode.PROVE_ONLY:
            await load_input(ctx)
        else:
            await collect_input(ctx)
            if s.mode == RunMode.FETCH_ONLY:
                log.info("Fetch complete (fetch-only mode)")
                return

        await prove_score(ctx)
        await build_report(ctx)
        await publish_report(ctx)

    try:
        if timeout_s is None:
            await _run_pipeline()
        else:
            async with asyncio.timeout(timeout_s):
                await _run_pipeline()
    except TimeoutError as exc:
        log.error("Run timed out", extra={"timeout_seconds": timeout_s})
        raise Timeout(
            f"Run exceeded global timeout {timeout_s}s\n N.B. This can be changed via "
            "`global_timeout_seconds` or CLI flag `--global-timeout-seconds`.",
            stage="run",
            seconds=timeout_s,
        ) from exc
    except OracleError as exc:
        log.error("Run failed at stage %s: %s", exc.stage or "unknown", exc.message)
        raise

    log.info("Run completed")
    return ctx
