"""Reserve collection and input snapshot handling."""

from __future__ import annotations

from ..adapters.chain import AaveV3DataSource, BaseChainDataSource
from ..processors import DataAggregator
from ..report.artifacts import load_input_snapshot, save_input_snapshot
from ..settings import OracleSettings
from .context import PipelineContext


def build_data_source(settings: OracleSettings) -> BaseChainDataSource:
    """Create the chain data source for the configured network."""
    return AaveV3DataSource.from_rpc(
        settings.rpc_url_required,
        settings.aave_addresses,
        block_number=settings.block_number,
        max_tries=settings.max_calls,
    )


async def collect_input(
    ctx: PipelineContext, source: BaseChainDataSource | None = None
) -> None:
    """Fetch reserves from chain and save the input snapshot.

    Args:
        ctx: Pipeline context containing state
        source: Data source override; built from settings when omitted

    Sets the scoring input in the context.
    """
    s = ctx.state.settings
    log = ctx.state.logger

    if source is None:
        source = build_data_source(s)

    log.info("Fetching %s reserve data (network=%s)...", s.protocol_name, s.network.value)
    aggregator = DataAggregator(
        s.protocol_name,
        max_concurrency=s.rpc_max_concurrent_calls,
        fetch_timeout=s.fetch_timeout,
    )
    scoring_input = await aggregator.collect(source)
    save_input_snapshot(scoring_input, s.output_dir)

    ctx.scoring_input = scoring_input


async def load_input(ctx: PipelineContext) -> None:
    """Load the scoring input from the configured snapshot file."""
    s = ctx.state.settings
    log = ctx.state.logger

    path = s.input_file_required
    log.info("Loading data from file: %s", path)
    ctx.scoring_input = load_input_snapshot(path)
