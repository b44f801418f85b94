"""CLI entrypoint for the DeRisk Oracle."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Annotated, Any

import typer

from .errors import OracleError
from .logger import setup_logging
from .settings import (
    CONFIG_ENV_VAR,
    DryRunFormat,
    Network,
    OracleSettings,
    ProverBackend,
    RunMode,
)
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Verifiable lending protocol safety score oracle.",
)


def _validate(settings: OracleSettings) -> None:
    if settings.mode == RunMode.PROVE_ONLY and settings.input_file is None:
        raise typer.BadParameter(
            "input_file is required for prove-only mode.",
            param_hint=["--input-file", "DERISK_ORACLE_INPUT_FILE"],
        )
    if settings.prover == ProverBackend.HTTP and not settings.prover_url:
        raise typer.BadParameter(
            "prover_url is required with the http prover.",
            param_hint=["--prover-url", "DERISK_ORACLE_PROVER_URL"],
        )
    if settings.submit_enabled:
        if not settings.oracle_address:
            raise typer.BadParameter(
                "oracle_address is required when submitting.",
                param_hint=["--oracle-address", "DERISK_ORACLE_ORACLE_ADDRESS"],
            )
        if not settings.private_key:
            raise typer.BadParameter(
                "private_key is required when submitting.",
                param_hint=["DERISK_ORACLE_PRIVATE_KEY"],
            )


def _read_score(state: AppState) -> None:
    from .pipeline.publish import read_current_score

    settings = state.settings
    if not settings.oracle_address:
        raise typer.BadParameter(
            "oracle_address is required to read the current score.",
            param_hint=["--oracle-address", "DERISK_ORACLE_ORACLE_ADDRESS"],
        )
    score = asyncio.run(read_current_score(settings))
    typer.echo(
        json.dumps(
            {
                "protocol_address": settings.protocol_address,
                "safety_score": score,
                "safety_score_percentage": score / 10_000,
            },
            indent=2,
        )
    )


@app.callback(invoke_without_command=True)
def main(
    mode: Annotated[
        RunMode | None,
        typer.Option("--mode", "-m", help="fetch-only, prove-only, full or submit-only."),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [derisk_oracle] table).",
        ),
    ] = None,
    network: Annotated[
        Network | None,
        typer.Option("--network", "-n", help="Network to use (mainnet or sepolia)."),
    ] = None,
    rpc_url: Annotated[
        str | None,
        typer.Option("--rpc-url", "-r", help="RPC endpoint; overrides the network default."),
    ] = None,
    block_number: Annotated[
        int | None,
        typer.Option(
            "--block-number",
            help="Block number to pin reads to. If not provided, the latest block is used.",
        ),
    ] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option("--output-dir", "-o", help="Directory for input and proof artifacts."),
    ] = None,
    input_file: Annotated[
        Path | None,
        typer.Option("--input-file", "-i", help="Input snapshot for prove-only mode."),
    ] = None,
    submit: Annotated[
        bool | None,
        typer.Option("--submit/--no-submit", help="Submit the proof to the oracle contract."),
    ] = None,
    oracle_address: Annotated[
        str | None,
        typer.Option("--oracle-address", help="DeRiskOracle contract address."),
    ] = None,
    protocol_address: Annotated[
        str | None,
        typer.Option(
            "--protocol-address",
            help="Protocol identifier on the oracle; defaults to the Aave pool address.",
        ),
    ] = None,
    prover: Annotated[
        ProverBackend | None,
        typer.Option("--prover", help="Prover backend (local or http)."),
    ] = None,
    prover_url: Annotated[
        str | None,
        typer.Option("--prover-url", help="Base URL of the remote proving service."),
    ] = None,
    global_timeout_seconds: Annotated[
        float | None,
        typer.Option("--global-timeout-seconds", help="Deadline for the whole run."),
    ] = None,
    dry_run_format: Annotated[
        DryRunFormat | None,
        typer.Option("--dry-run-format", help="Output format when not submitting."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    read_score: Annotated[
        bool,
        typer.Option("--read-score", help="Print the current on-chain score and exit."),
    ] = False,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Fetch reserve data, prove the safety score and (optionally) submit it.

    This is the default command that loads configuration, applies network-specific
    defaults, validates settings, and executes the scoring pipeline.
    """
    if config_path:
        os.environ[CONFIG_ENV_VAR] = str(config_path)

    overrides: dict[str, Any] = {
        "mode": mode,
        "network": network,
        "rpc_url": rpc_url,
        "block_number": block_number,
        "output_dir": output_dir,
        "input_file": input_file,
        "submit": submit,
        "oracle_address": oracle_address,
        "protocol_address": protocol_address,
        "prover": prover,
        "prover_url": prover_url,
        "global_timeout_seconds": global_timeout_seconds,
        "dry_run_format": dry_run_format,
        "log_level": log_level.upper() if log_level else None,
    }
    init_kwargs = {key: value for key, value in overrides.items() if value is not None}

    settings = OracleSettings(**init_kwargs)

    setup_logging(settings.log_level)
    state = AppState.from_settings(settings)
    logger = state.logger

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    try:
        if read_score:
            _read_score(state)
            raise typer.Exit(code=0)

        _validate(settings)

        from .pipeline.run import run_oracle

        asyncio.run(run_oracle(state))
    except OracleError as e:
        logger.error("%s", e)
        raise typer.Exit(code=1) from e


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
