import asyncio
import json
import logging

import pytest

from derisk_oracle.adapters.chain.base import BaseChainDataSource
from derisk_oracle.adapters.ledger.base import BaseLedger
from derisk_oracle.domain import Confirmation, ReserveRecord
from derisk_oracle.errors import ArtifactError, NoReservesAvailable, Timeout
from derisk_oracle.pipeline import collect as pipeline_collect
from derisk_oracle.pipeline import publish as pipeline_publish
from derisk_oracle.pipeline import run as pipeline_run
from derisk_oracle.settings import DryRunFormat, OracleSettings, RunMode
from derisk_oracle.state import AppState

RESERVES = {
    "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48": ReserveRecord(
        address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        total_supplied=1_000_000 * 10**6,
        total_stable_debt=0,
        total_variable_debt=700_000 * 10**6,
        price_usd=10**8,
        decimals=6,
    ),
    "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2": ReserveRecord(
        address="0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
        total_supplied=10**18,
        total_stable_debt=0,
        total_variable_debt=5 * 10**17,
        price_usd=2000 * 10**8,
        decimals=18,
    ),
    "0x6B175474E89094C44Da98b954EedeAC495271d0F": ReserveRecord(
        address="0x6B175474E89094C44Da98b954EedeAC495271d0F",
        total_supplied=500 * 10**18,
        total_stable_debt=50 * 10**18,
        total_variable_debt=100 * 10**18,
        price_usd=10**8,
        decimals=18,
    ),
}


class StaticSource(BaseChainDataSource):
    @property
    def source_name(self) -> str:
        return "static"

    async def list_reserve_ids(self) -> list[str]:
        return list(RESERVES)

    async def fetch_record(self, reserve_id: str) -> ReserveRecord:
        return RESERVES[reserve_id]


class RecordingLedger(BaseLedger):
    def __init__(self) -> None:
        self.scores: dict[str, int] = {}

    @property
    def ledger_name(self) -> str:
        return "recording"

    async def submit_score(
        self, protocol_id: str, journal_bytes: bytes, seal: bytes
    ) -> Confirmation:
        self.scores[protocol_id] = int.from_bytes(journal_bytes[:8], "little")
        return Confirmation(tx_hash="0x01", block_number=1, gas_used=1)

    async def read_score(self, protocol_id: str) -> int:
        return self.scores.get(protocol_id, 0)


def _state(**overrides) -> AppState:
    settings = OracleSettings(**overrides)
    return AppState(settings=settings, logger=logging.getLogger("test"))


@pytest.fixture
def offline(monkeypatch) -> RecordingLedger:
    """Route chain reads to StaticSource and submissions to a RecordingLedger."""
    ledger = RecordingLedger()

    async def collect(ctx):
        await pipeline_collect.collect_input(ctx, StaticSource())

    async def publish(ctx):
        await pipeline_publish.publish_report(ctx, ledger)

    monkeypatch.setattr(pipeline_run, "collect_input", collect)
    monkeypatch.setattr(pipeline_run, "publish_report", publish)
    return ledger


@pytest.mark.asyncio
async def test_full_dry_run(tmp_path, capsys, offline):
    state = _state(output_dir=tmp_path, dry_run_format=DryRunFormat.JSON)

    ctx = await pipeline_run.run_oracle(state)

    assert ctx.journal is not None
    assert ctx.journal.safety_score == 300_598
    assert ctx.confirmation is None
    assert (tmp_path / "aave_input.json").exists()
    assert (tmp_path / "proof_journal.bin").read_bytes() == ctx.proof_required.journal_bytes
    assert (tmp_path / "proof_seal.bin").read_bytes() == ctx.proof_required.seal
    summary = json.loads((tmp_path / "safety_score_output.json").read_text())
    assert summary["safety_score"] == 300_598

    printed = json.loads(capsys.readouterr().out)
    assert printed["reserve_count"] == 3


@pytest.mark.asyncio
async def test_fetch_only_stops_after_snapshot(tmp_path, offline):
    state = _state(output_dir=tmp_path, mode=RunMode.FETCH_ONLY)

    ctx = await pipeline_run.run_oracle(state)

    assert len(ctx.scoring_input_required.reserves) == 3
    assert ctx.journal is None
    assert (tmp_path / "aave_input.json").exists()
    assert not (tmp_path / "proof_journal.bin").exists()


@pytest.mark.asyncio
async def test_prove_only_uses_saved_snapshot(tmp_path, offline):
    await pipeline_run.run_oracle(
        _state(output_dir=tmp_path / "fetch", mode=RunMode.FETCH_ONLY)
    )

    ctx = await pipeline_run.run_oracle(
        _state(
            output_dir=tmp_path / "prove",
            mode=RunMode.PROVE_ONLY,
            input_file=tmp_path / "fetch" / "aave_input.json",
            dry_run_format=DryRunFormat.JSON,
        )
    )

    assert ctx.journal_required.safety_score == 300_598
    assert (tmp_path / "prove" / "proof_seal.bin").exists()


@pytest.mark.asyncio
async def test_full_run_with_submission(tmp_path, offline: RecordingLedger):
    state = _state(
        output_dir=tmp_path,
        submit=True,
        oracle_address="0x1234567890123456789012345678901234567890",
    )

    ctx = await pipeline_run.run_oracle(state)

    assert ctx.confirmation is not None
    assert offline.scores == {state.settings.protocol_address: 300_598}


@pytest.mark.asyncio
async def test_submit_only_uses_saved_artifacts(tmp_path, offline: RecordingLedger):
    await pipeline_run.run_oracle(
        _state(output_dir=tmp_path, dry_run_format=DryRunFormat.JSON)
    )
    assert offline.scores == {}

    ctx = await pipeline_run.run_oracle(
        _state(
            output_dir=tmp_path,
            mode=RunMode.SUBMIT_ONLY,
            submit=True,
            oracle_address="0x1234567890123456789012345678901234567890",
        )
    )

    assert ctx.journal_required.safety_score == 300_598
    assert ctx.confirmation is not None
    assert list(offline.scores.values()) == [300_598]


@pytest.mark.asyncio
async def test_submit_only_submits_without_submit_flag(tmp_path, offline: RecordingLedger):
    await pipeline_run.run_oracle(
        _state(output_dir=tmp_path, dry_run_format=DryRunFormat.JSON)
    )

    state = _state(
        output_dir=tmp_path,
        mode=RunMode.SUBMIT_ONLY,
        oracle_address="0x1234567890123456789012345678901234567890",
    )
    assert state.settings.submit is False

    ctx = await pipeline_run.run_oracle(state)

    assert ctx.confirmation is not None
    assert offline.scores == {state.settings.protocol_address: 300_598}


@pytest.mark.asyncio
async def test_submit_only_without_artifacts_fails_at_load(tmp_path, offline, caplog):
    with caplog.at_level(logging.ERROR):
        with pytest.raises(ArtifactError) as exc_info:
            await pipeline_run.run_oracle(
                _state(output_dir=tmp_path, mode=RunMode.SUBMIT_ONLY)
            )

    assert exc_info.value.stage == "load"
    assert "proof_seal.bin" in str(exc_info.value)
    assert "Run failed at stage load" in caplog.text
    assert offline.scores == {}


@pytest.mark.asyncio
async def test_prove_only_rejects_malformed_snapshot(tmp_path, offline, caplog):
    snapshot = {
        "reserves": [dict(RESERVES[next(iter(RESERVES))].to_dict(), total_supplied=-1)],
        "protocol_name": "Aave V3",
        "timestamp": 1_700_000_000,
    }
    input_file = tmp_path / "bad_input.json"
    input_file.write_text(json.dumps(snapshot))

    with caplog.at_level(logging.ERROR):
        with pytest.raises(ArtifactError) as exc_info:
            await pipeline_run.run_oracle(
                _state(
                    output_dir=tmp_path,
                    mode=RunMode.PROVE_ONLY,
                    input_file=input_file,
                )
            )

    assert exc_info.value.stage == "load"
    assert "total_supplied" in str(exc_info.value)
    assert "Run failed at stage load" in caplog.text


@pytest.mark.asyncio
async def test_stage_errors_propagate(tmp_path, monkeypatch, caplog):
    async def failing_collect(ctx):
        raise NoReservesAvailable("No reserve data could be fetched (3 of 3 failed)")

    monkeypatch.setattr(pipeline_run, "collect_input", failing_collect)

    with caplog.at_level(logging.ERROR):
        with pytest.raises(NoReservesAvailable):
            await pipeline_run.run_oracle(_state(output_dir=tmp_path))

    assert "Run failed at stage fetch" in caplog.text


@pytest.mark.asyncio
async def test_run_completes_within_timeout(tmp_path, monkeypatch):
    calls: list[str] = []

    def stage(name: str):
        async def _inner(ctx):  # type: ignore[unused-arg]
            calls.append(name)
            await asyncio.sleep(0.01)

        return _inner

    monkeypatch.setattr(pipeline_run, "collect_input", stage("collect"))
    monkeypatch.setattr(pipeline_run, "prove_score", stage("prove"))
    monkeypatch.setattr(pipeline_run, "build_report", stage("build"))
    monkeypatch.setattr(pipeline_run, "publish_report", stage("publish"))

    await pipeline_run.run_oracle(
        _state(output_dir=tmp_path, global_timeout_seconds=0.5)
    )

    assert calls == ["collect", "prove", "build", "publish"]


@pytest.mark.asyncio
async def test_run_raises_timeout(tmp_path, monkeypatch):
    async def slow_collect(ctx):  # type: ignore[unused-arg]
        await asyncio.sleep(0.5)

    monkeypatch.setattr(pipeline_run, "collect_input", slow_collect)

    with pytest.raises(Timeout) as exc_info:
        await pipeline_run.run_oracle(
            _state(output_dir=tmp_path, global_timeout_seconds=0.05)
        )

    assert exc_info.value.stage == "run"
    assert "global_timeout_seconds" in str(exc_info.value)
