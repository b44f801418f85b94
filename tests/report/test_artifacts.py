import json

import pytest

from derisk_oracle.domain import Journal, ProofArtifact, ReserveRecord, ScoringInput
from derisk_oracle.errors import ArtifactError
from derisk_oracle.report.artifacts import (
    load_input_snapshot,
    load_proof_artifact,
    save_input_snapshot,
    save_proof_artifacts,
)
from derisk_oracle.report.encoder import encode_journal
from derisk_oracle.report.generator import generate_report


@pytest.fixture
def scoring_input() -> ScoringInput:
    return ScoringInput(
        reserves=(
            ReserveRecord(
                address="0x6B175474E89094C44Da98b954EedeAC495271d0F",
                total_supplied=500 * 10**18,
                total_stable_debt=50 * 10**18,
                total_variable_debt=100 * 10**18,
                price_usd=10**8,
                decimals=18,
            ),
        ),
        protocol_name="Aave V3",
        timestamp=1_700_000_000,
    )


def test_input_snapshot_is_reloaded_exactly(tmp_path, scoring_input):
    path = save_input_snapshot(scoring_input, tmp_path / "out")

    assert path.name == "aave_input.json"
    data = json.loads(path.read_text())
    # u128 values stay exact integers in JSON
    assert data["reserves"][0]["total_supplied"] == 500 * 10**18
    assert load_input_snapshot(path) == scoring_input


def test_load_input_snapshot_rejects_missing_fields(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"reserves": []}))

    with pytest.raises(ArtifactError, match="Invalid input snapshot") as exc_info:
        load_input_snapshot(path)

    assert exc_info.value.stage == "load"


def test_load_input_snapshot_missing_file(tmp_path):
    with pytest.raises(ArtifactError, match="Cannot read input snapshot"):
        load_input_snapshot(tmp_path / "nope.json")


def test_save_and_load_proof_artifacts(tmp_path):
    journal = Journal(
        safety_score=700_000,
        total_assets_usd=500 * 10**8,
        total_liabilities_usd=150 * 10**8,
        timestamp=1_700_000_000,
    )
    proof = ProofArtifact(seal=b"\x33" * 256, journal_bytes=encode_journal(journal))
    report = generate_report("Aave V3", "0xpool", journal, proof, reserve_count=1)

    saved = save_proof_artifacts(report, tmp_path)

    assert saved.journal.read_bytes() == proof.journal_bytes
    assert saved.seal.read_bytes() == proof.seal
    assert json.loads(saved.summary.read_text()) == {
        "safety_score": 700_000,
        "safety_score_percentage": 70.0,
        "total_assets_usd": 500 * 10**8,
        "total_liabilities_usd": 150 * 10**8,
        "timestamp": 1_700_000_000,
    }
    assert load_proof_artifact(tmp_path) == proof


def test_load_input_snapshot_rejects_malformed_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json")

    with pytest.raises(ArtifactError, match="Invalid input snapshot"):
        load_input_snapshot(path)


def test_load_input_snapshot_rejects_out_of_range_values(tmp_path, scoring_input):
    data = scoring_input.to_dict()
    data["reserves"][0]["total_supplied"] = -1
    path = tmp_path / "negative.json"
    path.write_text(json.dumps(data))

    with pytest.raises(ArtifactError, match="total_supplied"):
        load_input_snapshot(path)


def test_load_proof_artifact_missing_files(tmp_path):
    with pytest.raises(ArtifactError, match="Cannot read proof artifacts") as exc_info:
        load_proof_artifact(tmp_path)

    assert exc_info.value.stage == "load"

    (tmp_path / "proof_seal.bin").write_bytes(b"\x33" * 256)
    with pytest.raises(ArtifactError, match="proof_journal.bin"):
        load_proof_artifact(tmp_path)


def test_receipt_is_saved_beside_journal_and_seal(tmp_path):
    journal = Journal(
        safety_score=700_000,
        total_assets_usd=500 * 10**8,
        total_liabilities_usd=150 * 10**8,
        timestamp=1_700_000_000,
    )
    receipt = {"prover": "http", "handle": "job-42", "stats": {"cycles": 1_048_576}}
    proof = ProofArtifact(
        seal=b"\x33" * 256, journal_bytes=encode_journal(journal), receipt=receipt
    )
    report = generate_report("Aave V3", "0xpool", journal, proof, reserve_count=1)

    saved = save_proof_artifacts(report, tmp_path)

    assert saved.receipt == tmp_path / "proof_receipt.json"
    assert json.loads(saved.receipt.read_text()) == receipt
    assert load_proof_artifact(tmp_path).receipt == receipt


def test_receipt_is_skipped_when_empty(tmp_path):
    journal = Journal(
        safety_score=700_000,
        total_assets_usd=500 * 10**8,
        total_liabilities_usd=150 * 10**8,
        timestamp=1_700_000_000,
    )
    proof = ProofArtifact(seal=b"\x33" * 256, journal_bytes=encode_journal(journal))
    report = generate_report("Aave V3", "0xpool", journal, proof, reserve_count=1)

    saved = save_proof_artifacts(report, tmp_path)

    assert saved.receipt is None
    assert not (tmp_path / "proof_receipt.json").exists()
