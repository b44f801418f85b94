import json
import logging
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from derisk_oracle.errors import LedgerReadError, SubmissionFailure
from derisk_oracle.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_cli(tmp_path, monkeypatch):
    """Keep CLI runs away from local config and restore root logging afterwards."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("DERISK_ORACLE_CONFIG", raising=False)
    monkeypatch.delenv("DERISK_ORACLE_PRIVATE_KEY", raising=False)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_show_config_redacts_secrets(monkeypatch):
    monkeypatch.setenv("DERISK_ORACLE_PRIVATE_KEY", "0x" + "a" * 64)

    result = runner.invoke(app, ["--show-config", "--network", "sepolia"])

    assert result.exit_code == 0
    config = json.loads(result.stdout)
    assert config["network"] == "sepolia"
    assert config["private_key"] == "***redacted***"


def test_prove_only_requires_input_file():
    with patch("derisk_oracle.pipeline.run.run_oracle", new=AsyncMock()) as mock_run:
        result = runner.invoke(app, ["--mode", "prove-only"])

    assert result.exit_code != 0
    mock_run.assert_not_called()


def test_submit_requires_oracle_address_and_key():
    with patch("derisk_oracle.pipeline.run.run_oracle", new=AsyncMock()) as mock_run:
        result = runner.invoke(app, ["--submit"])
        assert result.exit_code != 0

        result = runner.invoke(
            app,
            ["--submit", "--oracle-address", "0x1234567890123456789012345678901234567890"],
        )
        assert result.exit_code != 0

    mock_run.assert_not_called()


def test_submit_only_requires_key_without_submit_flag():
    with patch("derisk_oracle.pipeline.run.run_oracle", new=AsyncMock()) as mock_run:
        result = runner.invoke(
            app,
            [
                "--mode",
                "submit-only",
                "--oracle-address",
                "0x1234567890123456789012345678901234567890",
            ],
        )

    assert result.exit_code != 0
    assert "private_key" in result.output
    mock_run.assert_not_called()


def test_runs_pipeline_with_cli_overrides(tmp_path):
    with patch("derisk_oracle.pipeline.run.run_oracle", new=AsyncMock()) as mock_run:
        result = runner.invoke(
            app,
            [
                "--mode",
                "fetch-only",
                "--output-dir",
                str(tmp_path / "out"),
                "--block-number",
                "19000000",
            ],
        )

    assert result.exit_code == 0
    state = mock_run.call_args.args[0]
    assert state.settings.mode.value == "fetch-only"
    assert state.settings.output_dir == tmp_path / "out"
    assert state.settings.block_number == 19_000_000


def test_oracle_error_exits_with_code_1(monkeypatch):
    monkeypatch.setenv("DERISK_ORACLE_PRIVATE_KEY", "0x" + "a" * 64)
    failing = AsyncMock(side_effect=SubmissionFailure("reverted"))

    with patch("derisk_oracle.pipeline.run.run_oracle", new=failing):
        result = runner.invoke(
            app,
            ["--submit", "--oracle-address", "0x1234567890123456789012345678901234567890"],
        )

    assert result.exit_code == 1


def test_read_score_prints_current_score():
    with patch(
        "derisk_oracle.pipeline.publish.read_current_score",
        new=AsyncMock(return_value=300_598),
    ):
        result = runner.invoke(
            app,
            ["--read-score", "--oracle-address", "0x1234567890123456789012345678901234567890"],
        )

    assert result.exit_code == 0
    output = json.loads(result.stdout[result.stdout.index("{") :])
    assert output["safety_score"] == 300_598
    assert output["safety_score_percentage"] == 30.0598


def test_malformed_input_file_exits_with_code_1(tmp_path):
    input_file = tmp_path / "bad.json"
    input_file.write_text("{not json")

    result = runner.invoke(
        app,
        [
            "--mode",
            "prove-only",
            "--input-file",
            str(input_file),
            "--output-dir",
            str(tmp_path / "out"),
        ],
    )

    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)
    assert not (tmp_path / "out" / "proof_journal.bin").exists()


def test_read_score_failure_exits_with_code_1():
    failing = AsyncMock(side_effect=LedgerReadError("Failed to read score: boom"))

    with patch("derisk_oracle.pipeline.publish.read_current_score", new=failing):
        result = runner.invoke(
            app,
            ["--read-score", "--oracle-address", "0x1234567890123456789012345678901234567890"],
        )

    assert result.exit_code == 1
