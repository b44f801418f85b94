"""Error taxonomy for the scoring pipeline."""

from __future__ import annotations


class OracleError(Exception):
    """Base class for every failure raised by the oracle.

    Args:
        message: Human-readable description of the failure
        stage: Pipeline stage that produced the failure, if known
    """

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class FetchError(OracleError):
    """Raised when reading chain data for a reserve fails."""

    def __init__(self, message: str, reserve_id: str | None = None):
        super().__init__(message, stage="fetch")
        self.reserve_id = reserve_id


class NoReservesAvailable(OracleError):
    """Raised when no reserve could be fetched at all."""

    def __init__(self, message: str):
        super().__init__(message, stage="fetch")


class ArithmeticOverflow(OracleError):
    """Raised when fixed-point arithmetic leaves its unsigned range."""

    def __init__(self, message: str):
        super().__init__(message, stage="score")


class ExecutionFailure(OracleError):
    """Raised when the first proving stage (execution) fails."""

    def __init__(self, message: str):
        super().__init__(message, stage="execute")


class CompactionFailure(OracleError):
    """Raised when the second proving stage (compaction) fails."""

    def __init__(self, message: str):
        super().__init__(message, stage="compact")


class SubmissionFailure(OracleError):
    """Raised when delivering a proof to the ledger fails. Never retried."""

    def __init__(self, message: str):
        super().__init__(message, stage="submit")


class Timeout(OracleError):
    """Raised when a call exceeds its deadline."""

    def __init__(self, message: str, stage: str | None = None, seconds: float | None = None):
        super().__init__(message, stage=stage)
        self.seconds = seconds


class ArtifactError(OracleError):
    """Raised when a saved input snapshot or proof artifact cannot be loaded."""

    def __init__(self, message: str):
        super().__init__(message, stage="load")


class LedgerReadError(OracleError):
    """Raised when the stored score cannot be read back from the ledger."""

    def __init__(self, message: str):
        super().__init__(message, stage="read")
