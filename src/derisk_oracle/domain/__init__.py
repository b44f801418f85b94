"""Domain models for the oracle."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from ..units import U64_MAX, U8_MAX, U128_MAX

SCORE_SCALE = 1_000_000


def _check_range(name: str, value: int, upper: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}")
    if not 0 <= value <= upper:
        raise ValueError(f"{name} out of range [0, {upper}]: {value}")


@dataclass(frozen=True)
class ReserveRecord:
    """One asset tracked by the lending protocol."""

    address: str
    total_supplied: int  # native units
    total_stable_debt: int  # native units
    total_variable_debt: int  # native units
    price_usd: int  # 1e8
    decimals: int

    def __post_init__(self) -> None:
        for name in (
            "total_supplied",
            "total_stable_debt",
            "total_variable_debt",
            "price_usd",
        ):
            _check_range(name, getattr(self, name), U128_MAX)
        _check_range("decimals", self.decimals, U8_MAX)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReserveRecord":
        return cls(
            address=str(data["address"]),
            total_supplied=int(data["total_supplied"]),
            total_stable_debt=int(data["total_stable_debt"]),
            total_variable_debt=int(data["total_variable_debt"]),
            price_usd=int(data["price_usd"]),
            decimals=int(data["decimals"]),
        )


@dataclass(frozen=True)
class ScoringInput:
    """Snapshot of protocol reserves consumed by one verifiable execution."""

    reserves: tuple[ReserveRecord, ...]
    protocol_name: str
    timestamp: int  # unix seconds

    def __post_init__(self) -> None:
        object.__setattr__(self, "reserves", tuple(self.reserves))
        _check_range("timestamp", self.timestamp, U64_MAX)

    def to_dict(self) -> dict[str, Any]:
        return {
            "reserves": [reserve.to_dict() for reserve in self.reserves],
            "protocol_name": self.protocol_name,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScoringInput":
        return cls(
            reserves=tuple(ReserveRecord.from_dict(r) for r in data["reserves"]),
            protocol_name=str(data["protocol_name"]),
            timestamp=int(data["timestamp"]),
        )


@dataclass(frozen=True)
class Journal:
    """Public output committed by the verifiable execution."""

    safety_score: int  # [0, SCORE_SCALE]
    total_assets_usd: int  # 1e8
    total_liabilities_usd: int  # 1e8
    timestamp: int

    def __post_init__(self) -> None:
        _check_range("safety_score", self.safety_score, SCORE_SCALE)
        _check_range("total_assets_usd", self.total_assets_usd, U128_MAX)
        _check_range("total_liabilities_usd", self.total_liabilities_usd, U128_MAX)
        _check_range("timestamp", self.timestamp, U64_MAX)

    @property
    def percentage(self) -> float:
        """Score as a percentage, for display only."""
        return self.safety_score / (SCORE_SCALE / 100)

    @property
    def buffer_usd(self) -> int:
        """Excess of assets over liabilities (1e8), zero when insolvent."""
        return max(self.total_assets_usd - self.total_liabilities_usd, 0)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ProofArtifact:
    """Compact proof bound to the journal bytes it attests to."""

    seal: bytes
    journal_bytes: bytes
    # audit record of the backend job (prover, handle, stats); not part of the proof
    receipt: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __len__(self) -> int:
        return len(self.seal)


@dataclass(frozen=True)
class Confirmation:
    """Handle returned once the ledger has included a submission."""

    tx_hash: str
    block_number: int | None = None
    gas_used: int | None = None


__all__ = [
    "SCORE_SCALE",
    "Confirmation",
    "Journal",
    "ProofArtifact",
    "ReserveRecord",
    "ScoringInput",
]
