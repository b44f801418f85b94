from __future__ import annotations

from .reserve_aggregator import DataAggregator
from .safety_score import compute_safety_score, score
from .verifiable_execution import VerifiableExecutionAdapter

__all__ = [
    "DataAggregator",
    "VerifiableExecutionAdapter",
    "compute_safety_score",
    "score",
]
