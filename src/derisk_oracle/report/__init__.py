from __future__ import annotations

from .encoder import (
    decode_input,
    decode_journal,
    encode_input,
    encode_journal,
    encode_update_score,
)
from .generator import ScoreReport, generate_report

__all__ = [
    "ScoreReport",
    "decode_input",
    "decode_journal",
    "encode_input",
    "encode_journal",
    "encode_update_score",
    "generate_report",
]
