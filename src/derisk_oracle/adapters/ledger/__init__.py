from __future__ import annotations

from .base import BaseLedger
from .oracle_contract import DeRiskOracleLedger

__all__ = ["BaseLedger", "DeRiskOracleLedger"]
