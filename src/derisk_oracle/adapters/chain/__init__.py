from __future__ import annotations

from .aave import AaveV3DataSource
from .base import BaseChainDataSource

__all__ = ["AaveV3DataSource", "BaseChainDataSource"]
