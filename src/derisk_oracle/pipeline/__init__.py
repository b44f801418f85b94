from __future__ import annotations

from .context import PipelineContext
from .run import run_oracle

__all__ = ["PipelineContext", "run_oracle"]
