from __future__ import annotations

from .base import BaseProver, RawProof
from .http import HttpProver
from .local import LocalProver

__all__ = ["BaseProver", "HttpProver", "LocalProver", "RawProof"]
