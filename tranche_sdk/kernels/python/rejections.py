"""
Kernel rejection codes.

Kernels stay free of SDK imports; they raise `KernelRejection` (a ValueError)
with a stable `code` so venue adapters can map expected market conditions onto
the SDK error taxonomy. Malformed arguments still raise plain ValueError/TypeError.
"""

from __future__ import annotations


EMPTY_RESERVE = "EMPTY_RESERVE"
ZERO_OUTPUT = "ZERO_OUTPUT"
RESERVE_EXHAUSTED = "RESERVE_EXHAUSTED"


class KernelRejection(ValueError):
    """Raised when a well-formed trade cannot be quoted against the current state."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(message)
