"""
TEFA Core — Display Codes and Identifiers
=========================================
Short human-facing codes (SRV-4821, TRX-30517) and internal ids.

Codes are random within a fixed digit width. A code already in use
is re-drawn; after MAX_ATTEMPTS collisions the width grows by one
digit, so generation always terminates.
"""

from __future__ import annotations

import random
import uuid
from typing import AbstractSet, Optional

SERVICE_CODE_DIGITS = 4
RETAIL_CODE_DIGITS = 5
MAX_ATTEMPTS = 50


def new_id() -> str:
    return str(uuid.uuid4())


class CodeGenerator:
    """Draws PREFIX-NNNN codes. Pass a seeded Random for reproducible tests."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def _draw(self, prefix: str, digits: int) -> str:
        low = 10 ** (digits - 1)
        high = 10 ** digits - 1
        return f"{prefix}-{self._rng.randint(low, high)}"

    def next_code(
        self, prefix: str, digits: int, taken: AbstractSet[str] = frozenset(),
    ) -> str:
        while True:
            for _ in range(MAX_ATTEMPTS):
                code = self._draw(prefix, digits)
                if code not in taken:
                    return code
            digits += 1

    def service_code(self, prefix: str, taken: AbstractSet[str] = frozenset()) -> str:
        return self.next_code(prefix, SERVICE_CODE_DIGITS, taken)

    def retail_code(self, prefix: str, taken: AbstractSet[str] = frozenset()) -> str:
        return self.next_code(prefix, RETAIL_CODE_DIGITS, taken)
