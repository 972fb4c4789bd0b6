"""
Runtime target — the interpreter a search is performed for.
"""

from dataclasses import dataclass
from enum import IntEnum

import semantic_version


class Bitness(IntEnum):
    """Word size of a Python interpreter."""

    X86 = 32
    X64 = 64


@dataclass(frozen=True)
class RuntimeTarget:
    """Python version and word size that candidates must be built for."""

    version: semantic_version.Version
    bitness: Bitness

    def __str__(self) -> str:
        return f"Python {self.version} ({self.bitness.value}-bit)"
