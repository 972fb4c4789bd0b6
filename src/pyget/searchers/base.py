"""
Searchable Protocol — Base interface for all catalog backends.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pyget.models.package import Package
from pyget.models.target import RuntimeTarget


@runtime_checkable
class Searchable(Protocol):
    """
    Protocol that all catalog backends must implement.

    Backends turn a name pattern into Package values whose fast paths carry
    ``source_name``. They must not share mutable state with each other, so
    the resolver can query them concurrently.
    """

    source_name: str

    async def search(self, name: str, target: RuntimeTarget) -> list[Package]:
        """Return every package in this catalog matching ``name`` for ``target``."""
        ...
