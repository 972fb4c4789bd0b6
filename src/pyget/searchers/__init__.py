"""Catalog backends that can be searched for packages."""

from collections.abc import Iterable

import httpx

from pyget.models.source import Source, SourceType
from pyget.searchers.base import Searchable
from pyget.searchers.http import DEFAULT_TIMEOUT
from pyget.searchers.pypi import PypiSearcher
from pyget.searchers.wheel_listing import WheelListingSearcher


def get_searcher(
    source: Source,
    client: httpx.AsyncClient | None = None,
    timeout: httpx.Timeout = DEFAULT_TIMEOUT,
) -> Searchable:
    """Factory function to create the backend for a source."""
    match source.type:
        case SourceType.PYPI:
            return PypiSearcher(source.name, source.location, client=client, timeout=timeout)
        case SourceType.WHEEL_LISTING:
            return WheelListingSearcher(source.name, source.location, client=client, timeout=timeout)
        case _:
            raise ValueError(f"Unknown source type: {source.type!r}")


def searchers_for(
    sources: Iterable[Source],
    client: httpx.AsyncClient | None = None,
    timeout: httpx.Timeout = DEFAULT_TIMEOUT,
) -> list[Searchable]:
    """Build one backend per source, in source order."""
    return [get_searcher(source, client=client, timeout=timeout) for source in sources]


__all__ = ["Searchable", "PypiSearcher", "WheelListingSearcher", "get_searcher", "searchers_for"]
