"""
Package Resolver — Multi-Source Search Engine.

Fans a search out to every catalog backend at once, then:
- drops hits whose version is unparsable or outside the constraint
- keeps only the highest version per (name, source)

A backend that is down or too slow only loses its own contribution; the
rest of the resolution carries on with whatever the others returned.
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import semantic_version

from pyget.core.errors import RemoteUnavailable
from pyget.core.versions import VersionConstraint, matches, parse_version
from pyget.models.package import Package
from pyget.models.target import RuntimeTarget
from pyget.searchers.base import Searchable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass
class Resolution:
    """Outcome of one resolve call."""

    packages: list[Package] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)  # source name -> reason

    @property
    def degraded(self) -> bool:
        return bool(self.failures)


# ──────────────────────────────────────────────
# Fan-out
# ──────────────────────────────────────────────


async def _search_one(
    searcher: Searchable, name: str, target: RuntimeTarget, timeout: float | None
) -> list[Package]:
    """Query one backend, bounded by ``timeout`` seconds."""
    try:
        return await asyncio.wait_for(searcher.search(name, target), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise RemoteUnavailable(searcher.source_name, f"No answer within {timeout}s") from e


async def search_all(
    name: str,
    target: RuntimeTarget,
    searchers: Sequence[Searchable],
    timeout: float | None = DEFAULT_TIMEOUT,
) -> tuple[list[Package], dict[str, str]]:
    """
    Query every backend concurrently.

    If the caller cancels while backends are still running, only those
    backends are cancelled; whatever already finished is kept and the
    cancelled ones are reported as failures.

    Returns:
        All hits concatenated in backend order, and the failure reason of
        each backend that could not be queried.
    """
    tasks = [asyncio.ensure_future(_search_one(s, name, target, timeout)) for s in searchers]
    if tasks:
        try:
            await asyncio.wait(tasks)
        except asyncio.CancelledError:
            pending = [t for t in tasks if not t.done()]
            logger.warning(f"Search cancelled, dropping {len(pending)} unfinished sources")
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

    candidates: list[Package] = []
    failures: dict[str, str] = {}
    for searcher, task in zip(searchers, tasks):
        if task.cancelled():
            logger.warning(f"Search of {searcher.source_name} was cancelled")
            failures[searcher.source_name] = "cancelled"
            continue
        error = task.exception()
        if isinstance(error, RemoteUnavailable):
            logger.warning(f"Source {searcher.source_name} unavailable: {error}")
            failures[searcher.source_name] = str(error)
            continue
        if error is not None:
            raise error
        candidates.extend(task.result())

    return candidates, failures


# ──────────────────────────────────────────────
# Filtering & Selection
# ──────────────────────────────────────────────


def filter_candidates(
    candidates: Iterable[Package], constraint: VersionConstraint
) -> list[tuple[Package, semantic_version.Version]]:
    """Keep candidates with a parsable version that satisfies the constraint."""
    kept = []
    for package in candidates:
        version = parse_version(package.version)
        if version is None:
            logger.debug(f"Ignoring {package}: unparsable version")
            continue
        if matches(version, constraint):
            kept.append((package, version))
    return kept


def select_latest(
    candidates: Iterable[tuple[Package, semantic_version.Version]],
) -> list[Package]:
    """
    Reduce candidates to the highest version per (name, source).

    Groups come out in the order their first member was seen; within a
    group the earliest candidate wins a tie.
    """
    best: dict[tuple[str, str], tuple[Package, semantic_version.Version]] = {}
    for package, version in candidates:
        key = (package.name, package.source)
        current = best.get(key)
        if current is None or version > current[1]:
            best[key] = (package, version)
    return [package for package, _ in best.values()]


# ──────────────────────────────────────────────
# Entry Points
# ──────────────────────────────────────────────


async def resolve(
    name: str,
    constraint: VersionConstraint,
    target: RuntimeTarget,
    searchers: Sequence[Searchable],
    timeout: float | None = DEFAULT_TIMEOUT,
) -> Resolution:
    """
    Find the best package per (name, source) across all backends.

    Args:
        name: Case-insensitive name pattern passed to every backend.
        constraint: Exact version or inclusive range to accept.
        target: Interpreter the packages must be built for.
        searchers: Backends to query; their order fixes the output order.
        timeout: Per-backend deadline in seconds, or None for no deadline.

    Returns:
        The selected packages and the backends that failed.
    """
    logger.info(f"Searching {len(searchers)} sources for {name!r} ({constraint}, {target})")

    candidates, failures = await search_all(name, target, searchers, timeout)
    packages = select_latest(filter_candidates(candidates, constraint))

    logger.info(
        f"{len(packages)} packages selected from {len(candidates)} candidates"
        + (f", {len(failures)} sources failed" if failures else "")
    )
    return Resolution(packages=packages, failures=failures)


async def find_packages(
    name: str,
    constraint: VersionConstraint,
    target: RuntimeTarget,
    searchers: Sequence[Searchable],
    timeout: float | None = DEFAULT_TIMEOUT,
) -> list[Package]:
    """Like :func:`resolve` but returns only the packages."""
    resolution = await resolve(name, constraint, target, searchers, timeout)
    return resolution.packages
