"""
Example: Find the newest numpy build for a 64-bit Python 2.7.

Usage:
    python examples/find_package.py
"""

import asyncio

import httpx

from pyget.core.fastpath import decode_fastpath
from pyget.core.resolver import resolve
from pyget.core.versions import VersionConstraint
from pyget.runtime.python import runtime_target
from pyget.searchers import searchers_for
from pyget.sources.registry import SourceRegistry


async def main():
    # Sources come from ~/.pyget/sources.json (or $PYGET_CONFIG)
    sources = SourceRegistry().list_sources()
    target = runtime_target("2.7", 64)

    async with httpx.AsyncClient(follow_redirects=True) as client:
        resolution = await resolve(
            "numpy",
            VersionConstraint.between(minimum="1.8"),
            target,
            searchers_for(sources, client=client),
        )

    for package in resolution.packages:
        parts = decode_fastpath(package.fastpath)
        print(f"{package}  ->  {parts.download_uri or 'pip install ' + parts.package}")

    for source, reason in resolution.failures.items():
        print(f"skipped {source}: {reason}")


if __name__ == "__main__":
    asyncio.run(main())
