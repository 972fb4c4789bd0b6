"""
HTTP layer shared by the network backends.

A single failed request is reported as RemoteUnavailable and never retried:
one catalog being down means "this catalog found nothing".
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from pyget import __version__
from pyget.core.errors import RemoteUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=60.0)
USER_AGENT = f"pyget/{__version__}"


@asynccontextmanager
async def client_session(
    client: httpx.AsyncClient | None, timeout: httpx.Timeout = DEFAULT_TIMEOUT
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield ``client`` if given, otherwise a short-lived client closed on exit."""
    if client is not None:
        yield client
        return

    async with httpx.AsyncClient(
        timeout=timeout, follow_redirects=True, headers={"User-Agent": USER_AGENT}
    ) as session:
        yield session


async def request(
    method: str,
    url: str,
    source: str,
    client: httpx.AsyncClient | None = None,
    timeout: httpx.Timeout = DEFAULT_TIMEOUT,
    **kwargs,
) -> httpx.Response:
    """
    Make one HTTP request on behalf of a source.

    Raises:
        RemoteUnavailable: On transport errors and non-2xx responses.
    """
    logger.debug(f"[{source}] {method} {url}")
    try:
        async with client_session(client, timeout) as session:
            resp = await session.request(method, url, **kwargs)
            resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise RemoteUnavailable(source, f"HTTP {e.response.status_code} from {url}") from e
    except httpx.HTTPError as e:
        raise RemoteUnavailable(source, f"{type(e).__name__} requesting {url}: {e}") from e

    logger.debug(f"[{source}] {resp.status_code} ({len(resp.content)} bytes)")
    return resp
