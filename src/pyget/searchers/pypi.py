"""
PyPI XML-RPC backend.

Talks to any index implementing the PyPI XML-RPC API. Requests are
marshalled with ``xmlrpc.client`` and sent over httpx so that the same
async client, timeouts and error handling apply as for the other backends.
"""

import logging
import xmlrpc.client
from typing import Any
from xml.parsers.expat import ExpatError

import httpx

from pyget.core.errors import RemoteUnavailable
from pyget.core.fastpath import encode_fastpath
from pyget.models.package import Package
from pyget.models.target import RuntimeTarget
from pyget.searchers.http import DEFAULT_TIMEOUT, request

logger = logging.getLogger(__name__)


class PypiXmlRpc:
    """Thin async XML-RPC proxy for one PyPI-compatible endpoint."""

    def __init__(
        self,
        url: str,
        source: str,
        client: httpx.AsyncClient | None = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
    ):
        self.url = url
        self.source = source
        self.client = client
        self.timeout = timeout

    async def call(self, method: str, *params: Any) -> Any:
        """Invoke a remote method and return its single result value."""
        body = xmlrpc.client.dumps(params, method)
        resp = await request(
            "POST",
            self.url,
            self.source,
            client=self.client,
            timeout=self.timeout,
            content=body.encode("utf-8"),
            headers={"Content-Type": "text/xml"},
        )

        try:
            (result,), _ = xmlrpc.client.loads(resp.content)
        except xmlrpc.client.Fault as e:
            raise RemoteUnavailable(self.source, f"{method} fault {e.faultCode}: {e.faultString}") from e
        except (ExpatError, xmlrpc.client.ResponseError, ValueError) as e:
            raise RemoteUnavailable(self.source, f"Malformed {method} response: {e}") from e
        return result

    async def search(self, name: str) -> list[dict]:
        """``search({'name': name})`` — records with name, version and summary."""
        result = await self.call("search", {"name": name})
        if not isinstance(result, list):
            raise RemoteUnavailable(self.source, f"search returned {type(result).__name__}")
        return [r for r in result if isinstance(r, dict)]

    async def package_releases(self, name: str, show_hidden: bool = False) -> list[str]:
        """List the released versions of a package."""
        result = await self.call("package_releases", name, show_hidden)
        if not isinstance(result, list):
            raise RemoteUnavailable(self.source, f"package_releases returned {type(result).__name__}")
        return [str(v) for v in result]


class PypiSearcher:
    """
    Searches a PyPI-compatible index.

    Every search hit becomes a Package whose fast path names this source;
    PyPI hits have no download URI since pip resolves them itself.
    """

    def __init__(
        self,
        source_name: str,
        location: str,
        client: httpx.AsyncClient | None = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
    ):
        self.source_name = source_name
        self.location = location
        self.rpc = PypiXmlRpc(location, source_name, client=client, timeout=timeout)

    async def search(self, name: str, target: RuntimeTarget) -> list[Package]:
        records = await self.rpc.search(name)

        packages = []
        for record in records:
            pkg_name = record.get("name")
            version = record.get("version")
            if not pkg_name or version is None:
                logger.debug(f"[{self.source_name}] Skipping incomplete record: {record}")
                continue
            # XML-RPC is loosely typed; numeric versions are fine, anything else is not
            if not isinstance(pkg_name, str) or isinstance(version, bool) or not isinstance(
                version, (str, int, float)
            ):
                logger.debug(f"[{self.source_name}] Skipping malformed record: {record}")
                continue

            summary = record.get("summary")
            version = str(version)
            packages.append(
                Package(
                    fastpath=encode_fastpath(self.source_name, pkg_name, version),
                    name=pkg_name,
                    version=version,
                    version_scheme="",
                    summary=summary if isinstance(summary, str) else "",
                    source=self.source_name,
                )
            )

        logger.debug(f"[{self.source_name}] {len(packages)} hits for {name!r}")
        return packages

    async def releases(self, name: str, show_hidden: bool = False) -> list[str]:
        return await self.rpc.package_releases(name, show_hidden)
