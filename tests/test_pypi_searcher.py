"""Tests for the PyPI XML-RPC backend."""

import xmlrpc.client

import httpx
import pytest
import semantic_version

from pyget.core.errors import RemoteUnavailable
from pyget.core.fastpath import decode_fastpath
from pyget.models.target import Bitness, RuntimeTarget
from pyget.searchers.pypi import PypiSearcher

INDEX_URL = "https://pypi.example.org/pypi"

SEARCH_RESULTS = [
    {"name": "requests", "version": "2.7.0", "summary": "Python HTTP for Humans.", "_pypi_ordering": 1},
    {"name": "requests-oauthlib", "version": "0.5.0", "summary": "OAuthlib authentication support"},
    {"name": "requests/weird", "version": "1.0", "summary": ""},
]


@pytest.fixture
def target():
    return RuntimeTarget(version=semantic_version.Version("3.4.0"), bitness=Bitness.X64)


def xmlrpc_handler(responses, calls=None):
    """MockTransport handler answering XML-RPC calls from a method -> result map."""

    def handler(request):
        params, method = xmlrpc.client.loads(request.content)
        if calls is not None:
            calls.append((method, params))
        body = xmlrpc.client.dumps((responses[method],), methodresponse=True)
        return httpx.Response(200, content=body.encode(), headers={"Content-Type": "text/xml"})

    return handler


# ═══════════════════════════════════════════
# search
# ═══════════════════════════════════════════


class TestSearch:
    @pytest.mark.asyncio
    async def test_results_mapped_to_packages(self, target):
        calls = []
        transport = httpx.MockTransport(xmlrpc_handler({"search": SEARCH_RESULTS}, calls))

        async with httpx.AsyncClient(transport=transport) as client:
            searcher = PypiSearcher("pypi", INDEX_URL, client=client)
            packages = await searcher.search("requests", target)

        assert calls == [("search", ({"name": "requests"},))]
        assert [p.name for p in packages] == ["requests", "requests-oauthlib", "requests/weird"]

        first = packages[0]
        assert first.version == "2.7.0"
        assert first.summary == "Python HTTP for Humans."
        assert first.source == "pypi"
        assert first.version_scheme == ""
        assert first.fastpath == "pypi/requests/2.7.0"

    @pytest.mark.asyncio
    async def test_fastpath_escapes_names(self, target):
        transport = httpx.MockTransport(xmlrpc_handler({"search": SEARCH_RESULTS}))

        async with httpx.AsyncClient(transport=transport) as client:
            packages = await PypiSearcher("my/index", INDEX_URL, client=client).search("requests", target)

        fp = decode_fastpath(packages[2].fastpath)
        assert fp.source == "my/index"
        assert fp.package == "requests/weird"
        assert fp.download_uri is None

    @pytest.mark.asyncio
    async def test_incomplete_records_skipped(self, target):
        results = [{"name": "requests"}, {"version": "1.0"}, {"name": "ok", "version": "1.0"}]
        transport = httpx.MockTransport(xmlrpc_handler({"search": results}))

        async with httpx.AsyncClient(transport=transport) as client:
            packages = await PypiSearcher("pypi", INDEX_URL, client=client).search("x", target)

        assert [p.name for p in packages] == ["ok"]
        assert packages[0].summary == ""

    @pytest.mark.asyncio
    async def test_mistyped_records_skipped(self, target):
        results = [
            {"name": 123, "version": "1.0"},
            {"name": "bad-version", "version": ["1.0"]},
            {"name": "bool-version", "version": True},
            {"name": "numeric", "version": 2, "summary": 42},
            {"name": "ok", "version": "1.0", "summary": "fine"},
        ]
        transport = httpx.MockTransport(xmlrpc_handler({"search": results}))

        async with httpx.AsyncClient(transport=transport) as client:
            packages = await PypiSearcher("pypi", INDEX_URL, client=client).search("x", target)

        assert [(p.name, p.version, p.summary) for p in packages] == [
            ("numeric", "2", ""),
            ("ok", "1.0", "fine"),
        ]

    @pytest.mark.asyncio
    async def test_posts_to_source_location(self, target):
        seen = []

        def handler(request):
            seen.append((request.method, str(request.url)))
            return httpx.Response(200, content=xmlrpc.client.dumps(([],), methodresponse=True).encode())

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            assert await PypiSearcher("pypi", INDEX_URL, client=client).search("x", target) == []

        assert seen == [("POST", INDEX_URL)]


# ═══════════════════════════════════════════
# package_releases
# ═══════════════════════════════════════════


class TestReleases:
    @pytest.mark.asyncio
    async def test_releases(self):
        calls = []
        transport = httpx.MockTransport(xmlrpc_handler({"package_releases": ["2.7.0", "2.6.2"]}, calls))

        async with httpx.AsyncClient(transport=transport) as client:
            versions = await PypiSearcher("pypi", INDEX_URL, client=client).releases("requests", True)

        assert versions == ["2.7.0", "2.6.2"]
        assert calls == [("package_releases", ("requests", True))]


# ═══════════════════════════════════════════
# Failures
# ═══════════════════════════════════════════


class TestFailures:
    @pytest.mark.asyncio
    async def test_fault_is_remote_unavailable(self, target):
        def handler(request):
            body = xmlrpc.client.dumps(xmlrpc.client.Fault(1, "search disabled"), methodresponse=True)
            return httpx.Response(200, content=body.encode())

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(RemoteUnavailable, match="search disabled"):
                await PypiSearcher("pypi", INDEX_URL, client=client).search("x", target)

    @pytest.mark.asyncio
    async def test_garbage_body_is_remote_unavailable(self, target):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, text="<html>oops"))

        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(RemoteUnavailable):
                await PypiSearcher("pypi", INDEX_URL, client=client).search("x", target)

    @pytest.mark.asyncio
    async def test_http_error_is_remote_unavailable(self, target):
        transport = httpx.MockTransport(lambda r: httpx.Response(500))

        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(RemoteUnavailable) as exc_info:
                await PypiSearcher("pypi", INDEX_URL, client=client).search("x", target)

        assert exc_info.value.source == "pypi"

    @pytest.mark.asyncio
    async def test_timeout_is_remote_unavailable(self, target):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(RemoteUnavailable):
                await PypiSearcher("pypi", INDEX_URL, client=client).search("x", target)
