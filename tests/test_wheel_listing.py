"""Tests for the installer listing backend."""

import httpx
import pytest
import semantic_version

from pyget.core.errors import DataCorruption, InvalidSource, RemoteUnavailable
from pyget.core.fastpath import decode_fastpath
from pyget.models.target import Bitness, RuntimeTarget
from pyget.searchers.wheel_listing import (
    WheelListingSearcher,
    deobfuscate,
    join_download_uri,
    parse_listing,
    parse_listing_line,
)

BASE_URI = "http://www.example.org/pythonlibs/"


def obfuscate(text: str) -> tuple[list[int], str]:
    """Scramble text the way the publisher does: reversed array, key undoes it."""
    encoded = [ord(c) for c in reversed(text)]
    key = "".join(chr(48 + len(text) - 1 - i) for i in range(len(text)))
    return encoded, key


def listing_line(name, version, bits, python_version, path=None, encoded=None, key=None):
    if encoded is None:
        encoded, key = obfuscate(path or f"{name}-{version}.exe")
    marker = "32" if bits == 32 else "&#8209;amd64"
    array = ",".join(str(i) for i in encoded)
    return (
        f"<li><a href='javascript:;' onclick='javascript:dl([{array}], \"{key}\")' "
        f"title='[4.1 MB] [Dec 05, 2014]'>{name}&#8209;{version}.win{marker}"
        f"&#8209;py{python_version}.exe</a></li>"
    )


@pytest.fixture
def py27_x64():
    return RuntimeTarget(version=semantic_version.Version("2.7.0"), bitness=Bitness.X64)


@pytest.fixture
def listing_page():
    return "\n".join(
        [
            "<html><body><ul>",
            listing_line("numpy", "1.9.2", 64, "2.7", path="ab12cd/numpy-1.9.2.win-amd64-py2.7.exe"),
            listing_line("numpy", "1.9.2", 32, "2.7"),
            listing_line("numpy", "1.9.1", 64, "3.4"),
            listing_line("scipy", "0.15.1", 64, "2.7"),
            listing_line("NumPy_MKL", "1.8.0", 64, "2.7"),
            # Corrupt: key points past the end of the array
            listing_line("numpy", "9.9.9", 64, "2.7", encoded=[104, 116], key="09"),
            "<li>Not an installer</li>",
            "</ul></body></html>",
        ]
    )


# ═══════════════════════════════════════════
# Deobfuscation
# ═══════════════════════════════════════════


class TestDeobfuscate:
    def test_identity_key(self):
        assert deobfuscate([104, 116, 116, 112], "0123") == "http"

    def test_key_permutes_positions(self):
        # "1032" selects entries 1, 0, 3, 2
        assert deobfuscate([104, 116, 116, 112], "1032") == "thpt"

    def test_scrambled_array_reassembled(self):
        assert deobfuscate([112, 104, 116, 116], "1230") == "http"

    def test_key_may_repeat_entries(self):
        assert deobfuscate([47, 97], "1010") == "a/a/"

    def test_index_past_end_raises(self):
        with pytest.raises(DataCorruption):
            deobfuscate([104, 116, 116, 112], "4")

    def test_negative_index_raises(self):
        # '/' is 47, one below the offset
        with pytest.raises(DataCorruption):
            deobfuscate([104, 116, 116, 112], "/")

    def test_obfuscate_helper_round_trips(self):
        encoded, key = obfuscate("numpy-1.9.2.exe")
        assert deobfuscate(encoded, key) == "numpy-1.9.2.exe"


# ═══════════════════════════════════════════
# Line Parsing
# ═══════════════════════════════════════════


class TestParseListingLine:
    def test_64_bit_entry(self):
        line = listing_line("numpy", "1.9.2", 64, "2.7", path="x/numpy.exe")
        entry = parse_listing_line(line, BASE_URI)
        assert entry.name == "numpy"
        assert entry.version == "1.9.2"
        assert entry.python_version == semantic_version.Version("2.7.0")
        assert entry.bitness == Bitness.X64
        assert entry.download_uri == "http://www.example.org/pythonlibs/x/numpy.exe"

    def test_32_bit_entry(self):
        entry = parse_listing_line(listing_line("lxml", "3.4.2", 32, "3.4"), BASE_URI)
        assert entry.bitness == Bitness.X86
        assert entry.python_version == semantic_version.Version("3.4.0")

    def test_case_insensitive_markup(self):
        line = listing_line("numpy", "1.9.2", 64, "2.7").replace("<li><a href", "<LI><A HREF")
        assert parse_listing_line(line, BASE_URI) is not None

    def test_unrelated_line_returns_none(self):
        assert parse_listing_line("<p>Hello</p>", BASE_URI) is None

    def test_out_of_range_key_raises(self):
        line = listing_line("numpy", "1.9.2", 64, "2.7", encoded=[104], key="01")
        with pytest.raises(DataCorruption):
            parse_listing_line(line, BASE_URI)

    def test_non_integer_array_raises(self):
        line = listing_line("numpy", "1.9.2", 64, "2.7", encoded=["10x"], key="0")
        with pytest.raises(DataCorruption):
            parse_listing_line(line, BASE_URI)

    def test_version_normalised(self):
        entry = parse_listing_line(listing_line("lxml", "3.4", 64, "2.7"), BASE_URI)
        assert entry.version == "3.4.0"

    def test_unparsable_python_version_raises(self):
        line = listing_line("numpy", "1.9.2", 64, "dev")
        with pytest.raises(DataCorruption):
            parse_listing_line(line, BASE_URI)


class TestParseListing:
    def test_corrupt_lines_skipped(self, listing_page):
        entries = parse_listing(listing_page.splitlines(), BASE_URI)
        assert len(entries) == 5
        assert "9.9.9" not in [e.version for e in entries]

    def test_all_corrupt_is_empty_not_error(self):
        lines = [listing_line("numpy", "1.0", 64, "2.7", encoded=[1], key="5")] * 3
        assert parse_listing(lines, BASE_URI) == []

    def test_join_download_uri(self):
        assert join_download_uri("http://h/libs/", "a/b.exe") == "http://h/libs/a/b.exe"
        assert join_download_uri("http://h/libs", "a/b.exe") == "http://h/libs/a/b.exe"


# ═══════════════════════════════════════════
# Construction
# ═══════════════════════════════════════════


class TestConstruction:
    @pytest.mark.parametrize("location", ["http://example.org/libs", "https://example.org/libs"])
    def test_http_and_https_accepted(self, location):
        searcher = WheelListingSearcher("gohlke", location)
        assert searcher.source_name == "gohlke"

    @pytest.mark.parametrize(
        "location", ["ftp://example.org/libs", "file:///srv/libs", "C:\\libs", "libs/index.html"]
    )
    def test_other_schemes_rejected(self, location):
        with pytest.raises(InvalidSource):
            WheelListingSearcher("gohlke", location)


# ═══════════════════════════════════════════
# Search
# ═══════════════════════════════════════════


class TestSearch:
    @pytest.mark.asyncio
    async def test_filters_by_target_and_name(self, listing_page, py27_x64):
        def handler(request):
            assert str(request.url) == BASE_URI
            return httpx.Response(200, text=listing_page)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            searcher = WheelListingSearcher("gohlke", BASE_URI, client=client)
            packages = await searcher.search("NumPy", py27_x64)

        assert [(p.name, p.version) for p in packages] == [("numpy", "1.9.2"), ("NumPy_MKL", "1.8.0")]
        first = packages[0]
        assert first.source == "gohlke"
        fp = decode_fastpath(first.fastpath)
        assert fp.source == "gohlke"
        assert fp.package == "numpy"
        assert fp.version == "1.9.2"
        assert fp.download_uri == BASE_URI + "ab12cd/numpy-1.9.2.win-amd64-py2.7.exe"

    @pytest.mark.asyncio
    async def test_32_bit_target(self, listing_page):
        target = RuntimeTarget(version=semantic_version.Version("2.7.0"), bitness=Bitness.X86)

        async with httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, text=listing_page))
        ) as client:
            packages = await WheelListingSearcher("gohlke", BASE_URI, client=client).search("numpy", target)

        assert [(p.name, p.version) for p in packages] == [("numpy", "1.9.2")]

    @pytest.mark.asyncio
    async def test_other_python_version_excluded(self, listing_page):
        target = RuntimeTarget(version=semantic_version.Version("3.4.0"), bitness=Bitness.X64)

        async with httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, text=listing_page))
        ) as client:
            packages = await WheelListingSearcher("gohlke", BASE_URI, client=client).search("scipy", target)

        assert packages == []

    @pytest.mark.asyncio
    async def test_fastpath_carries_normalised_version(self, py27_x64):
        page = listing_line("lxml", "3.4", 64, "2.7", path="lxml.exe")

        async with httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, text=page))
        ) as client:
            packages = await WheelListingSearcher("gohlke", BASE_URI, client=client).search("lxml", py27_x64)

        assert [p.version for p in packages] == ["3.4.0"]
        assert decode_fastpath(packages[0].fastpath).version == "3.4.0"

    @pytest.mark.asyncio
    async def test_http_error_is_remote_unavailable(self, py27_x64):
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(503))
        ) as client:
            searcher = WheelListingSearcher("gohlke", BASE_URI, client=client)
            with pytest.raises(RemoteUnavailable) as exc_info:
                await searcher.search("numpy", py27_x64)

        assert exc_info.value.source == "gohlke"

    @pytest.mark.asyncio
    async def test_connection_error_is_remote_unavailable(self, py27_x64):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            searcher = WheelListingSearcher("gohlke", BASE_URI, client=client)
            with pytest.raises(RemoteUnavailable):
                await searcher.search("numpy", py27_x64)
