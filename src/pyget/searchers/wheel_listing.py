"""
Installer Listing Backend.

Scrapes Gohlke-style "Unofficial Windows Binaries" pages. Each installer is
an anchor whose onclick handler calls ``dl([...], "key")``: the integer array
holds the character codes of the download path in scrambled order and the
key lists, one character per position, which array entry comes next.

    <li><a href='javascript:;' onclick='javascript:dl([101,120,...], "5B1>")'
     title='[1.2 MB] ...'>numpy&#8209;1.9.2.win&#8209;amd64&#8209;py2.7.exe</a></li>

Key characters are offset by 48 ('0'), so "0123" selects entries 0, 1, 2, 3.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

import httpx
import semantic_version

from pyget.core.errors import DataCorruption, InvalidSource
from pyget.core.fastpath import encode_fastpath
from pyget.core.versions import parse_version
from pyget.models.package import Package
from pyget.models.target import Bitness, RuntimeTarget
from pyget.searchers.http import DEFAULT_TIMEOUT, request

logger = logging.getLogger(__name__)

KEY_OFFSET = 48

LISTING_PATTERN = re.compile(
    r"<li><a href='javascript:;' onclick='javascript:dl\(\[(?P<encoded>[^\]]*)\], \"(?P<key>[^\"]*)\"\)'"
    r" title='[^']*'>(?P<name>\w+)&#8209;(?P<version>[\w.]+)\.win(?P<bitness>32|&#8209;amd64)"
    r"&#8209;py(?P<python_version>[\w.]+)\.exe</a></li>",
    re.IGNORECASE,
)

ALLOWED_SCHEMES = ("http", "https")


@dataclass(frozen=True)
class ListingEntry:
    """One installer found on a listing page."""

    name: str
    version: str
    python_version: semantic_version.Version
    download_uri: str
    bitness: Bitness


def deobfuscate(encoded: list[int], key: str) -> str:
    """
    Reassemble a scrambled string.

    Args:
        encoded: Character codes in scrambled order.
        key: One character per output position; ``ord(c) - 48`` is the
            index into ``encoded``.

    Raises:
        DataCorruption: If the key points outside ``encoded``.
    """
    chars = []
    for c in key:
        index = ord(c) - KEY_OFFSET
        if not 0 <= index < len(encoded):
            raise DataCorruption(f"Key character {c!r} -> index {index} outside 0..{len(encoded) - 1}")
        try:
            chars.append(chr(encoded[index]))
        except (ValueError, OverflowError) as e:
            raise DataCorruption(f"Invalid character code {encoded[index]}") from e
    return "".join(chars)


def _parse_encoded(raw: str) -> list[int]:
    """Parse the comma-separated integer array from the ``dl(...)`` call."""
    try:
        return [int(item) for item in raw.split(",") if item.strip()]
    except ValueError as e:
        raise DataCorruption(f"Non-integer in encoded array: {e}") from e


def join_download_uri(base_uri: str, suffix: str) -> str:
    """Append the deobfuscated path to the listing location."""
    return f"{base_uri.rstrip('/')}/{suffix.lstrip('/')}"


def parse_listing_line(line: str, base_uri: str) -> ListingEntry | None:
    """
    Parse a single listing line.

    Returns:
        The entry, or None if the line is not an installer anchor.

    Raises:
        DataCorruption: If the line matches but its payload is unusable.
    """
    match = LISTING_PATTERN.search(line)
    if not match:
        return None

    suffix = deobfuscate(_parse_encoded(match.group("encoded")), match.group("key"))

    python_version = parse_version(match.group("python_version"))
    if python_version is None:
        raise DataCorruption(f"Unparsable Python version: {match.group('python_version')!r}")

    version = parse_version(match.group("version"))
    if version is None:
        raise DataCorruption(f"Unparsable package version: {match.group('version')!r}")

    bitness = Bitness.X86 if match.group("bitness") == "32" else Bitness.X64

    return ListingEntry(
        name=match.group("name"),
        version=str(version),
        python_version=python_version,
        download_uri=join_download_uri(base_uri, suffix),
        bitness=bitness,
    )


def parse_listing(lines: Iterable[str], base_uri: str) -> list[ListingEntry]:
    """Parse every installer entry on a page, skipping corrupt ones."""
    entries = []
    skipped = 0
    for lineno, line in enumerate(lines, start=1):
        try:
            entry = parse_listing_line(line, base_uri)
        except DataCorruption as e:
            skipped += 1
            logger.debug(f"Skipping corrupt listing line {lineno}: {e}")
            continue
        if entry is not None:
            entries.append(entry)

    if skipped:
        logger.info(f"Skipped {skipped} corrupt entries on {base_uri}")
    return entries


class WheelListingSearcher:
    """
    Searches an installer listing page.

    Only entries built for the target's exact Python version and word size
    are returned; their fast paths carry the deobfuscated download URI.
    """

    def __init__(
        self,
        source_name: str,
        location: str,
        client: httpx.AsyncClient | None = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
    ):
        try:
            scheme = httpx.URL(location).scheme.lower()
        except httpx.InvalidURL as e:
            raise InvalidSource(f"Invalid listing URL {location!r}: {e}") from e
        if scheme not in ALLOWED_SCHEMES:
            raise InvalidSource(f"Invalid URI scheme {scheme!r} for {location!r}. Must be http or https.")

        self.source_name = source_name
        self.location = location
        self.client = client
        self.timeout = timeout

    async def fetch_entries(self) -> list[ListingEntry]:
        """Download and parse the listing page."""
        resp = await request(
            "GET", self.location, self.source_name, client=self.client, timeout=self.timeout
        )
        return parse_listing(resp.text.splitlines(), self.location)

    async def search(self, name: str, target: RuntimeTarget) -> list[Package]:
        needle = name.casefold()
        packages = []
        for entry in await self.fetch_entries():
            if entry.python_version != target.version or entry.bitness != target.bitness:
                continue
            if needle not in entry.name.casefold():
                continue

            packages.append(
                Package(
                    fastpath=encode_fastpath(
                        self.source_name, entry.name, entry.version, entry.download_uri
                    ),
                    name=entry.name,
                    version=entry.version,
                    version_scheme="",
                    summary="",
                    source=self.source_name,
                )
            )

        logger.debug(f"[{self.source_name}] {len(packages)} hits for {name!r} ({target})")
        return packages
