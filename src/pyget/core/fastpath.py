"""
Fast Path Codec.

A fast path packs a package's source, name, version and optional download
URI into a single slash-separated token:

    source/package/version[/download_uri]

Backslashes inside a field are doubled and slashes are escaped with a
backslash, so any four strings survive an encode/decode round trip.
"""

import re
from dataclasses import dataclass

from pyget.core.errors import FormatError

# A field ends at the first slash preceded by an even number of backslashes.
_FIELD = r".*?(?<!\\)(?:\\\\)*"

FASTPATH_PATTERN = re.compile(
    rf"^(?P<source>{_FIELD})/(?P<package>{_FIELD})/(?P<version>{_FIELD})(?:\Z|/)(?P<uri>.*)\Z",
    re.DOTALL,
)

_ESCAPED_CHAR = re.compile(r"\\([\\/])")


def escape_field(value: str) -> str:
    """Escape backslashes and slashes in a single fast path field."""
    return value.replace("\\", "\\\\").replace("/", "\\/")


def unescape_field(value: str) -> str:
    """Reverse :func:`escape_field`."""
    return _ESCAPED_CHAR.sub(r"\1", value)


def encode_fastpath(
    source: str, package: str, version: str, download_uri: str | None = None
) -> str:
    """
    Build a fast path token from its parts.

    Args:
        source: Name of the source the package was found in.
        package: Package name.
        version: Package version string.
        download_uri: Direct download location, if the source has one.

    Returns:
        The escaped token.
    """
    token = "/".join(escape_field(part) for part in (source, package, version))
    if download_uri:
        token += "/" + escape_field(str(download_uri))
    return token


def decode_fastpath(token: str) -> "FastPath":
    """
    Split a fast path token back into its parts.

    Raises:
        FormatError: If the token does not contain the three required fields.
    """
    match = FASTPATH_PATTERN.match(token)
    if match is None:
        raise FormatError(f"Malformed fast path: {token!r}")

    uri = match.group("uri")
    return FastPath(
        source=unescape_field(match.group("source")),
        package=unescape_field(match.group("package")),
        version=unescape_field(match.group("version")),
        download_uri=unescape_field(uri) if uri else None,
    )


@dataclass(frozen=True)
class FastPath:
    """Decoded form of a fast path token."""

    source: str
    package: str
    version: str
    download_uri: str | None = None

    @staticmethod
    def from_parts(
        source: str, package: str, version: str, download_uri: str | None = None
    ) -> str:
        return encode_fastpath(source, package, version, download_uri)

    @staticmethod
    def parse(token: str) -> "FastPath":
        return decode_fastpath(token)

    def __str__(self) -> str:
        return encode_fastpath(self.source, self.package, self.version, self.download_uri)
