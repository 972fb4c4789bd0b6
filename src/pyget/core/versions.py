"""
Version parsing and constraint matching.

Package indexes publish loosely formatted versions ("2.7", "1.9.2rc1",
"0.12.0.1"). Everything is coerced into a three-part semantic version; text
that cannot be coerced is treated as "no version" instead of an error so one
odd release never breaks a whole search.
"""

import logging
from dataclasses import dataclass

import semantic_version

from pyget.core.errors import FormatError

logger = logging.getLogger(__name__)

_INT_MAX = 2**31 - 1

MIN_VERSION = semantic_version.Version(major=0, minor=0, patch=0)
MAX_VERSION = semantic_version.Version(major=_INT_MAX, minor=_INT_MAX, patch=_INT_MAX)


def parse_version(text: str | None) -> semantic_version.Version | None:
    """
    Best-effort parse of a version string.

    Returns:
        The parsed version, or None if the text is empty or unparsable.
    """
    if not text:
        return None
    text = text.strip()
    try:
        return semantic_version.Version(text)
    except ValueError:
        pass
    try:
        return semantic_version.Version.coerce(text)
    except ValueError:
        logger.debug(f"Unparsable version: {text!r}")
        return None


def require_version(text: str) -> semantic_version.Version:
    """Parse a version that the caller cannot do without."""
    version = parse_version(text)
    if version is None:
        raise FormatError(f"Invalid version: {text!r}")
    return version


def compare_versions(a: semantic_version.Version, b: semantic_version.Version) -> int:
    """Three-way comparison: -1, 0 or 1."""
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


@dataclass(frozen=True)
class VersionConstraint:
    """Either an exact version or an inclusive [minimum, maximum] range."""

    required: semantic_version.Version | None = None
    minimum: semantic_version.Version = MIN_VERSION
    maximum: semantic_version.Version = MAX_VERSION

    @classmethod
    def exact(cls, version: str) -> "VersionConstraint":
        return cls(required=require_version(version))

    @classmethod
    def between(cls, minimum: str | None = None, maximum: str | None = None) -> "VersionConstraint":
        return cls(
            minimum=require_version(minimum) if minimum else MIN_VERSION,
            maximum=require_version(maximum) if maximum else MAX_VERSION,
        )

    @classmethod
    def from_strings(
        cls,
        required: str | None = None,
        minimum: str | None = None,
        maximum: str | None = None,
    ) -> "VersionConstraint":
        """Build a constraint from raw user input; an exact version wins over a range."""
        if required:
            return cls.exact(required)
        return cls.between(minimum, maximum)

    def __str__(self) -> str:
        if self.required is not None:
            return f"=={self.required}"
        return f">={self.minimum},<={self.maximum}"


def matches(version: semantic_version.Version, constraint: VersionConstraint) -> bool:
    """Check whether a parsed version satisfies a constraint."""
    if constraint.required is not None:
        return version == constraint.required
    return constraint.minimum <= version <= constraint.maximum
