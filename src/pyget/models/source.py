"""
Source Model — a registered package catalog.
"""

from dataclasses import dataclass
from enum import Enum


class SourceType(Enum):
    """Kind of catalog behind a source."""

    PYPI = "pypi"  # XML-RPC index implementing the PyPI API
    WHEEL_LISTING = "wheel_listing"  # Gohlke-style installer listing page

    @classmethod
    def parse(cls, value: str) -> "SourceType":
        """Case-insensitive lookup by value or member name."""
        normalized = value.strip().lower().replace("-", "_")
        for member in cls:
            if normalized in (member.value, member.name.lower()):
                return member
        # Legacy configs spell the listing type in CamelCase
        if normalized == "wheellisting":
            return cls.WHEEL_LISTING
        raise ValueError(f"Unknown source type: {value!r}")


@dataclass(frozen=True)
class Source:
    """A named catalog location and whether it is trusted."""

    name: str
    location: str
    trusted: bool = False
    type: SourceType = SourceType.PYPI

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "location": self.location,
            "trusted": self.trusted,
            "type": self.type.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Source":
        return cls(
            name=data["name"],
            location=data["location"],
            trusted=bool(data.get("trusted", False)),
            type=SourceType.parse(data.get("type", SourceType.PYPI.value)),
        )
