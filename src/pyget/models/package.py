"""
Package Model — a single search hit.

Every catalog backend produces Package values. The fast path is the only
identity a package has: two hits with the same fast path are the same
package no matter what summary or scheme they carry.
"""

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class Package:
    """
    A package found in one source.

    Equality and hashing are defined by ``fastpath`` alone.
    """

    fastpath: str
    name: str = field(compare=False)
    version: str = field(compare=False)
    version_scheme: str = field(default="", compare=False)
    summary: str = field(default="", compare=False)
    source: str = field(default="", compare=False)

    def __str__(self) -> str:
        return f"{self.name} v{self.version} ({self.source})"

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Package":
        """Deserialize from dictionary."""
        return cls(
            fastpath=data["fastpath"],
            name=data["name"],
            version=data["version"],
            version_scheme=data.get("version_scheme", ""),
            summary=data.get("summary", ""),
            source=data.get("source", ""),
        )
