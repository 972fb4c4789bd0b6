"""
Source registry — JSON-backed list of package sources.

The registry is the only writer of the sources file. Searches never see the
registry itself, only the immutable snapshot returned by ``list_sources``.
"""

import json
import logging
import os
from collections.abc import Iterator
from pathlib import Path

from pyget.core.errors import InvalidSource, UnknownSource
from pyget.models.source import Source, SourceType

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PYGET_CONFIG"

DEFAULT_SOURCES = (
    Source(name="pypi", location="https://pypi.org/pypi", trusted=True, type=SourceType.PYPI),
)


def default_config_path() -> Path:
    """``$PYGET_CONFIG`` if set, otherwise ``~/.pyget/sources.json``."""
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env)
    return Path.home() / ".pyget" / "sources.json"


class SourceRegistry:
    """
    Named package sources persisted to a JSON file.

    Names are unique and compared case-insensitively. A missing file is
    created with the default sources on first use.
    """

    def __init__(self, path: Path | None = None):
        self.path = path or default_config_path()
        self._sources: list[Source] = self._load()

    # ──────────────────────────────────────────────
    # Persistence
    # ──────────────────────────────────────────────

    def _load(self) -> list[Source]:
        """Load sources from disk, seeding the defaults if the file is absent."""
        if not self.path.exists():
            logger.info(f"No source registry at {self.path}, creating one with defaults")
            sources = list(DEFAULT_SOURCES)
            self._save(sources)
            return sources

        try:
            with open(self.path) as f:
                data = json.load(f)
            return [Source.from_dict(entry) for entry in data.get("sources", [])]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Could not load source registry {self.path}: {e}")
            raise InvalidSource(f"Corrupt source registry {self.path}: {e}") from e

    def _save(self, sources: list[Source]) -> None:
        """Write sources to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump({"sources": [s.to_dict() for s in sources]}, f, indent=2)

    # ──────────────────────────────────────────────
    # Lookup
    # ──────────────────────────────────────────────

    def _index(self, name: str) -> int | None:
        wanted = name.casefold()
        for i, source in enumerate(self._sources):
            if source.name.casefold() == wanted:
                return i
        return None

    def __iter__(self) -> Iterator[Source]:
        return iter(list(self._sources))

    def __len__(self) -> int:
        return len(self._sources)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._index(name) is not None

    def get(self, name: str) -> Source:
        """Return the source called ``name``."""
        index = self._index(name)
        if index is None:
            raise UnknownSource(f"No source with the name {name!r} exists.")
        return self._sources[index]

    def is_trusted(self, name: str) -> bool:
        return self.get(name).trusted

    def list_sources(self, trusted_only: bool = False) -> list[Source]:
        """Snapshot of the registered sources, optionally only trusted ones."""
        return [s for s in self._sources if s.trusted or not trusted_only]

    # ──────────────────────────────────────────────
    # Mutation
    # ──────────────────────────────────────────────

    def add(self, source: Source) -> None:
        """Register a source, replacing any existing one with the same name."""
        index = self._index(source.name)
        sources = list(self._sources)
        if index is not None:
            logger.info(f"Replacing source {sources[index].name}")
            del sources[index]
        sources.append(source)
        self._save(sources)
        self._sources = sources

    def remove(self, name: str) -> bool:
        """Unregister a source. Returns False if there was none."""
        index = self._index(name)
        if index is None:
            return False
        sources = list(self._sources)
        del sources[index]
        self._save(sources)
        self._sources = sources
        return True

    def clear(self) -> None:
        self._save([])
        self._sources = []
