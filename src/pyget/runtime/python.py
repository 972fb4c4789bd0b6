"""
Python installation discovery.

Turns a Python installation into the RuntimeTarget that searches are run
for: the version comes from ``python -V``, the word size from the PE header
of the executable.
"""

import logging
import re
import shutil
import subprocess
from functools import cached_property
from pathlib import Path

import semantic_version

from pyget.core.errors import FormatError, PythonNotFound
from pyget.core.pe_header import detect_word_size
from pyget.core.versions import parse_version
from pyget.models.target import Bitness, RuntimeTarget

logger = logging.getLogger(__name__)

EXECUTABLE_NAMES = ("python.exe", "python")

_VERSION_OUTPUT = re.compile(r"Python\s+(?P<version>\S+)")


class PythonInstallation:
    """An installed interpreter, given by its directory or executable path."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    @cached_property
    def executable(self) -> Path:
        if self.path.is_file():
            return self.path
        for name in EXECUTABLE_NAMES:
            candidate = self.path / name
            if candidate.is_file():
                return candidate
        raise PythonNotFound(f"No Python executable in {self.path}")

    @cached_property
    def version(self) -> semantic_version.Version:
        """Version reported by ``python -V``."""
        try:
            proc = subprocess.run(
                [str(self.executable), "-V"],
                capture_output=True,
                text=True,
                timeout=30,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise PythonNotFound(f"Could not start {self.executable}: {e}") from e

        # Python 2 prints its version on stderr
        match = _VERSION_OUTPUT.search(proc.stdout or "") or _VERSION_OUTPUT.search(proc.stderr or "")
        version = parse_version(match.group("version")) if match else None
        if proc.returncode != 0 or version is None:
            raise PythonNotFound(f"Could not start {self.executable} to get its version.")
        return version

    @cached_property
    def bitness(self) -> Bitness:
        return detect_word_size(self.executable)

    def target(self) -> RuntimeTarget:
        """
        RuntimeTarget for this interpreter.

        Installer listings are tagged with major.minor only, so the patch
        level is dropped.
        """
        return runtime_target(f"{self.version.major}.{self.version.minor}", self.bitness)


def runtime_target(version: str, bitness: Bitness | int) -> RuntimeTarget:
    """Build a RuntimeTarget from a user-supplied version and word size."""
    parsed = parse_version(version)
    if parsed is None:
        raise FormatError(f"Invalid Python version: {version!r}")
    return RuntimeTarget(version=parsed, bitness=Bitness(int(bitness)))


def find_python(path: str | Path | None = None) -> PythonInstallation:
    """
    Locate a Python installation.

    Args:
        path: Installation directory or executable. Defaults to the first
            interpreter on PATH.
    """
    if path is not None:
        return PythonInstallation(path)

    for name in EXECUTABLE_NAMES:
        found = shutil.which(name)
        if found:
            logger.debug(f"Using Python on PATH: {found}")
            return PythonInstallation(found)
    raise PythonNotFound("Unable to locate Python on PATH.")
