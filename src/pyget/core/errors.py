"""
Error taxonomy shared by the codec, the catalog backends and the resolver.
"""


class PyGetError(Exception):
    """Base class for all PyGet errors."""


class FormatError(PyGetError, ValueError):
    """A fast path or a required version string could not be parsed."""


class InvalidSource(PyGetError, ValueError):
    """A source descriptor failed a precondition (e.g. unsupported URL scheme)."""


class UnknownSource(PyGetError, KeyError):
    """No source with the requested name is registered."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class RemoteUnavailable(PyGetError):
    """A catalog backend could not be reached or answered with garbage."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class UnrecognizedFormat(PyGetError):
    """An executable header carries a machine type we do not know."""


class DataCorruption(PyGetError):
    """A listing entry matched the pattern but its payload is unusable."""


class PythonNotFound(PyGetError):
    """No usable Python installation could be located."""
