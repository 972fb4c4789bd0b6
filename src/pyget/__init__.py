"""
PyGet - Multi-source Python package finder.

Searches PyPI-style XML-RPC indexes and scraped installer listings for a
package, filters the hits by version and target interpreter, and returns
self-describing fast-path identifiers for later install/uninstall steps.
"""

__version__ = "0.3.0"


def __getattr__(name: str):
    """Lazy import for heavy dependencies."""
    if name == "resolve":
        from pyget.core.resolver import resolve

        return resolve
    if name == "Package":
        from pyget.models.package import Package

        return Package
    if name == "FastPath":
        from pyget.core.fastpath import FastPath

        return FastPath
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["resolve", "Package", "FastPath", "__version__"]
