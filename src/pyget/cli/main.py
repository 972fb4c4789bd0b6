"""
PyGet CLI — Multi-source Python package finder.

Usage:
    pyget find numpy --python-version 2.7 --bits 64
    pyget find requests --minimum-version 2.0 --python C:\\Python34
    pyget sources add gohlke http://www.lfd.uci.edu/~gohlke/pythonlibs --type wheel_listing
    pyget fastpath 'pypi/requests/2.7.0'
"""

import asyncio
import json
import logging
from pathlib import Path

import click
import httpx
from rich.console import Console
from rich.table import Table

from pyget import __version__
from pyget.core.errors import PyGetError

console = Console()


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _registry(config):
    from pyget.sources.registry import SourceRegistry

    try:
        return SourceRegistry(Path(config) if config else None)
    except PyGetError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(version=__version__, prog_name="pyget")
def cli():
    """PyGet — Multi-source Python package finder."""
    pass


# ──────────────────────────────────────────────
# find
# ──────────────────────────────────────────────


@cli.command()
@click.argument("name")
@click.option("--required-version", "-r", default=None, help="Exact version to find.")
@click.option("--minimum-version", default=None, help="Lowest acceptable version.")
@click.option("--maximum-version", default=None, help="Highest acceptable version.")
@click.option(
    "--python",
    "python_path",
    type=click.Path(),
    default=None,
    help="Python installation directory or executable to search for.",
)
@click.option("--python-version", default=None, help="Target Python version instead of --python.")
@click.option(
    "--bits",
    type=click.Choice(["32", "64"]),
    default=None,
    help="Target word size, used with --python-version.",
)
@click.option("--trusted-only", is_flag=True, help="Only search trusted sources.")
@click.option("--config", "-c", type=click.Path(), default=None, help="Source registry file.")
@click.option("--timeout", "-t", type=float, default=30.0, help="Per-source timeout in seconds.")
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
def find(
    name,
    required_version,
    minimum_version,
    maximum_version,
    python_path,
    python_version,
    bits,
    trusted_only,
    config,
    timeout,
    fmt,
    verbose,
):
    """Find the newest matching version of NAME in every source."""
    from pyget.core.resolver import resolve
    from pyget.core.versions import VersionConstraint
    from pyget.runtime.python import find_python, runtime_target
    from pyget.searchers import searchers_for

    _configure_logging(verbose)

    try:
        constraint = VersionConstraint.from_strings(required_version, minimum_version, maximum_version)
        if python_version:
            if not bits:
                raise click.UsageError("--bits is required with --python-version.")
            target = runtime_target(python_version, int(bits))
        else:
            target = find_python(python_path).target()

        sources = _registry(config).list_sources(trusted_only=trusted_only)

        async def run():
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(timeout, connect=timeout), follow_redirects=True
            ) as client:
                searchers = searchers_for(sources, client=client)
                with console.status(f"[bold cyan]Searching {len(searchers)} sources...[/bold cyan]"):
                    return await resolve(name, constraint, target, searchers, timeout=timeout)

        resolution = asyncio.run(run())
    except PyGetError as e:
        raise click.ClickException(str(e)) from e

    if fmt == "json":
        click.echo(json.dumps([p.to_dict() for p in resolution.packages], indent=2))
    else:
        _print_packages(resolution.packages)

    for source, reason in resolution.failures.items():
        console.print(f"[yellow]Warning:[/yellow] {source} skipped ({reason})")


def _print_packages(packages) -> None:
    if not packages:
        console.print("No packages found.")
        return

    table = Table(title="Packages")
    table.add_column("Name", style="bold")
    table.add_column("Version")
    table.add_column("Source", style="cyan")
    table.add_column("Summary")
    table.add_column("Fast path", overflow="fold")
    for p in packages:
        table.add_row(p.name, p.version, p.source, p.summary, p.fastpath)
    console.print(table)


# ──────────────────────────────────────────────
# releases
# ──────────────────────────────────────────────


@cli.command()
@click.argument("name")
@click.option("--source", "-s", "source_name", default="pypi", help="PyPI-type source to ask.")
@click.option("--show-hidden", is_flag=True, help="Include hidden releases.")
@click.option("--config", "-c", type=click.Path(), default=None, help="Source registry file.")
def releases(name, source_name, show_hidden, config):
    """List all released versions of NAME in a PyPI source."""
    from pyget.models.source import SourceType
    from pyget.searchers.pypi import PypiSearcher

    _configure_logging(False)

    try:
        source = _registry(config).get(source_name)
        if source.type is not SourceType.PYPI:
            raise click.ClickException(f"{source.name} is not a PyPI source.")
        versions = asyncio.run(
            PypiSearcher(source.name, source.location).releases(name, show_hidden)
        )
    except PyGetError as e:
        raise click.ClickException(str(e)) from e

    for version in versions:
        click.echo(version)


# ──────────────────────────────────────────────
# fastpath
# ──────────────────────────────────────────────


@cli.command()
@click.argument("token")
def fastpath(token):
    """Decode a fast path TOKEN into its parts."""
    from pyget.core.fastpath import decode_fastpath

    try:
        parts = decode_fastpath(token)
    except PyGetError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"source:   {parts.source}")
    click.echo(f"package:  {parts.package}")
    click.echo(f"version:  {parts.version}")
    if parts.download_uri:
        click.echo(f"download: {parts.download_uri}")


# ──────────────────────────────────────────────
# sources
# ──────────────────────────────────────────────


@cli.group()
def sources():
    """Manage package sources."""
    pass


@sources.command("list")
@click.option("--trusted-only", is_flag=True, help="Only show trusted sources.")
@click.option("--config", "-c", type=click.Path(), default=None, help="Source registry file.")
def list_sources(trusted_only, config):
    """List registered sources."""
    registered = _registry(config).list_sources(trusted_only=trusted_only)
    if not registered:
        console.print("No sources registered.")
        return

    table = Table(title="Sources")
    table.add_column("Name", style="bold")
    table.add_column("Type")
    table.add_column("Trusted")
    table.add_column("Location", overflow="fold")
    for s in registered:
        table.add_row(s.name, s.type.value, "yes" if s.trusted else "no", s.location)
    console.print(table)


@sources.command("add")
@click.argument("name")
@click.argument("location")
@click.option(
    "--type",
    "source_type",
    type=click.Choice(["pypi", "wheel_listing"]),
    default="pypi",
    help="Kind of catalog.",
)
@click.option("--trusted", is_flag=True, help="Mark the source as trusted.")
@click.option("--config", "-c", type=click.Path(), default=None, help="Source registry file.")
def add_source(name, location, source_type, trusted, config):
    """Register (or replace) a source."""
    from pyget.models.source import Source, SourceType
    from pyget.searchers import get_searcher

    source = Source(name=name, location=location, trusted=trusted, type=SourceType(source_type))
    try:
        # Reject bad locations before they are persisted
        get_searcher(source)
    except PyGetError as e:
        raise click.ClickException(str(e)) from e

    _registry(config).add(source)
    click.echo(f"Added source {name}")


@sources.command("remove")
@click.argument("name")
@click.option("--config", "-c", type=click.Path(), default=None, help="Source registry file.")
def remove_source(name, config):
    """Unregister a source."""
    if not _registry(config).remove(name):
        raise click.ClickException(f"No source with the name {name!r} exists.")
    click.echo(f"Removed source {name}")


if __name__ == "__main__":
    cli()
