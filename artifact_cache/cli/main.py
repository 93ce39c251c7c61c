"""Main CLI entry point for artifact-cache commands."""

import click

from artifact_cache import __version__
from artifact_cache.cli.commands import storage
from artifact_cache.infra.logging import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="artifact-cache")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Artifact cache CLI - manage cached build artifacts in object storage.

    \b
    Command Groups:
      storage    Store, fetch, and probe cached objects

    \b
    Quick Start:
      artifact-cache storage info
      artifact-cache storage put artifact/1.tar -i build.tar
      artifact-cache storage exists artifact/1.tar
      artifact-cache storage get artifact/1.tar -o build.tar --timeout 300
    """
    ctx.ensure_object(dict)
    if verbose:
        setup_logging(log_level="DEBUG")
    else:
        setup_logging()


cli.add_command(storage.storage)


def main() -> None:
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
