"""Cache storage commands for S3-compatible object storage.

This module provides CLI commands for:
- Showing the resolved storage configuration
- Downloading, uploading, and probing cached objects by key
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import sys
from typing import TYPE_CHECKING, BinaryIO, TypeVar

import click
from pydantic import ValidationError

from artifact_cache.cli.utils import coro, error, info, success
from artifact_cache.core.settings import get_storage_settings
from artifact_cache.infra.storage import StorageError, create_storage_backend

if TYPE_CHECKING:
    from artifact_cache.infra.storage import StorageBackend

T = TypeVar("T")

EXIT_FAILURE = 2

timeout_option = click.option(
    "--timeout",
    type=float,
    default=None,
    help="Give up after this many seconds.",
)


async def _run(
    operation: Callable[[StorageBackend], Awaitable[T]],
    timeout: float | None = None,
) -> T:
    """Run one backend operation, turning failures into an exit status."""
    try:
        settings = get_storage_settings()
        async with create_storage_backend(settings) as backend:
            async with asyncio.timeout(timeout):
                return await operation(backend)
    except ValidationError as e:
        error(f"Invalid storage configuration: {e}")
    except TimeoutError:
        error(f"Operation timed out after {timeout}s")
    except StorageError as e:
        error(e.detail)
    sys.exit(EXIT_FAILURE)


@click.group(name="storage")
def storage() -> None:
    """Cache object storage commands.

    Store, fetch, and probe cached artifacts in S3-compatible storage.
    """


@storage.command(name="info")
def info_cmd() -> None:
    """Show storage configuration (secrets masked)."""
    try:
        settings = get_storage_settings()
    except ValidationError as e:
        error(f"Invalid storage configuration: {e}")
        sys.exit(EXIT_FAILURE)

    click.echo("\n" + "=" * 60)
    click.secho("Storage Configuration", fg="cyan", bold=True)
    click.echo("=" * 60)

    for name, value in settings.masked().items():
        click.echo(f"{name}: {value}")

    if not settings.has_credentials:
        click.secho("\nNo credentials: requests are sent anonymously", fg="yellow")


@storage.command(name="get")
@click.argument("key")
@click.option(
    "-o",
    "--output",
    type=click.File("wb"),
    default="-",
    help="Destination file (default: stdout).",
)
@timeout_option
@coro
async def get_cmd(key: str, output: BinaryIO, timeout: float | None) -> None:
    """Download the object stored at KEY."""
    await _run(lambda backend: backend.get(key, output), timeout)
    output.flush()
    success(f"Downloaded {key}")


@storage.command(name="put")
@click.argument("key")
@click.option(
    "-i",
    "--input",
    "source",
    type=click.File("rb"),
    default="-",
    help="Source file (default: stdin).",
)
@timeout_option
@coro
async def put_cmd(key: str, source: BinaryIO, timeout: float | None) -> None:
    """Upload a file (or stdin) to KEY."""
    await _run(lambda backend: backend.put(key, source), timeout)
    success(f"Uploaded {key}")


@storage.command(name="exists")
@click.argument("key")
@timeout_option
@coro
async def exists_cmd(key: str, timeout: float | None) -> None:
    """Check whether KEY is stored. Exit status 0 if it is, 1 if not."""
    found = await _run(lambda backend: backend.exists(key), timeout)
    click.echo("true" if found else "false")
    if not found:
        info(f"{key} not found")
        sys.exit(1)
