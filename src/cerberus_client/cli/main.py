"""Command line interface for Cerberus."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

import click
from rich.console import Console
from rich.table import Table

from cerberus_client import __version__
from cerberus_client.core.exceptions import CerberusClientError
from cerberus_client.utils.logging import get_logger, setup_logging
from cerberus_client.utils.properties import parse_property, set_property

if TYPE_CHECKING:
    from cerberus_client.clients.cerberus_client import CerberusClient
    from cerberus_client.core.config import CerberusConfig

console = Console()
logger = get_logger(__name__)


class CerberusContext:
    """Shared context for CLI commands with lazy initialization."""

    def __init__(
        self,
        config_path: str | None,
        url: str | None,
        region: str | None,
        log_level: str = "WARNING",
    ):
        self.config_path = config_path
        self.url = url
        self.region = region
        self.log_level = log_level
        self._config: CerberusConfig | None = None
        self._client: CerberusClient | None = None

    @property
    def config(self) -> CerberusConfig:
        """Get or create config lazily."""
        if self._config is None:
            from cerberus_client.core.config import CerberusConfig

            if self.config_path:
                config = CerberusConfig.from_file(Path(self.config_path).expanduser())
                setup_logging(
                    level=self.log_level,
                    format=config.logging.format,
                    output=config.logging.output,
                )
            else:
                config = CerberusConfig.from_env()
            updates = {"url": self.url, "region": self.region}
            self._config = config.model_copy(
                update={key: value for key, value in updates.items() if value}
            )
        return self._config

    @property
    def client(self) -> CerberusClient:
        """Get or create the Cerberus client lazily."""
        if self._client is None:
            from cerberus_client.factory import get_client

            self._client = get_client(config=self.config)
        return self._client


def _fail(ctx: click.Context, error: Exception) -> NoReturn:
    console.print(f"[red]Error: {error}[/red]")
    logger.debug("command_failed", command=ctx.command_path, error=str(error))
    ctx.exit(1)


def _parse_pairs(pairs: tuple[str, ...]) -> dict[str, str]:
    data: dict[str, str] = {}
    for pair in pairs:
        try:
            key, value = parse_property(pair)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="KEY=VALUE") from e
        data[key] = value
    return data


@click.group()
@click.version_option(version=__version__)
@click.option("--url", envvar="CERBERUS_ADDR", help="Cerberus base URL")
@click.option("--region", help="AWS region used for STS authentication")
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to configuration file",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Log level",
)
@click.option(
    "-D",
    "properties",
    multiple=True,
    metavar="KEY=VALUE",
    help="Set a process property, e.g. -D cerberus.token=...",
)
@click.pass_context
def cli(
    ctx: click.Context,
    url: str | None,
    region: str | None,
    config: str | None,
    log_level: str,
    properties: tuple[str, ...],
) -> None:
    """Read and manage secrets stored in Cerberus."""
    setup_logging(level=log_level, format="console")

    for definition in properties:
        try:
            name, value = parse_property(definition)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="-D") from e
        set_property(name, value)

    ctx.obj = CerberusContext(
        config_path=config, url=url, region=region, log_level=log_level
    )


@cli.command(name="list")
@click.argument("path")
@click.pass_context
def list_secrets(ctx: click.Context, path: str) -> None:
    """List the keys under PATH."""
    try:
        keys = ctx.obj.client.list(path).keys
    except CerberusClientError as e:
        _fail(ctx, e)

    if not keys:
        console.print(f"[yellow]No keys found under {path}[/yellow]")
        return
    for key in keys:
        console.print(key, highlight=False)


@cli.command()
@click.argument("path")
@click.option("--version-id", help="Read a past version of the secret")
@click.option("--format", type=click.Choice(["table", "json"]), default="table")
@click.pass_context
def read(ctx: click.Context, path: str, version_id: str | None, format: str) -> None:
    """Read the secret map stored at PATH."""
    try:
        data = ctx.obj.client.read(path, version_id=version_id).data
    except CerberusClientError as e:
        _fail(ctx, e)

    if format == "json":
        print(json.dumps(data, indent=2, default=str))
        return

    table = Table(title=path)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for key, value in data.items():
        table.add_row(key, str(value))
    console.print(table)


@cli.command()
@click.argument("path")
@click.argument("pairs", nargs=-1, required=True, metavar="KEY=VALUE...")
@click.pass_context
def write(ctx: click.Context, path: str, pairs: tuple[str, ...]) -> None:
    """Write KEY=VALUE pairs as the secret map at PATH, replacing what is there."""
    data = _parse_pairs(pairs)
    try:
        ctx.obj.client.write(path, data)
    except CerberusClientError as e:
        _fail(ctx, e)
    console.print(f"[green]✓ Wrote {len(data)} key(s) to {path}[/green]")


@cli.command()
@click.argument("path")
@click.pass_context
def delete(ctx: click.Context, path: str) -> None:
    """Delete the secret map at PATH."""
    try:
        ctx.obj.client.delete(path)
    except CerberusClientError as e:
        _fail(ctx, e)
    console.print(f"[green]✓ Deleted {path}[/green]")


@cli.command()
@click.argument("path")
@click.option("--limit", type=int, help="Maximum number of files to return")
@click.option("--offset", type=int, help="Number of files to skip")
@click.pass_context
def files(ctx: click.Context, path: str, limit: int | None, offset: int | None) -> None:
    """List the secure files under PATH."""
    try:
        result = ctx.obj.client.list_files(path, limit=limit, offset=offset)
    except CerberusClientError as e:
        _fail(ctx, e)

    if not result.secure_file_summaries:
        console.print(f"[yellow]No files found under {path}[/yellow]")
        return

    table = Table(title=f"Secure files ({result.total_file_count} total)")
    table.add_column("Path", style="cyan")
    table.add_column("Size", style="magenta", justify="right")
    table.add_column("Last Updated By", style="blue")
    for summary in result.secure_file_summaries:
        table.add_row(summary.path or "-", str(summary.size_in_bytes), summary.last_updated_by or "-")
    console.print(table)
    if result.has_next:
        console.print(f"More files available, use --offset {result.next_offset}")


@cli.command(name="read-file")
@click.argument("path")
@click.option("--output", "-o", type=click.Path(dir_okay=False, writable=True), help="Write contents to this file")
@click.pass_context
def read_file(ctx: click.Context, path: str, output: str | None) -> None:
    """Download the secure file at PATH."""
    try:
        contents = ctx.obj.client.read_file_as_bytes(path)
    except CerberusClientError as e:
        _fail(ctx, e)

    if output:
        Path(output).write_bytes(contents)
        console.print(f"[green]✓ Saved {len(contents)} bytes to {output}[/green]")
    else:
        click.echo(contents, nl=False)


@cli.command(name="write-file")
@click.argument("path")
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def write_file(ctx: click.Context, path: str, source: str) -> None:
    """Upload the local file SOURCE as the secure file at PATH."""
    contents = Path(source).read_bytes()
    try:
        ctx.obj.client.write_file(path, contents)
    except CerberusClientError as e:
        _fail(ctx, e)
    console.print(f"[green]✓ Uploaded {len(contents)} bytes to {path}[/green]")


@cli.command(name="delete-file")
@click.argument("path")
@click.pass_context
def delete_file(ctx: click.Context, path: str) -> None:
    """Delete the secure file at PATH."""
    try:
        ctx.obj.client.delete_file(path)
    except CerberusClientError as e:
        _fail(ctx, e)
    console.print(f"[green]✓ Deleted {path}[/green]")


@cli.command()
@click.pass_context
def token(ctx: click.Context) -> None:
    """Print a Cerberus token obtained from the credentials provider chain."""
    try:
        credentials = ctx.obj.client.credentials_provider.get_credentials()
    except CerberusClientError as e:
        _fail(ctx, e)
    click.echo(credentials.token)


if __name__ == "__main__":
    cli()
