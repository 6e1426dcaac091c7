"""CLI for azblob-fs."""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import credentials_from_env, load_client_settings
from .errors import BlobStorageError, InvalidPathError
from .filesystem import BlobFileSystem
from .results import OperationResult
from .utils import format_datetime, humanize_size


app = typer.Typer(help="""\
File-like access to an Azure Blob Storage container, with version history
kept on every overwrite. Reads the connection string from
AZURE_STORAGE_CONNECTION_STRING.""")

console = Console()

CONTAINER_OPTION = typer.Option(
    None, "--container", "-c", envvar="AZBLOB_CONTAINER",
    help="Container name (default: .azblob/config.yaml)",
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests and failures"),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _fail(message: str) -> None:
    console.print(f"[red]✗[/red] {message}")
    raise typer.Exit(1)


def _get_filesystem(container: Optional[str]) -> BlobFileSystem:
    """Build a filesystem from the environment and project settings."""
    settings = load_client_settings()
    name = container or settings.container
    if not name:
        _fail("No container given. Use --container, AZBLOB_CONTAINER, or .azblob/config.yaml")
    try:
        credentials = credentials_from_env()
        return BlobFileSystem(
            credentials,
            name,
            timeout=settings.timeout,
            versioning=settings.versioning,
        )
    except BlobStorageError as e:
        _fail(str(e))


def _check(result: OperationResult, action: str) -> None:
    if not result:
        _fail(f"{action} failed: {result.error}")


@app.command("ls")
def list_blobs(
    prefix: str = typer.Argument("", help="Only list blobs under this prefix"),
    container: Optional[str] = CONTAINER_OPTION,
):
    """List blobs (version history is never shown here)."""
    fs = _get_filesystem(container)
    try:
        entries = fs.list(prefix)
    except InvalidPathError as e:
        _fail(str(e))

    if not entries:
        console.print("[dim]No blobs[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    table.add_column("Type", style="dim")
    for entry in entries:
        table.add_row(
            entry.name,
            humanize_size(entry.size),
            format_datetime(entry.last_modified),
            entry.content_type,
        )
    console.print(table)


@app.command()
def put(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local file"),
    path: str = typer.Argument(..., help="Blob path"),
    content_type: Optional[str] = typer.Option(None, "--content-type", help="Content-Type to store"),
    container: Optional[str] = CONTAINER_OPTION,
):
    """Upload a file, archiving the blob it replaces."""
    fs = _get_filesystem(container)
    try:
        with source.open("rb") as f:
            result = fs.write_stream(path, f, content_type=content_type)
    except BlobStorageError as e:
        _fail(str(e))
    _check(result, "Upload")

    console.print(f"[green]✓[/green] Uploaded {source} -> {path}")
    if result.value:
        console.print(f"[dim]Previous content archived as version {result.value}[/dim]")


@app.command()
def cat(
    path: str = typer.Argument(..., help="Blob path"),
    version: Optional[str] = typer.Option(None, "--version", help="Read this version instead"),
    container: Optional[str] = CONTAINER_OPTION,
):
    """Print a blob (or one of its versions) to stdout."""
    fs = _get_filesystem(container)
    try:
        data = fs.get_version(path, version) if version else fs.get(path)
    except BlobStorageError as e:
        _fail(str(e))
    typer.echo(data, nl=False)


@app.command()
def rm(
    path: str = typer.Argument(..., help="Blob path"),
    all_versions: bool = typer.Option(False, "--all-versions", help="Also delete version history"),
    container: Optional[str] = CONTAINER_OPTION,
):
    """Delete a blob."""
    fs = _get_filesystem(container)
    try:
        result = fs.delete(path, include_versions=all_versions)
    except InvalidPathError as e:
        _fail(str(e))
    _check(result, "Delete")
    console.print(f"[green]✓[/green] Deleted {path}")


@app.command()
def stat(
    path: str = typer.Argument(..., help="Blob path"),
    container: Optional[str] = CONTAINER_OPTION,
):
    """Show a blob's properties and metadata."""
    fs = _get_filesystem(container)
    try:
        props = fs.get_properties(path)
    except InvalidPathError as e:
        _fail(str(e))
    if props is None:
        _fail(f"Blob not found: {path}")

    console.print(f"[bold]{path}[/bold]")
    console.print(f"  Size:     {humanize_size(props.size)} ({props.size} bytes)")
    console.print(f"  Type:     {props.content_type}")
    console.print(f"  Modified: {format_datetime(props.last_modified)}")
    console.print(f"  ETag:     {props.etag or '-'}")
    for key, value in sorted(props.metadata.items()):
        console.print(f"  meta:{key} = {value}")


@app.command()
def versions(
    path: str = typer.Argument(..., help="Blob path"),
    container: Optional[str] = CONTAINER_OPTION,
):
    """List a blob's versions, most recent first."""
    fs = _get_filesystem(container)
    try:
        records = fs.list_versions(path)
    except InvalidPathError as e:
        _fail(str(e))

    if not records:
        console.print(f"[dim]No versions of {path}[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Version")
    table.add_column("Size", justify="right")
    table.add_column("Archived / Modified")
    table.add_column("Type", style="dim")
    for record in records:
        label = f"[green]{record.version_id}[/green]" if record.is_current else record.version_id
        table.add_row(
            label,
            humanize_size(record.size),
            format_datetime(record.last_modified),
            record.content_type,
        )
    console.print(table)


@app.command()
def restore(
    path: str = typer.Argument(..., help="Blob path"),
    version: str = typer.Argument(..., help="Version id to restore"),
    container: Optional[str] = CONTAINER_OPTION,
):
    """Make an old version current (the replaced content is archived)."""
    fs = _get_filesystem(container)
    try:
        result = fs.restore_version(path, version)
    except InvalidPathError as e:
        _fail(str(e))
    _check(result, "Restore")
    console.print(f"[green]✓[/green] Restored {path} to version {version}")


@app.command("rm-version")
def rm_version(
    path: str = typer.Argument(..., help="Blob path"),
    version: str = typer.Argument(..., help="Version id to delete"),
    container: Optional[str] = CONTAINER_OPTION,
):
    """Delete one archived version."""
    fs = _get_filesystem(container)
    try:
        result = fs.delete_version(path, version)
    except InvalidPathError as e:
        _fail(str(e))
    _check(result, "Delete version")
    console.print(f"[green]✓[/green] Deleted version {version} of {path}")


@app.command()
def mb(container: Optional[str] = CONTAINER_OPTION):
    """Create the container."""
    fs = _get_filesystem(container)
    _check(fs.create_container(), "Create container")
    console.print(f"[green]✓[/green] Created container {fs.container}")


if __name__ == "__main__":
    app()
