"""Command line interface for the date gallery."""

from __future__ import annotations

import difflib
import json
import mimetypes
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from dategallery.config import (
    ConfigError,
    ConfigManager,
    GalleryConfig,
    assign_dotted,
    resolve_with_precedence,
)
from dategallery.logs import configure_logging
from dategallery.reconcile import reconcile
from dategallery.store import EmptyBucketError, GalleryError, GalleryStores, IncomingFile
from dategallery.uploads import UploadCoordinator

console = Console()


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"success": False, "error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        _emit_json(payload)
        raise SystemExit(1)

    raise click.ClickException(message) from original


def _emit_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2))


def _emit_message(message: Any, *, quiet: bool, error: bool = False) -> None:
    if quiet and not error:
        return
    console.print(message)


def _parse_overrides(values: tuple[str, ...]) -> dict[str, Any]:
    """Convert repeated ``KEY=VALUE`` options into dotted CLI overrides.

    Raises:
        click.BadParameter: If an entry is not of the form ``KEY=VALUE``.
    """
    overrides: dict[str, Any] = {}
    for raw in values:
        key, sep, value = raw.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected KEY=VALUE, got {raw!r}.", param_hint="--set")
        try:
            overrides[key.strip()] = yaml.safe_load(value)
        except yaml.YAMLError:
            overrides[key.strip()] = value
    return overrides


def _load_config(ctx: click.Context) -> GalleryConfig:
    """Load configuration for the current invocation and configure logging.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    obj = ctx.ensure_object(dict)
    cached = obj.get("config")
    if cached is not None:
        return cached
    manager: ConfigManager = obj["manager"]
    try:
        config = manager.load(cli_overrides=obj.get("overrides") or None)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    configure_logging(config.logging, level_override=obj.get("log_level"))
    obj["config"] = config
    return config


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="dategallery")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file to use instead of ~/.dategallery/config.yaml.",
)
@click.option(
    "--set",
    "overrides",
    multiple=True,
    metavar="KEY=VALUE",
    help="Override a configuration value for this invocation (e.g. storage.root=media).",
)
@click.option("--log-level", type=str, help="Override the configured logging level.")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    overrides: tuple[str, ...],
    log_level: str | None,
) -> None:
    """Manage date-bucketed gallery uploads and the catalogs that list them."""
    obj = ctx.ensure_object(dict)
    obj["manager"] = ConfigManager(config_path=config_path)
    obj["overrides"] = _parse_overrides(overrides)
    obj["log_level"] = log_level


@cli.command()
@click.option("--host", type=str, help="Interface to bind (defaults to server.host).")
@click.option("--port", type=int, help="Port to listen on (defaults to server.port).")
@click.option("--debug/--no-debug", default=None, help="Run Flask in debug mode.")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, debug: bool | None) -> None:
    """Run the upload, listing, and reconciliation HTTP endpoints."""
    from dategallery.web import create_app

    config = _load_config(ctx)
    app = create_app(config)
    app.run(
        host=host or config.server.host,
        port=port or config.server.port,
        debug=config.server.debug if debug is None else debug,
    )


@cli.command()
@click.argument("date")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--json", "json_output", is_flag=True, help="Emit the upload result as JSON.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def upload(
    ctx: click.Context,
    date: str,
    files: tuple[Path, ...],
    json_output: bool,
    quiet: bool,
) -> None:
    """Store FILES in the DATE bucket and update the folder index and catalog."""
    config = _load_config(ctx)
    quiet = quiet or config.cli.quiet_default
    coordinator = UploadCoordinator.from_stores(GalleryStores.from_config(config), config.uploads)

    incoming = [
        IncomingFile(
            name=path.name,
            content=path.read_bytes(),
            mime_type=mimetypes.guess_type(path.name)[0] or "",
        )
        for path in files
    ]
    try:
        result = coordinator.submit(date, incoming)
    except GalleryError as exc:
        _handle_cli_error(str(exc), code=exc.code, json_output=json_output, original=exc)
        return

    if json_output:
        _emit_json({"success": True, **result.model_dump(mode="json")})
        return

    for item in result.files:
        _emit_message(f"  {item.name} -> {item.path}", quiet=quiet)
    for note in result.skipped:
        _emit_message(f"[yellow]Skipped {note}[/yellow]", quiet=quiet)
    for note in [*result.failed, *result.warnings]:
        _emit_message(f"[red]{note}[/red]", quiet=quiet, error=True)
    _emit_message(
        f"[green]Uploaded {result.file_count} file(s) to {result.date}.[/green]", quiet=quiet
    )


@cli.command("list")
@click.argument("date")
@click.option("--json", "json_output", is_flag=True, help="Emit the listing as JSON.")
@click.pass_context
def list_images(ctx: click.Context, date: str, json_output: bool) -> None:
    """List the images stored in the DATE bucket."""
    config = _load_config(ctx)
    stores = GalleryStores.from_config(config)
    try:
        images = stores.buckets.list_images(date)
    except EmptyBucketError as exc:
        _handle_cli_error(
            str(exc),
            code=exc.code,
            json_output=json_output,
            details={"directory_exists": True},
            original=exc,
        )
        return
    except GalleryError as exc:
        _handle_cli_error(str(exc), code=exc.code, json_output=json_output, original=exc)
        return

    if json_output:
        _emit_json(
            {
                "success": True,
                "date": date.strip(),
                "images": images,
                "directory_exists": True,
                "count": len(images),
            }
        )
        return
    for image in images:
        console.print(image)


@cli.command("reconcile")
@click.option("--json", "json_output", is_flag=True, help="Emit the folder report as JSON.")
@click.pass_context
def reconcile_command(ctx: click.Context, json_output: bool) -> None:
    """Rebuild the folder index from the folders that currently hold images."""
    config = _load_config(ctx)
    stores = GalleryStores.from_config(config)
    try:
        result = reconcile(stores.buckets, stores.index)
    except GalleryError as exc:
        _handle_cli_error(str(exc), code=exc.code, json_output=json_output, original=exc)
        return

    if json_output:
        _emit_json({"success": True, **result.model_dump(mode="json", exclude_none=True)})
        return

    table = Table(title="Date folders")
    table.add_column("Folder")
    table.add_column("Images")
    table.add_column("Note")
    for status in result.folders:
        table.add_row(status.name, "yes" if status.has_images else "no", status.note or "")
    console.print(table)
    console.print(
        f"[green]Folder index rebuilt with {result.folder_count} folder(s) "
        f"at {stores.index.path}.[/green]"
    )


@cli.group()
def catalog() -> None:
    """Inspect and regenerate the image catalog."""


@catalog.command("show")
@click.option("--json", "json_output", is_flag=True, help="Emit the catalog as JSON.")
@click.pass_context
def catalog_show(ctx: click.Context, json_output: bool) -> None:
    """Print the date to image paths mapping."""
    config = _load_config(ctx)
    try:
        entries = GalleryStores.from_config(config).catalog.entries()
    except GalleryError as exc:
        _handle_cli_error(str(exc), code=exc.code, json_output=json_output, original=exc)
        return

    if json_output:
        _emit_json(entries)
        return
    if not entries:
        console.print("[yellow]The catalog is empty.[/yellow]")
        return
    for date, paths in entries.items():
        console.print(f"[bold]{date}[/bold] ({len(paths)})")
        for path in paths:
            console.print(f"  {path}")


@catalog.command("render")
@click.pass_context
def catalog_render(ctx: click.Context) -> None:
    """Regenerate the catalog script from the stored catalog."""
    config = _load_config(ctx)
    try:
        path = GalleryStores.from_config(config).catalog.render()
    except GalleryError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[green]Rendered catalog script to {path}.[/green]")


@cli.group()
def config() -> None:
    """Manage configuration files and overrides."""


@config.command("path")
@click.pass_context
def config_path_command(ctx: click.Context) -> None:
    """Print the configuration file location."""
    manager: ConfigManager = ctx.obj["manager"]
    click.echo(str(manager.config_path))


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.pass_context
def config_view(ctx: click.Context, no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager: ConfigManager = ctx.obj["manager"]
    try:
        loaded = manager.load(include_env=not no_env, cli_overrides=ctx.obj["overrides"] or None)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager: ConfigManager = ctx.obj["manager"]
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'storage.root'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        file_data = manager.load_file_overrides()
        assign_dotted(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=GalleryConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    diff = list(
        difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    # The timestamp line always changes; anything more means the value moved.
    if len([line for line in diff if line.startswith(("+", "-"))]) <= 4:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
