"""Command line interface for movietag."""

from __future__ import annotations

import asyncio
import difflib
import logging
from typing import Any, Awaitable, Callable, NoReturn, TypeVar

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from movietag.collection import (
    Collection,
    CollectionError,
    CollectionIOError,
    CollectionSummary,
    InvalidInputError,
    Movie,
    MovieId,
    NotFoundError,
    SharedCollection,
)
from movietag.config import (
    ConfigError,
    ConfigManager,
    MovietagConfig,
    assign_nested,
    resolve_with_precedence,
)
from movietag.log import configure_logging

console = Console()
LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_ERROR_CODES: dict[type[Exception], str] = {
    NotFoundError: "not_found",
    CollectionIOError: "io_error",
    InvalidInputError: "invalid_input",
    ConfigError: "config_error",
}


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    original: Exception | None = None,
) -> NoReturn:
    """Emit a standardized error and terminate the command.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output.
        click.ClickException: For non-JSON flows.
    """

    if json_output:
        console.print_json(data={"error": {"code": code, "message": message}})
        raise SystemExit(1)
    raise click.ClickException(message) from original


def _error_code(exc: Exception) -> str:
    for error_type, code in _ERROR_CODES.items():
        if isinstance(exc, error_type):
            return code
    return "error"


def _quiet_default(manager: ConfigManager) -> bool:
    """Return whether confirmation messages are suppressed by configuration."""

    try:
        return manager.load().cli.quiet_default
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _load_config(ctx: click.Context, *, json_output: bool) -> MovietagConfig:
    """Resolve configuration with command-line roots layered on top."""

    options = ctx.find_root().params
    overrides: dict[str, Any] = {}
    if options.get("movie_dir"):
        overrides["library.movie_dir"] = options["movie_dir"]
    if options.get("tag_dir"):
        overrides["library.tag_dir"] = options["tag_dir"]

    try:
        config = ConfigManager().load(cli_overrides=overrides)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)

    configure_logging(config.logging, verbose=bool(options.get("verbose")))
    ctx.ensure_object(dict)["config"] = config
    return config


def _run_with_collection(
    ctx: click.Context,
    operation: Callable[[SharedCollection], Awaitable[T]],
    *,
    json_output: bool,
) -> T:
    """Load the collection and run ``operation`` against it in one event loop.

    Raises:
        click.UsageError: If no movie or tag directory is configured.
    """

    config = _load_config(ctx, json_output=json_output)
    movie_dir = config.library.movie_dir
    tag_dir = config.library.tag_dir
    if not movie_dir or not tag_dir:
        raise click.UsageError(
            "Both a movie directory and a tag directory are required. Pass --movie-dir/--tag-dir "
            "or set library.movie_dir and library.tag_dir with `movietag config set`."
        )

    async def _main() -> T:
        shared = await SharedCollection.open(movie_dir, tag_dir)
        return await operation(shared)

    try:
        return asyncio.run(_main())
    except CollectionError as exc:
        LOGGER.debug("Command failed", exc_info=exc)
        _handle_cli_error(str(exc), code=_error_code(exc), json_output=json_output, original=exc)


def _parse_movie_id(value: str, *, json_output: bool) -> MovieId:
    try:
        return MovieId.from_hex(value)
    except InvalidInputError as exc:
        _handle_cli_error(str(exc), code="invalid_input", json_output=json_output, original=exc)


def _movie_payload(collection: Collection, movie: Movie) -> dict[str, Any]:
    return {
        "id": movie.id_hex,
        "name": movie.name,
        "path": str(movie.path),
        "poster": str(movie.poster_path) if movie.poster_path else None,
        "tags": [name for name, tagged in collection.tags_for(movie) if tagged],
    }


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="movietag")
@click.option(
    "--movie-dir",
    type=click.Path(file_okay=False, path_type=str),
    help="Directory containing one folder per movie.",
)
@click.option(
    "--tag-dir",
    type=click.Path(file_okay=False, path_type=str),
    help="Directory containing one folder of symlinks per tag.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(movie_dir: str | None, tag_dir: str | None, verbose: bool) -> None:
    """movietag tags movie folders with directories of symlinks."""


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit the movie list as JSON.")
@click.pass_context
def movies(ctx: click.Context, json_output: bool) -> None:
    """List every movie with its identifier and tags."""

    async def _collect(shared: SharedCollection) -> list[dict[str, Any]]:
        async with shared.read() as collection:
            return [_movie_payload(collection, movie) for movie in collection.sorted_movies()]

    payload = _run_with_collection(ctx, _collect, json_output=json_output)
    if json_output:
        console.print_json(data={"movies": payload})
        return

    table = Table(title="Movies")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name")
    table.add_column("Poster", justify="center")
    table.add_column("Tags")
    for entry in payload:
        table.add_row(
            entry["id"],
            escape(entry["name"]),
            "yes" if entry["poster"] else "no",
            escape(", ".join(entry["tags"])),
        )
    console.print(table)


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit the tag list as JSON.")
@click.pass_context
def tags(ctx: click.Context, json_output: bool) -> None:
    """List every tag with its members."""

    async def _collect(shared: SharedCollection) -> list[dict[str, Any]]:
        async with shared.read() as collection:
            entries = []
            for name, members in sorted(collection.tags.items()):
                names = sorted(
                    collection.movies[member].name if member in collection.movies else member.hex()
                    for member in members
                )
                entries.append({"name": name, "count": len(members), "movies": names})
            return entries

    payload = _run_with_collection(ctx, _collect, json_output=json_output)
    if json_output:
        console.print_json(data={"tags": payload})
        return

    table = Table(title="Tags")
    table.add_column("Tag")
    table.add_column("Movies", justify="right")
    table.add_column("Members")
    for entry in payload:
        table.add_row(
            escape(entry["name"]), str(entry["count"]), escape(", ".join(entry["movies"]))
        )
    console.print(table)


@cli.command()
@click.argument("movie_id")
@click.option("--json", "json_output", is_flag=True, help="Emit the movie as JSON.")
@click.pass_context
def show(ctx: click.Context, movie_id: str, json_output: bool) -> None:
    """Show one movie and the state of every tag for it."""

    parsed = _parse_movie_id(movie_id, json_output=json_output)

    async def _collect(shared: SharedCollection) -> tuple[dict[str, Any], list[tuple[str, bool]]]:
        async with shared.read() as collection:
            movie = collection.movie(parsed)
            return _movie_payload(collection, movie), collection.tags_for(movie)

    payload, tag_states = _run_with_collection(ctx, _collect, json_output=json_output)
    if json_output:
        console.print_json(data={"movie": payload})
        return

    console.print(f"[bold]{escape(payload['name'])}[/bold] ({payload['id']})")
    console.print(f"Path: {escape(payload['path'])}")
    console.print(f"Poster: {escape(payload['poster'] or 'missing')}")
    for name, tagged in tag_states:
        marker = "[green]x[/green]" if tagged else " "
        console.print(f"  [{marker}] {escape(name)}")


@cli.command()
@click.argument("movie_id")
@click.argument("tag")
@click.option("--json", "json_output", is_flag=True, help="Emit the new state as JSON.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def toggle(ctx: click.Context, movie_id: str, tag: str, json_output: bool, quiet: bool) -> None:
    """Add MOVIE_ID to TAG, or remove it if it is already tagged."""

    parsed = _parse_movie_id(movie_id, json_output=json_output)

    async def _toggle(shared: SharedCollection) -> tuple[str, bool]:
        tagged = await shared.toggle_tag(tag, parsed)
        async with shared.read() as collection:
            return collection.movie(parsed).name, tagged

    name, tagged = _run_with_collection(ctx, _toggle, json_output=json_output)
    if json_output:
        console.print_json(data={"movie": parsed.hex(), "tag": tag, "tagged": tagged})
        return
    if quiet or ctx.obj["config"].cli.quiet_default:
        return
    if tagged:
        console.print(f"[green]Tagged {escape(name)} with {escape(tag)}.[/green]")
    else:
        console.print(f"[yellow]Removed {escape(tag)} from {escape(name)}.[/yellow]")


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit the summary as JSON.")
@click.pass_context
def summary(ctx: click.Context, json_output: bool) -> None:
    """Print movie and tag counts for the configured directories."""

    async def _collect(shared: SharedCollection) -> CollectionSummary:
        async with shared.read() as collection:
            return collection.summary()

    result = _run_with_collection(ctx, _collect, json_output=json_output)
    if json_output:
        console.print_json(data=result.model_dump(mode="json"))
        return
    console.print(str(result), markup=False)


@cli.group()
def config() -> None:
    """Manage the movietag configuration file."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules."""

    try:
        effective = ConfigManager().load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(effective.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY."""

    manager = ConfigManager()
    manager.ensure_exists()
    before = manager.read_text().splitlines()

    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must be a dotted path such as 'library.movie_dir'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        file_data = manager.load_file_overrides()
        assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=MovietagConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    if _quiet_default(manager):
        return
    diff = list(
        difflib.unified_diff(
            before,
            manager.read_text().splitlines(),
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    # The timestamp line always changes; only report when a value line did.
    changed = [
        line
        for line in diff
        if line.startswith(("+", "-")) and not line.startswith(("+++", "---", "+# Last", "-# Last"))
    ]
    if not changed:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an editor."""

    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")
    if edited is None or edited == original:
        if not _quiet_default(manager):
            console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=MovietagConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    if not _quiet_default(manager):
        console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
