"""Command line interface for MediaShelf."""

from __future__ import annotations

import asyncio
import difflib
import locale
from pathlib import Path
from typing import Any, Optional

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from mediashelf.app import MediaShelf
from mediashelf.archive import ArchiveError, SearchPage
from mediashelf.config import ConfigError, ConfigManager, MediaShelfConfig, resolve_with_precedence
from mediashelf.library import FileRecord, MediaKind
from mediashelf.logs import configure_logging
from mediashelf.state import (
    KIND_FILTERS,
    Collection,
    CollectionNotFoundError,
    ExternalItem,
    ResolutionStatus,
    StateError,
)

console = Console()

_KIND_CHOICES = click.Choice([kind.value for kind in MediaKind])


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command.

    Raises:
        SystemExit: When emitting JSON output.
        click.ClickException: For non-JSON flows.
    """
    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original
    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Print ``message`` unless quiet/summary preferences suppress its mode."""
    if quiet and mode != "error":
        return
    if summary_only and mode not in {"summary", "warning", "error"}:
        return
    console.print(message)


def _format_summary_line(command: str, subject: Path | str, metrics: dict[str, Any]) -> str:
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {subject}: {parts}.[/green]"


def _format_size(size: int | None) -> str:
    if size is None:
        return "-"
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def _output_modes(
    ctx: click.Context,
    config: MediaShelfConfig,
    *,
    quiet: bool,
    summary_mode: bool,
    json_output: bool,
) -> tuple[bool, bool]:
    """Resolve quiet/summary flags against configured CLI defaults."""
    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE
    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _load_config(json_output: bool = False) -> tuple[ConfigManager, MediaShelfConfig]:
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        config = manager.load()
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        raise
    configure_logging(config.logging)
    return manager, config


def _file_table(records: list[FileRecord], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Size", justify="right")
    table.add_column("Path")
    table.add_column("ID", overflow="fold")
    for record in records:
        table.add_row(
            escape(record.name + record.extension),
            record.kind.value,
            _format_size(record.size),
            escape(record.relative_path),
            record.id,
        )
    return table


def _collection_table(collections: list[Collection]) -> Table:
    table = Table(title="Stories")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Color")
    table.add_column("Items", justify="right")
    table.add_column("Updated")
    for collection in collections:
        table.add_row(
            collection.id,
            escape(collection.name),
            collection.color,
            str(len(collection.items)),
            collection.updated_at.isoformat(timespec="seconds"),
        )
    return table


def _external_table(items: list[ExternalItem], title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Kind")
    table.add_column("Creator")
    table.add_column("Date")
    for item in items:
        table.add_row(
            item.id,
            escape(item.name),
            item.kind.value,
            escape(item.creator or ""),
            item.date or "",
        )
    return table


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="mediashelf")
def cli() -> None:
    """MediaShelf browses local media libraries and curates stories from them."""


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=str), required=False)
@click.option(
    "--kind",
    type=click.Choice(list(KIND_FILTERS)),
    default="all",
    show_default=True,
    help="Only list files of this media kind.",
)
@click.option("--search", "text", type=str, default="", help="Case-insensitive name/path filter.")
@click.option("--page", type=int, default=1, show_default=True, help="1-based page to display.")
@click.option("--json", "json_output", is_flag=True, help="Emit the scan response as JSON.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def scan(
    ctx: click.Context,
    path: Optional[str],
    kind: str,
    text: str,
    page: int,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Scan PATH (or the last scanned library) and list one page of matching files."""
    manager, config = _load_config(json_output)
    quiet_enabled, summary_only = _output_modes(
        ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
    )

    target = path or config.library.last_path
    if not target:
        _handle_cli_error(
            "No library path given and none remembered from a previous scan.",
            code="missing_path",
            json_output=json_output,
        )
        return

    app = MediaShelf.from_config(config)
    result = asyncio.run(app.scan(target))
    if not result.found:
        if json_output:
            console.print_json(data=result.to_payload())
            raise SystemExit(1)
        raise click.ClickException(f"Library folder {target} {result.error}.")

    manager.remember("library.last_path", result.root)
    library = app.library
    library.set_kind_filter(kind)
    library.set_text_filter(text)
    library.set_page(page - 1)

    if json_output:
        payload = result.to_payload()
        payload["view"] = {
            "kind": library.kind_filter,
            "search": library.text_filter,
            "page": library.page + 1,
            "pages": library.page_count,
            "matches": len(library.filtered),
            "files": [record.id for record in library.current_page_files()],
        }
        console.print_json(data=payload)
        return

    _emit_message(
        _file_table(
            library.current_page_files(),
            f"Page {library.page + 1} of {library.page_count}",
        ),
        mode="detail",
        quiet=quiet_enabled,
        summary_only=summary_only,
    )
    metrics = {
        "total": result.total,
        **result.counts.model_dump(),
        "matches": len(library.filtered),
    }
    _emit_message(
        _format_summary_line("Scan", result.root, metrics),
        mode="summary",
        quiet=quiet_enabled,
        summary_only=summary_only,
    )


@cli.group()
def thumbs() -> None:
    """Generate and manage cached thumbnails."""


@thumbs.command("generate")
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--json", "json_output", is_flag=True, help="Emit per-file results as JSON.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def thumbs_generate(
    ctx: click.Context, path: str, json_output: bool, summary_mode: bool, quiet: bool
) -> None:
    """Generate thumbnails for every file under PATH, filling the cache."""
    _, config = _load_config(json_output)
    quiet_enabled, summary_only = _output_modes(
        ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
    )
    app = MediaShelf.from_config(config)

    async def _run() -> list[tuple[FileRecord, bool, bool]]:
        result = await app.scan(path)
        cached_before = {record.id: record.id in app.thumbnail_cache for record in result.files}
        thumbnails = await asyncio.gather(*(app.thumbnails.generate(r) for r in result.files))
        return [
            (record, thumbnail is not None, cached_before[record.id])
            for record, thumbnail in zip(result.files, thumbnails)
        ]

    outcomes = asyncio.run(_run())
    generated = sum(1 for _, ok, cached in outcomes if ok and not cached)
    cached = sum(1 for _, ok, was_cached in outcomes if ok and was_cached)
    missing = sum(1 for _, ok, _ in outcomes if not ok)

    if json_output:
        console.print_json(
            data={
                "files": [
                    {"id": record.id, "name": record.name, "thumbnail": ok, "cached": was_cached}
                    for record, ok, was_cached in outcomes
                ],
                "counts": {"generated": generated, "cached": cached, "unavailable": missing},
            }
        )
        return

    for record, ok, _ in outcomes:
        if not ok:
            _emit_message(
                f"[yellow]No thumbnail for {escape(record.relative_path)}[/yellow]",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
    _emit_message(
        _format_summary_line(
            "Thumbnail",
            Path(path).resolve(),
            {"generated": generated, "cached": cached, "unavailable": missing},
        ),
        mode="summary",
        quiet=quiet_enabled,
        summary_only=summary_only,
    )


@thumbs.command("clear")
def thumbs_clear() -> None:
    """Remove every cached thumbnail."""
    _, config = _load_config()
    MediaShelf.from_config(config).thumbnail_cache.clear()
    console.print("[green]Thumbnail cache cleared.[/green]")


@cli.group()
def stories() -> None:
    """Create and curate stories (named collections of media items)."""


@stories.command("list")
@click.option("--json", "json_output", is_flag=True, help="Emit stories as JSON.")
def stories_list(json_output: bool) -> None:
    """List all stories."""
    _, config = _load_config(json_output)
    collections = MediaShelf.from_config(config).collections.list_collections()
    if json_output:
        console.print_json(data=[c.model_dump(mode="json") for c in collections])
        return
    if not collections:
        console.print("[yellow]No stories yet; try `mediashelf stories create`.[/yellow]")
        return
    console.print(_collection_table(collections))


@stories.command("create")
@click.argument("name")
@click.option("--description", default="", help="Optional description.")
@click.option("--color", default=None, help="Display color such as '#6c63ff'.")
@click.option("--json", "json_output", is_flag=True, help="Emit the new story as JSON.")
def stories_create(name: str, description: str, color: Optional[str], json_output: bool) -> None:
    """Create an empty story called NAME."""
    _, config = _load_config(json_output)
    collections = MediaShelf.from_config(config).collections
    if color:
        collection = collections.create(name, description, color)
    else:
        collection = collections.create(name, description)
    if json_output:
        console.print_json(data=collection.model_dump(mode="json"))
        return
    console.print(f"[green]Created story {escape(collection.name)} ({collection.id}).[/green]")


@stories.command("update")
@click.argument("story_id")
@click.option("--name", default=None, help="New name.")
@click.option("--description", default=None, help="New description.")
@click.option("--color", default=None, help="New display color.")
def stories_update(
    story_id: str, name: Optional[str], description: Optional[str], color: Optional[str]
) -> None:
    """Rename or restyle the story STORY_ID."""
    _, config = _load_config()
    try:
        collection = MediaShelf.from_config(config).collections.update(
            story_id, name=name, description=description, color=color
        )
    except CollectionNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[green]Updated story {escape(collection.name)} ({collection.id}).[/green]")


@stories.command("delete")
@click.argument("story_id")
def stories_delete(story_id: str) -> None:
    """Delete the story STORY_ID. Imported archive items are kept."""
    _, config = _load_config()
    try:
        MediaShelf.from_config(config).collections.delete(story_id)
    except CollectionNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[green]Deleted story {story_id}.[/green]")


@stories.command("edit")
@click.argument("story_id")
@click.option("--add", "added", multiple=True, help="Item ID to include (repeatable).")
@click.option("--remove", "removed", multiple=True, help="Item ID to drop (repeatable).")
@click.option("--json", "json_output", is_flag=True, help="Emit the updated story as JSON.")
def stories_edit(
    story_id: str, added: tuple[str, ...], removed: tuple[str, ...], json_output: bool
) -> None:
    """Add or remove item IDs from STORY_ID in a single edit session."""
    _, config = _load_config(json_output)
    collections = MediaShelf.from_config(config).collections
    try:
        collections.begin_edit(story_id)
        for item_id in added:
            if not collections.is_selected(item_id):
                collections.toggle(item_id)
        for item_id in removed:
            if collections.is_selected(item_id):
                collections.toggle(item_id)
        collection = collections.commit()
    except StateError as exc:
        collections.cancel()
        _handle_cli_error(str(exc), code="story_error", json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(data=collection.model_dump(mode="json"))
        return
    console.print(
        f"[green]Story {escape(collection.name)} now holds {len(collection.items)} item(s).[/green]"
    )


@stories.command("show")
@click.argument("story_id")
@click.option(
    "--library",
    "library_path",
    type=click.Path(file_okay=False, path_type=str),
    help="Library to resolve local items against (defaults to the last scanned one).",
)
@click.option("--json", "json_output", is_flag=True, help="Emit resolved items as JSON.")
def stories_show(story_id: str, library_path: Optional[str], json_output: bool) -> None:
    """Show the items of STORY_ID resolved against the library and imported items."""
    _, config = _load_config(json_output)
    app = MediaShelf.from_config(config)
    root = library_path or config.library.last_path
    if root:
        asyncio.run(app.scan(root))

    try:
        collection = app.collections.get(story_id)
        resolutions = app.resolve_collection(story_id)
    except CollectionNotFoundError as exc:
        _handle_cli_error(str(exc), code="story_not_found", json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(
            data={
                "story": collection.model_dump(mode="json"),
                "items": [
                    {
                        "id": resolution.item_id,
                        "status": resolution.status.value,
                        "item": (
                            resolution.item.model_dump(mode="json") if resolution.item else None
                        ),
                    }
                    for resolution in resolutions
                ],
            }
        )
        return

    table = Table(title=escape(collection.name))
    table.add_column("Item")
    table.add_column("Kind")
    table.add_column("Source")
    for resolution in resolutions:
        item = resolution.item
        if resolution.status is ResolutionStatus.MISSING or item is None:
            table.add_row(f"[dim]{resolution.item_id}[/dim]", "-", "[red]missing[/red]")
            continue
        table.add_row(escape(item.name), item.kind.value, resolution.status.value)
    console.print(table)


@cli.group()
def archive() -> None:
    """Search the public-domain archive and import items into stories."""


@archive.command("search")
@click.argument("query")
@click.option("--kind", type=_KIND_CHOICES, default=None, help="Restrict to a media kind.")
@click.option("--page", type=int, default=1, show_default=True, help="Result page.")
@click.option("--rows", type=int, default=None, help="Results per page.")
@click.option("--json", "json_output", is_flag=True, help="Emit results as JSON.")
def archive_search(
    query: str, kind: Optional[str], page: int, rows: Optional[int], json_output: bool
) -> None:
    """Search the archive for QUERY."""
    _, config = _load_config(json_output)
    app = MediaShelf.from_config(config)

    async def _run() -> SearchPage:
        try:
            return await app.archive.search(
                query,
                page=page,
                rows=rows,
                media_kind=MediaKind(kind) if kind else None,
            )
        finally:
            await app.aclose()

    try:
        results = asyncio.run(_run())
    except ArchiveError as exc:
        _handle_cli_error(str(exc), code="archive_error", json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(data=results.to_payload())
        return
    console.print(
        _external_table(
            results.items,
            f"Page {results.page} of {max(results.total_pages, 1)} ({results.total} results)",
        )
    )


@archive.command("import")
@click.argument("identifier")
@click.option("--story", "story_id", default=None, help="Story to add the item to.")
@click.option("--json", "json_output", is_flag=True, help="Emit the imported item as JSON.")
def archive_import(identifier: str, story_id: Optional[str], json_output: bool) -> None:
    """Fetch IDENTIFIER from the archive and keep it locally, optionally in a story."""
    _, config = _load_config(json_output)
    app = MediaShelf.from_config(config)

    async def _run() -> ExternalItem:
        try:
            return await app.import_archive_item(identifier, collection_id=story_id)
        finally:
            await app.aclose()

    try:
        item = asyncio.run(_run())
    except (ArchiveError, StateError) as exc:
        _handle_cli_error(str(exc), code="import_error", json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(data=item.model_dump(mode="json"))
        return
    suffix = f" into story {story_id}" if story_id else ""
    console.print(f"[green]Imported {escape(item.name)} as {item.id}{suffix}.[/green]")


@cli.group()
def config() -> None:
    """Manage MediaShelf configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules."""
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        effective = manager.load(include_env=not no_env)
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

    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'library.page_size'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    before = manager.read_text().splitlines()
    file_data = manager.load_file_overrides()
    try:
        resolve_with_precedence(
            defaults=MediaShelfConfig(),
            file_overrides=file_data,
            cli_overrides={".".join(segments): parsed_value},
        )
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.remember(".".join(segments), parsed_value)
    after = manager.read_text().splitlines()
    diff = [
        line
        for line in difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
        if not line.startswith(("-# Last updated", "+# Last updated"))
    ]
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error:
        # Unknown user locale; names still fold case and accents.
        pass
    cli()


if __name__ == "__main__":
    main()
