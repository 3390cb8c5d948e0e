"""Command-line interface for tocsync."""

import json
import sys
from functools import wraps
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from tocsync import __version__
from tocsync.errors import TocsyncError
from tocsync.models.components import Heading, InsertionPoint, SyncConfig
from tocsync.toc import ConfigManager, TOCGenerator, strip_file, sync_file
from tocsync.toc.persistence import CONFIG_FILENAME, DocumentStore

DEFAULT_DOCUMENT = "readme.md"

console = Console()


def toc_options(command):
    """Attach the options shared by commands that render a TOC."""

    @click.option(
        "--config", "-c",
        "config_path",
        type=click.Path(dir_okay=False),
        default=CONFIG_FILENAME,
        show_default=True,
        help="Configuration file",
    )
    @click.option(
        "--top",
        is_flag=True,
        help="Insert a new TOC at the top instead of after the first H1",
    )
    @click.option(
        "--min-depth",
        type=click.IntRange(1, 6),
        help="Smallest heading level to list",
    )
    @click.option(
        "--max-depth",
        type=click.IntRange(1, 6),
        help="Largest heading level to list",
    )
    @click.option(
        "--skip-first-h1",
        is_flag=True,
        help="Leave the first level-1 heading out of the TOC",
    )
    @click.option(
        "--bullet",
        type=click.Choice(["-", "*", "+"]),
        help="List bullet character",
    )
    @wraps(command)
    def wrapper(*args, config_path, top, min_depth, max_depth, skip_first_h1, bullet, **kwargs):
        overrides = {
            "insertion_point": InsertionPoint.TOP if top else None,
            "min_depth": min_depth,
            "max_depth": max_depth,
            # Flags only ever switch a setting on
            "skip_first_h1": True if skip_first_h1 else None,
            "bullet": bullet,
        }
        config = _load_config(config_path, overrides)
        return command(*args, config=config, **kwargs)

    return wrapper


def _load_config(config_path: str, overrides: dict) -> SyncConfig:
    try:
        return ConfigManager(config_path).load(overrides)
    except TocsyncError as e:
        _fail(e)


def _fail(error: Exception):
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="tocsync")
def main():
    """tocsync - keep the table of contents of markdown files up to date.

    The TOC lives between <!-- toc --> and <!-- tocstop --> markers.
    """
    pass


@main.command()
@click.argument("paths", nargs=-1, type=click.Path(dir_okay=False))
@click.option(
    "--no-trash",
    is_flag=True,
    help="Overwrite files directly instead of trashing the previous version",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would change without writing anything",
)
@toc_options
def sync(paths: tuple[str, ...], no_trash: bool, dry_run: bool, config: SyncConfig):
    """Insert or update the table of contents of markdown files.

    Each file's previous version is moved to the trash before the new text is
    written. Files that are already up to date are left alone. PATHS defaults
    to readme.md.
    """
    paths = paths or (DEFAULT_DOCUMENT,)

    table = Table(title="Table of Contents")
    table.add_column("File", style="cyan")
    table.add_column("Headings", style="green", justify="right")
    table.add_column("Status")

    warnings = []
    for path in paths:
        try:
            result = sync_file(path, config, use_trash=not no_trash, dry_run=dry_run)
        except TocsyncError as e:
            console.print(table)
            _fail(e)

        if not result.changed:
            status = "[dim]up to date[/dim]"
        elif dry_run:
            status = "[yellow]would update[/yellow]"
        elif result.inserted:
            status = "[green]inserted[/green]"
        else:
            status = "[green]updated[/green]"

        table.add_row(escape(str(path)), str(len(result.headings)), status)
        warnings.extend(f"{path}: {warning}" for warning in result.warnings)

    console.print(table)
    for warning in warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")


@main.command()
@click.argument("paths", nargs=-1, type=click.Path(dir_okay=False))
@toc_options
def check(paths: tuple[str, ...], config: SyncConfig):
    """Check that the table of contents of markdown files is current.

    Exits with status 1 if any file would change. Nothing is written.
    """
    paths = paths or (DEFAULT_DOCUMENT,)

    stale = []
    for path in paths:
        try:
            result = sync_file(path, config, dry_run=True)
        except TocsyncError as e:
            _fail(e)
        if result.changed:
            stale.append(path)

    if stale:
        for path in stale:
            console.print(f"[red]✗[/red] {escape(str(path))} needs a TOC update")
        console.print("[dim]Run 'tocsync sync' to fix.[/dim]")
        sys.exit(1)

    console.print(f"[green]✓[/green] {len(paths)} file(s) up to date")


@main.command()
@click.argument("path", type=click.Path(dir_okay=False), default=DEFAULT_DOCUMENT)
@click.option(
    "--format", "-f",
    type=click.Choice(["tree", "json", "flat"]),
    default="tree",
    help="Output format",
)
@toc_options
def toc(path: str, format: str, config: SyncConfig):
    """Display the headings that make up the table of contents."""
    try:
        text = DocumentStore(path).read()
    except TocsyncError as e:
        _fail(e)

    generator = TOCGenerator(config)
    headings = generator.select(generator.extract_headings(text))

    if not headings:
        console.print("[yellow]No headings found.[/yellow]")
        return

    if format == "json":
        click.echo(json.dumps(generator.to_dict(headings), indent=2))
    elif format == "flat":
        for line in generator.render(headings):
            console.print(escape(line), highlight=False)
    else:  # tree
        console.print(_heading_tree(path, headings))


def _heading_tree(path: str, headings: list[Heading]) -> Tree:
    """Nest headings under their closest shallower predecessor."""
    tree = Tree(f"[bold]{escape(str(path))}[/bold]")
    level_colors = {1: "blue", 2: "green", 3: "yellow", 4: "cyan"}

    # Stack of (level, branch) pairs
    stack = [(0, tree)]
    for heading in headings:
        while stack[-1][0] >= heading.level:
            stack.pop()
        color = level_colors.get(heading.level, "white")
        branch = stack[-1][1].add(
            f"[{color}]{escape(heading.title)}[/{color}] [dim]#{escape(heading.slug)}[/dim]"
        )
        stack.append((heading.level, branch))

    return tree


@main.command()
@click.argument("path", type=click.Path(dir_okay=False), default=DEFAULT_DOCUMENT)
@click.option(
    "--no-trash",
    is_flag=True,
    help="Overwrite the file directly instead of trashing the previous version",
)
@toc_options
def strip(path: str, no_trash: bool, config: SyncConfig):
    """Remove the table of contents block from a markdown file."""
    try:
        modified = strip_file(path, config, use_trash=not no_trash)
    except TocsyncError as e:
        _fail(e)

    if modified:
        console.print(f"[green]Removed the TOC from {escape(str(path))}[/green]")
    else:
        console.print(f"[dim]No TOC found in {escape(str(path))}[/dim]")


@main.command()
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=CONFIG_FILENAME,
    show_default=True,
    help="Configuration file to create",
)
def init(config_path: str):
    """Write a configuration file with the default settings."""
    manager = ConfigManager(config_path)

    if manager.exists() and not click.confirm(f"{config_path} exists. Overwrite it?"):
        return

    try:
        manager.save(SyncConfig())
    except TocsyncError as e:
        _fail(e)
    console.print(Panel(f"Configuration written to [cyan]{escape(str(Path(config_path)))}[/cyan]"))


if __name__ == "__main__":
    main()
