"""CLI interface for clint using Typer framework."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from clint import __description__, __version__
from clint.compare import compare_trees
from clint.config import ClintConfig, InvokerConfig, LogLevel, TraversalConfig, load_config
from clint.errors import ConfigError, GenerationError, StorageError
from clint.invoker import ProcessInvoker, is_executable
from clint.models.command import CommandNode, NodeStatus
from clint.replica import ReplicaGenerator
from clint.storage import default_output_path, load_tree, save_tree
from clint.traversal import StructureBuilder

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="clint",
    help=__description__,
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Show version information and exit."""
    if value:
        console.print(f"clint version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit")
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log at debug level")
    ] = False,
) -> None:
    """clint - introspect command-line programs from their help output."""
    ctx.obj = {"verbose": verbose}


def _setup_logging(level: LogLevel, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else level.to_logging(),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_config(config_path: Optional[Path], ctx: typer.Context) -> ClintConfig:
    try:
        config = load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    _setup_logging(config.logging.level, verbose)
    return config


def _print_summary(tree: CommandNode) -> None:
    nodes = list(tree.iter_nodes())
    flags = sum(len(node.flags) for node in nodes)
    console.print(f"[green]OK[/green] {tree.name} {tree.version or ''}".rstrip())
    console.print(f"  - Commands: {len(nodes)}")
    console.print(f"  - Flags: {flags}")

    stopped = [node for node in nodes if node.status not in (NodeStatus.EXPLORED, NodeStatus.PENDING)]
    if not stopped:
        return
    table = Table(title="Stopped branches")
    table.add_column("Command", style="cyan")
    table.add_column("Status", style="yellow")
    table.add_column("Reason")
    for node in stopped:
        table.add_row(node.command_path, node.status.value, "; ".join(node.warnings))
    console.print(table)


@app.command()
def parse(
    ctx: typer.Context,
    binary: Annotated[
        str,
        typer.Argument(help="Program to introspect, as a path or a name on PATH")
    ],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output JSON file (default: out/<program>/<tag>/parsed.json)")
    ] = None,
    tag: Annotated[
        Optional[str],
        typer.Option("--tag", help="Version directory to store the tree under (default: probed version)")
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .clint.json)")
    ] = None,
    max_depth: Annotated[
        Optional[int],
        typer.Option("--max-depth", help="Deepest subcommand level to explore")
    ] = None,
    max_invocations: Annotated[
        Optional[int],
        typer.Option("--max-invocations", help="Upper bound on help invocations")
    ] = None,
    workers: Annotated[
        Optional[int],
        typer.Option("--workers", help="Concurrent help invocations")
    ] = None,
    timeout: Annotated[
        Optional[float],
        typer.Option("--timeout", help="Seconds before a help invocation is killed")
    ] = None,
) -> None:
    """Explore a program's help output and save its command tree as JSON."""
    clint_config = _load_config(config, ctx)
    traversal_overrides = {
        key: value
        for key, value in (
            ("max_depth", max_depth),
            ("max_invocations", max_invocations),
            ("workers", workers),
        )
        if value is not None
    }
    invoker_overrides = {"timeout_seconds": timeout} if timeout is not None else {}
    try:
        traversal_config = TraversalConfig.model_validate(
            {**clint_config.traversal.model_dump(), **traversal_overrides}
        )
        invoker_config = InvokerConfig.model_validate({**clint_config.invoker.model_dump(), **invoker_overrides})
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid option: {escape(str(e))}")
        raise typer.Exit(1)

    if not is_executable(binary):
        console.print(f"[red]Error:[/red] '{binary}' is not an executable file")
        raise typer.Exit(1)

    invoker = ProcessInvoker(timeout=invoker_config.timeout_seconds, env=invoker_config.env)
    builder = StructureBuilder(invoker=invoker, config=traversal_config)
    logger.debug(f"Traversal settings: {traversal_config}")

    console.print(f"[blue]Exploring:[/blue] {binary}")
    tree = builder.build(binary)

    path = output or default_output_path(tree, clint_config.output.dir, tag)
    try:
        save_tree(tree, path)
    except StorageError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    _print_summary(tree)
    console.print(f"[blue]Saved:[/blue] {path}")


@app.command()
def replicate(
    ctx: typer.Context,
    input_json: Annotated[
        Path,
        typer.Argument(help="Tree written by 'clint parse'")
    ],
    output_dir: Annotated[
        Path,
        typer.Option("--output", "-o", help="Directory to write the replica package into")
    ],
    keep_help_flags: Annotated[
        bool,
        typer.Option("--keep-help-flags", help="Keep scraped help flags and drop the replica's own --help")
    ] = False,
    keep_verbose_flags: Annotated[
        bool,
        typer.Option("--keep-verbose-flags", help="Keep scraped verbose flags")
    ] = False,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .clint.json)")
    ] = None,
) -> None:
    """Generate a runnable Typer replica from a parsed tree."""
    clint_config = _load_config(config, ctx)
    replica_config = clint_config.replica.model_copy(update={
        "keep_help_flags": keep_help_flags or clint_config.replica.keep_help_flags,
        "keep_verbose_flags": keep_verbose_flags or clint_config.replica.keep_verbose_flags,
    })

    try:
        tree = load_tree(input_json)
        generator = ReplicaGenerator(replica_config)
        written = generator.write(generator.generate(tree), output_dir)
    except (StorageError, GenerationError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(f"[green]OK[/green] Replica of {tree.name}: {len(written)} files")
    for path in written:
        console.print(f"  - {path}")


@app.command()
def compare(
    ctx: typer.Context,
    from_json: Annotated[
        Path,
        typer.Argument(help="Older tree")
    ],
    to_json: Annotated[
        Path,
        typer.Argument(help="Newer tree")
    ],
) -> None:
    """Show structural changes between two parsed trees."""
    _setup_logging(LogLevel.WARN, bool(ctx.obj and ctx.obj.get("verbose")))
    try:
        old = load_tree(from_json)
        new = load_tree(to_json)
    except StorageError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    changes = compare_trees(old, new)
    if not changes:
        console.print("[green]No structural changes[/green]")
        return

    console.print(f"[blue]{len(changes)} change(s)[/blue] from {from_json} to {to_json}")
    for change in changes:
        console.print(change.format(new.name), markup=False, highlight=False)


if __name__ == "__main__":
    app()
