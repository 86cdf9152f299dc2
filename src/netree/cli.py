"""CLI interface for netree using Typer framework."""

import json as jsonlib
import math
import random
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from netree import __description__, __version__
from netree.config import LinkStyle, configure_logging, load_config
from netree.errors import NetreeError
from netree.models import MessageRecord
from netree.render import TreeDiagram, create_canvas, load_canvas, to_string, write_canvas

app = typer.Typer(
    name="netree",
    help=__description__,
    add_completion=False,
    rich_markup_mode="rich"
)

# status output goes to stderr so rendered SVG can be piped from stdout
console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Show version information and exit."""
    if value:
        console.print(f"netree version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", callback=version_callback, help="Show version and exit")
    ] = False,
) -> None:
    """netree - hierarchical network diagrams rendered to SVG."""


def _load_records(path: Path, key: str) -> list[dict[str, Any]]:
    """Read a JSON list of records, either bare or under ``key``.

    Raises:
        ValueError: If the file does not hold a list of records
    """
    with open(path, encoding="utf-8") as f:
        data = jsonlib.load(f)
    if isinstance(data, dict):
        data = data.get(key)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a list of {key} or an object with a '{key}' list")
    return data


def _build_tree_config(config: Optional[Path], cluster: Optional[bool], link_style: Optional[LinkStyle]):
    netree_config = load_config(config)
    configure_logging(netree_config.logging.level)

    overrides = {}
    if cluster is not None:
        overrides["cluster"] = cluster
    if link_style is not None:
        overrides["link_style"] = link_style
    return netree_config.tree.model_copy(update=overrides)


@app.command()
def render(
    nodes_file: Annotated[
        Path,
        typer.Argument(help="JSON file with node records (id, parent, class)")
    ],
    messages_file: Annotated[
        Optional[Path],
        typer.Option("--messages", "-m", help="JSON file with message records (time, source, target, class)")
    ] = None,
    edges_file: Annotated[
        Optional[Path],
        typer.Option("--edges", "-e", help="JSON file with extra edge records (source, target, class)")
    ] = None,
    into: Annotated[
        Optional[Path],
        typer.Option("--into", help="Existing SVG document to draw into")
    ] = None,
    out: Annotated[
        Optional[Path],
        typer.Option("--out", "-o", help="Output SVG file (default: stdout)")
    ] = None,
    cluster: Annotated[
        Optional[bool],
        typer.Option("--cluster/--tree", help="Align all leaves at the same depth")
    ] = None,
    link_style: Annotated[
        Optional[LinkStyle],
        typer.Option("--link-style", "-s", help="Link drawing style")
    ] = None,
    expire_before: Annotated[
        Optional[float],
        typer.Option("--expire-before", help="Drop messages older than this time before drawing")
    ] = None,
    seed: Annotated[
        Optional[int],
        typer.Option("--seed", help="Seed for message angles, for reproducible output")
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .netree.json)")
    ] = None,
) -> None:
    """Render a tree diagram with message traffic to SVG."""
    try:
        tree_config = _build_tree_config(config, cluster, link_style)
        nodes = _load_records(nodes_file, "nodes")
        edges = _load_records(edges_file, "edges") if edges_file else []
        messages = _load_records(messages_file, "messages") if messages_file else []

        width, height = tree_config.size
        canvas = load_canvas(into) if into else create_canvas(height, width)

        angle_source = None
        if seed is not None:
            rng = random.Random(seed)

            def angle_source() -> float:
                return rng.random() * math.pi / 2.0

        diagram = TreeDiagram(canvas, nodes, edges, config=tree_config, angle_source=angle_source)
        records = sorted((MessageRecord.model_validate(m) for m in messages), key=lambda r: r.time)
        for record in records:
            diagram.add_message(diagram.message_from_record(record))
        if expire_before is not None:
            expired = diagram.expire_messages(expire_before)
            console.print(f"[dim]Expired {expired} messages[/dim]")

        diagram.render()
        console.print(
            f"[green]OK[/green] Rendered {len(nodes)} nodes, {len(diagram.edges())} extra edges "
            f"and {len(diagram.messages())} messages"
        )

        if out:
            output_file = write_canvas(canvas, out.resolve())
            console.print(f"[green]Diagram written:[/green] {output_file}")
        else:
            typer.echo(to_string(canvas), nl=False)

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except jsonlib.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] Invalid JSON: {escape(str(e))}")
        raise typer.Exit(1)
    except (NetreeError, ValueError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def layout(
    nodes_file: Annotated[
        Path,
        typer.Argument(help="JSON file with node records (id, parent, class)")
    ],
    cluster: Annotated[
        Optional[bool],
        typer.Option("--cluster/--tree", help="Align all leaves at the same depth")
    ] = None,
    json: Annotated[
        bool,
        typer.Option("--json", help="Print positions as JSON instead of a table")
    ] = False,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .netree.json)")
    ] = None,
) -> None:
    """Show the laid-out position of every node."""
    try:
        tree_config = _build_tree_config(config, cluster, None)
        nodes = _load_records(nodes_file, "nodes")
        # layout only; nothing is drawn into this canvas
        diagram = TreeDiagram(create_canvas(tree_config.height, tree_config.width), nodes, config=tree_config)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except jsonlib.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] Invalid JSON: {escape(str(e))}")
        raise typer.Exit(1)
    except (NetreeError, ValueError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    positioned = [node.to_dict() for node in diagram.hierarchy().descendants()]
    if json:
        typer.echo(jsonlib.dumps(positioned, indent=2))
        return

    mode = "cluster" if tree_config.cluster else "tree"
    table = Table(title=f"Node positions ({mode} layout, {tree_config.width:g}x{tree_config.height:g})")
    table.add_column("Id", style="cyan")
    table.add_column("Parent", style="dim")
    table.add_column("Depth", justify="right")
    table.add_column("x", justify="right")
    table.add_column("y", justify="right")
    for node in positioned:
        table.add_row(
            node["id"], node["parent"] or "-", str(node["depth"]),
            f"{node['x']:.1f}", f"{node['y']:.1f}",
        )
    Console().print(table)


if __name__ == "__main__":
    app()
