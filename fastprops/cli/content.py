import json
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from ..repository.content import import_content, load_content_file
from ..repository.engine import ensure_schema, get_session
from ..repository.resolver import ResourceResolver, normalize_path
from .utils import get_session_factory, handle_command

console = Console()


@click.group(name='content')
def content_cli():
    """Content tree commands."""
    pass


@content_cli.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.option('--at', 'path', required=True, help='Absolute path to import the content at.')
@click.option('--replace', is_flag=True, help='Replace an existing node at the path.')
@click.pass_context
@handle_command
def load(ctx, file: str, path: str, replace: bool) -> None:
    """Imports a YAML or JSON content tree."""
    console.print(f"[bold blue]Loading {file} at {path}[/bold blue]")
    factory = get_session_factory(ctx)
    ensure_schema(factory)
    tree = load_content_file(file)
    with get_session(factory) as session:
        written = import_content(session, path, tree, replace=replace)
    console.print(f"[green]✅ Imported {written} node(s) at {path}[/green]")


def _add_children(branch: Tree, resource, depth: int) -> None:
    for child in resource.list_children():
        node = branch.add(f"[cyan]{child.name}[/cyan] {escape(json.dumps(child.value_map.as_dict()))}")
        if depth > 1:
            _add_children(node, child, depth - 1)


@content_cli.command()
@click.argument('path')
@click.option('--depth', default=1, show_default=True, help='Levels of children to show.')
@click.option('--json', 'json_output', is_flag=True, help='Print only the node properties as JSON.')
@click.pass_context
@handle_command
def show(ctx, path: str, depth: int, json_output: bool) -> None:
    """Shows a node and its children."""
    path = normalize_path(path)
    with get_session(get_session_factory(ctx)) as session:
        # Administrative view: unrestricted read
        resolver = ResourceResolver(session, "admin", ["/"])
        resource = resolver.get_resource(path)
        if resource is None:
            console.print(f"[red]No node at {path}.[/red]")
            sys.exit(1)
        if json_output:
            click.echo(json.dumps(resource.value_map.as_dict(), indent=2))
            return
        tree = Tree(f"[bold]{resource.path}[/bold] {escape(json.dumps(resource.value_map.as_dict()))}")
        _add_children(tree, resource, depth)
        console.print(tree)
