"""
Database management CLI commands for fastprops.
"""

import click
from rich.console import Console
from rich.table import Table
from sqlalchemy import func, select

from ..repository.engine import ensure_schema, get_session
from ..repository.models import Node, ServiceUser
from .utils import get_session_factory, handle_command

console = Console()


@click.group(name="db")
def db_cli():
    """Content store database commands."""
    pass


@db_cli.command()
@click.pass_context
@handle_command
def init(ctx) -> None:
    """
    Create the content store schema.
    """
    console.print("[bold blue]Initializing content store[/bold blue]")
    ensure_schema(get_session_factory(ctx))
    console.print("[green]✅ Content store initialized successfully![/green]")


@db_cli.command()
@click.pass_context
@handle_command
def stats(ctx) -> None:
    """
    Display row counts for the content store tables.
    """
    with get_session(get_session_factory(ctx)) as session:
        nodes = session.execute(select(func.count()).select_from(Node)).scalar_one()
        users = session.execute(select(func.count()).select_from(ServiceUser)).scalar_one()

    table = Table(title="Content Store")
    table.add_column("Table", style="cyan")
    table.add_column("Rows", justify="right")
    table.add_row("nodes", str(nodes))
    table.add_row("service_users", str(users))
    console.print(table)
