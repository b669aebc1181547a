import click
from rich.console import Console
from rich.table import Table
from sqlalchemy import select

from ..repository.content import grant_service_user, revoke_service_user
from ..repository.engine import ensure_schema, get_session
from ..repository.models import ServiceUser
from .utils import get_session_factory, handle_command

console = Console()


@click.group(name='service-user')
def service_user_cli():
    """Service user mapping commands."""
    pass


@service_user_cli.command()
@click.argument('service_name')
@click.option('--principal', required=True, help='Principal the service logs in as.')
@click.option('--read-path', 'read_paths', multiple=True, required=True, help='Readable path prefix (repeatable).')
@click.option('--disabled', is_flag=True, help='Store the mapping disabled.')
@click.pass_context
@handle_command
def grant(ctx, service_name: str, principal: str, read_paths: tuple, disabled: bool) -> None:
    """Maps a service name to a principal."""
    factory = get_session_factory(ctx)
    ensure_schema(factory)
    with get_session(factory) as session:
        grant_service_user(session, service_name, principal, read_paths, enabled=not disabled)
    console.print(f"[green]✅ Service '{service_name}' mapped to '{principal}'[/green]")


@service_user_cli.command()
@click.argument('service_name')
@click.pass_context
@handle_command
def revoke(ctx, service_name: str) -> None:
    """Removes a service user mapping."""
    with get_session(get_session_factory(ctx)) as session:
        removed = revoke_service_user(session, service_name)
    if removed:
        console.print(f"[green]✅ Service '{service_name}' revoked[/green]")
    else:
        console.print(f"[red]Service '{service_name}' not found.[/red]")


@service_user_cli.command(name="list")
@click.pass_context
@handle_command
def list_service_users(ctx) -> None:
    """Lists service user mappings."""
    with get_session(get_session_factory(ctx)) as session:
        mappings = session.execute(select(ServiceUser).order_by(ServiceUser.service_name)).scalars().all()

    table = Table(title="Service Users")
    table.add_column("Service", style="cyan")
    table.add_column("Principal")
    table.add_column("Enabled")
    table.add_column("Read paths")
    for mapping in mappings:
        table.add_row(
            mapping.service_name,
            mapping.principal,
            "yes" if mapping.enabled else "no",
            ", ".join(mapping.read_paths or []),
        )
    console.print(table)
