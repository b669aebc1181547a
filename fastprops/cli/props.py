"""
Fast property CLI commands.
"""

import json

import click
from rich.console import Console

from ..repository.resolver import ResourceResolverFactory
from ..search.fast_properties import FastProperties
from .utils import get_session_factory, handle_command

console = Console()


def _fast_properties(ctx: click.Context, paths: tuple) -> FastProperties:
    settings = ctx.find_root().obj['SETTINGS']
    factory = ResourceResolverFactory(get_session_factory(ctx))
    return FastProperties(
        factory,
        index_definition_paths=list(paths) or settings.INDEX_DEFINITION_PATHS,
        service_name=settings.SERVICE_NAME,
    )


def _flag(ctx: click.Context, flag: str | None) -> str:
    return flag or ctx.find_root().obj['SETTINGS'].FAST_FLAG


def _print_notices(notices) -> None:
    for notice in notices:
        console.print(f"[yellow]⚠ {notice}[/yellow]")


@click.group(name='props')
def props_cli():
    """Fast property commands."""
    pass


@props_cli.command(name='fast')
@click.option('--flag', default=None, help='Index rule flag to test (default: FASTPROPS_FAST_FLAG).')
@click.option('--path', 'paths', multiple=True, help='Index rules root (repeatable).')
@click.option('--json', 'json_output', is_flag=True, help='Output in JSON format.')
@click.pass_context
@handle_command
def fast(ctx, flag: str | None, paths: tuple, json_output: bool) -> None:
    """Lists fast properties."""
    report = _fast_properties(ctx, paths).inspect(_flag(ctx, flag))
    if json_output:
        click.echo(json.dumps({"properties": report.properties, "notices": report.notices}, indent=2))
        return
    console.print("[bold blue]Fast Properties[/bold blue]")
    _print_notices(report.notices)
    for prop in report.properties:
        console.print(f"- [cyan]{prop}[/cyan]")


@props_cli.command()
@click.argument('others', nargs=-1)
@click.option('--flag', default=None, help='Index rule flag to test (default: FASTPROPS_FAST_FLAG).')
@click.option('--path', 'paths', multiple=True, help='Index rules root (repeatable).')
@click.option('--json', 'json_output', is_flag=True, help='Output in JSON format.')
@click.pass_context
@handle_command
def delta(ctx, others: tuple, flag: str | None, paths: tuple, json_output: bool) -> None:
    """Lists fast properties missing from OTHERS."""
    fast_properties = _fast_properties(ctx, paths)
    report = fast_properties.inspect(_flag(ctx, flag))
    missing = fast_properties.get_delta_properties(report.properties, others)
    if json_output:
        click.echo(json.dumps({"properties": missing, "notices": report.notices}, indent=2))
        return
    console.print("[bold blue]Fast Properties Not Listed[/bold blue]")
    _print_notices(report.notices)
    for prop in missing:
        console.print(f"- [cyan]{prop}[/cyan]")


@props_cli.command()
@click.argument('label')
@click.argument('property_path')
@click.option('--flag', default=None, help='Index rule flag to test (default: FASTPROPS_FAST_FLAG).')
@click.option('--path', 'paths', multiple=True, help='Index rules root (repeatable).')
@click.pass_context
@handle_command
def label(ctx, label: str, property_path: str, flag: str | None, paths: tuple) -> None:
    """Prints LABEL marked fast or slow for PROPERTY_PATH."""
    fast_properties = _fast_properties(ctx, paths)
    report = fast_properties.inspect(_flag(ctx, flag))
    _print_notices(report.notices)
    click.echo(fast_properties.get_label(label, property_path, report.properties))
