import functools
import logging
import sys

import click
from rich.console import Console
from sqlalchemy.orm import sessionmaker

console = Console()
logger = logging.getLogger(__name__)


def handle_command(func):
    """Decorator that turns command errors into a red message and exit code 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user[/yellow]")
            sys.exit(1)
        except Exception as e:
            logger.debug("Command failed", exc_info=True)
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)
    return wrapper


def get_session_factory(ctx: click.Context) -> sessionmaker:
    """Session factory set up by the top-level command."""
    return ctx.find_root().obj["SESSION_FACTORY"]
