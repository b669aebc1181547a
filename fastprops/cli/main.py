import click

from ..config import settings
from ..repository.engine import init_db
from ..utils.logging import setup_logging
from .content import content_cli
from .database import db_cli
from .props import props_cli
from .service_users import service_user_cli


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enables verbose mode.')
@click.option('--quiet', '-q', is_flag=True, help='Enables quiet mode.')
@click.option('--db-url', envvar='FASTPROPS_DB_URL', default=None, help='Content store database URL.')
@click.pass_context
def app(ctx, verbose, quiet, db_url):
    """
    fastprops: fast and slow properties from Oak index definitions.
    """
    ctx.ensure_object(dict)
    ctx.obj['VERBOSE'] = verbose
    ctx.obj['QUIET'] = quiet

    if verbose:
        setup_logging(force=True, level="DEBUG")
    elif quiet:
        setup_logging(force=True, level="ERROR")
    else:
        setup_logging()

    if 'SESSION_FACTORY' not in ctx.obj:
        ctx.obj['SESSION_FACTORY'] = init_db(db_url or settings.DB_URL)
    ctx.obj['SETTINGS'] = settings


# Add subcommands
app.add_command(db_cli, name='db')
app.add_command(content_cli, name='content')
app.add_command(service_user_cli, name='service-user')
app.add_command(props_cli, name='props')

if __name__ == '__main__':
    app()
