import pytest
from click.testing import CliRunner

from fastprops.repository.content import grant_service_user, import_content
from fastprops.repository.engine import create_session_factory, ensure_schema, get_session
from fastprops.repository.resolver import ResourceResolverFactory

RULES_PATH = "/oak:index/damAssetLucene/indexRules/dam:Asset/properties"
SERVICE_NAME = "oak-index-definition-reader"


@pytest.fixture
def session_factory():
    """Fresh in-memory content store with the schema in place."""
    factory = create_session_factory("sqlite+pysqlite:///:memory:")
    ensure_schema(factory)
    yield factory
    factory.kw["bind"].dispose()


@pytest.fixture
def load_content(session_factory):
    """Write a content tree at a path."""
    def _load(path, tree, replace=False):
        with get_session(session_factory) as session:
            return import_content(session, path, tree, replace=replace)
    return _load


@pytest.fixture
def grant(session_factory):
    """Map a service name to a principal."""
    def _grant(service_name=SERVICE_NAME, principal="index-reader", read_paths=("/oak:index",), enabled=True):
        with get_session(session_factory) as session:
            grant_service_user(session, service_name, principal, read_paths, enabled=enabled)
    return _grant


@pytest.fixture
def resolver_factory(session_factory):
    return ResourceResolverFactory(session_factory)


@pytest.fixture
def index_rules(load_content, grant):
    """The default index rules root with three typical rules."""
    load_content(RULES_PATH, {
        "title": {"name": "jcr:title", "ordered": True},
        "format": {"name": "./dc:format", "ordered": False},
        "blank": {"name": "", "ordered": True},
    })
    grant()
    return RULES_PATH


@pytest.fixture
def cli_runner():
    return CliRunner()
