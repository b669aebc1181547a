"""
Read-only resource access over the content store.

A ``ResourceResolver`` wraps one database session opened on behalf of a
service user. It resolves absolute paths to ``Resource`` objects, hiding
anything outside the service user's readable paths. Resolvers are obtained
from a ``ResourceResolverFactory`` and must be closed after use; the
``service_resource_resolver`` context manager does that on every exit path.
"""

import logging
import posixpath
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .models import Node, ServiceUser

logger = logging.getLogger(__name__)

_MISSING = object()


class RepositoryError(Exception):
    """Base exception for content store errors."""
    pass


class LoginError(RepositoryError):
    """Raised when a service identity cannot obtain a resolver."""
    pass


def normalize_path(path: str) -> str:
    """Return ``path`` as a normalized absolute path.

    Raises:
        ValueError: If the path is empty or relative.
    """
    if not path or not path.startswith("/"):
        raise ValueError(f"Expected an absolute path, got '{path}'")
    normalized = posixpath.normpath(path)
    # normpath keeps a leading '//' as-is
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def parent_path(path: str) -> Optional[str]:
    """Parent of an absolute path, or None for the root."""
    path = normalize_path(path)
    if path == "/":
        return None
    return posixpath.dirname(path)


def is_ancestor_or_self(ancestor: str, path: str) -> bool:
    ancestor = normalize_path(ancestor)
    path = normalize_path(path)
    if ancestor == "/" or ancestor == path:
        return True
    return path.startswith(ancestor + "/")


class ValueMap:
    """
    Typed, read-only view of a node's properties.

    ``get`` falls back to the default when the property is absent or when
    its value is not of the requested type.
    """

    def __init__(self, properties: Optional[Dict[str, Any]] = None):
        self._properties = dict(properties or {})

    def get(self, name: str, default: Any = None, type_: Optional[type] = None) -> Any:
        value = self._properties.get(name, _MISSING)
        if value is _MISSING or value is None:
            return default
        expected = type_ if type_ is not None else (type(default) if default is not None else None)
        if expected is None:
            return value
        # bool is an int subclass; keep them apart in both directions
        if expected is not bool and isinstance(value, bool):
            return default
        if expected is float and isinstance(value, int):
            return float(value)
        if not isinstance(value, expected):
            return default
        return value

    def __contains__(self, name: object) -> bool:
        return name in self._properties

    def __iter__(self):
        return iter(self._properties)

    def __len__(self) -> int:
        return len(self._properties)

    def keys(self):
        return self._properties.keys()

    def items(self):
        return self._properties.items()

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._properties)


class Resource:
    """A node as seen through a ``ResourceResolver``."""

    def __init__(self, resolver: "ResourceResolver", node: Node):
        self._resolver = resolver
        self.path = node.path
        self.name = node.name
        self.value_map = ValueMap(node.properties)

    def list_children(self) -> Iterator["Resource"]:
        """Iterate readable children in their stored order."""
        return iter(self._resolver._children_of(self.path))

    def get_child(self, name: str) -> Optional["Resource"]:
        child_path = posixpath.join(self.path, name)
        return self._resolver.get_resource(child_path)

    def __repr__(self) -> str:
        return f"<Resource(path='{self.path}')>"


class ResourceResolver:
    """
    Read-only access to the content store for one principal.

    Holds an open session until ``close`` is called.
    """

    def __init__(self, session: Session, principal: str, read_paths: Sequence[str]):
        self._session = session
        self.principal = principal
        self.read_paths = tuple(normalize_path(p) for p in read_paths)
        self._live = True

    @property
    def is_live(self) -> bool:
        return self._live

    def _check_live(self) -> None:
        if not self._live:
            raise RepositoryError("Resource resolver is already closed")

    def can_read(self, path: str) -> bool:
        return any(is_ancestor_or_self(prefix, path) for prefix in self.read_paths)

    def get_resource(self, path: str) -> Optional[Resource]:
        """
        Resolve an absolute path.

        Returns:
            The resource, or None if it does not exist or is not readable.
        """
        self._check_live()
        try:
            path = normalize_path(path)
        except ValueError:
            logger.debug("Refusing to resolve non-absolute path '%s'", path)
            return None
        if not self.can_read(path):
            logger.debug("Path %s is not readable by %s", path, self.principal)
            return None
        node = self._session.execute(
            select(Node).where(Node.path == path)
        ).scalar_one_or_none()
        if node is None:
            return None
        return Resource(self, node)

    def _children_of(self, path: str) -> List[Resource]:
        self._check_live()
        nodes = self._session.execute(
            select(Node)
            .where(Node.parent_path == path)
            .order_by(Node.position, Node.id)
        ).scalars().all()
        return [Resource(self, node) for node in nodes if self.can_read(node.path)]

    def close(self) -> None:
        """Release the underlying session. Safe to call more than once."""
        if not self._live:
            return
        self._live = False
        self._session.close()
        logger.debug("Resource resolver closed for %s", self.principal)

    def __enter__(self) -> "ResourceResolver":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ResourceResolverFactory:
    """
    Issues resource resolvers for named service identities.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get_service_resource_resolver(self, service_name: str) -> ResourceResolver:
        """
        Log in as the principal mapped to ``service_name``.

        The caller owns the returned resolver and must close it.

        Raises:
            LoginError: If no enabled mapping exists for the service, or the
                store cannot be opened to look it up.
        """
        session = None
        try:
            session = self._session_factory()
            mapping = session.execute(
                select(ServiceUser).where(ServiceUser.service_name == service_name)
            ).scalar_one_or_none()
            if mapping is None:
                raise LoginError(f"No service user mapping for service '{service_name}'")
            if not mapping.enabled:
                raise LoginError(f"Service user mapping for '{service_name}' is disabled")
            resolver = ResourceResolver(session, mapping.principal, mapping.read_paths or [])
        except SQLAlchemyError as exc:
            if session is not None:
                session.close()
            raise LoginError(f"Could not open a session for service '{service_name}'") from exc
        except Exception:
            if session is not None:
                session.close()
            raise
        logger.debug("Resource resolver opened for service %s as %s", service_name, resolver.principal)
        return resolver

    @contextmanager
    def service_resource_resolver(self, service_name: str) -> Iterator[ResourceResolver]:
        """Scoped form of ``get_service_resource_resolver``; always closes."""
        resolver = self.get_service_resource_resolver(service_name)
        try:
            yield resolver
        finally:
            resolver.close()
