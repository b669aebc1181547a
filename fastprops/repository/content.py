"""
Writing content into the store.

Content trees are nested mappings in the usual JSON content shape: a key
whose value is a mapping becomes a child node (children keep their key
order), anything else becomes a property of the node it sits in.

    indexRules:
      dam:Asset:
        properties:
          title:
            name: jcr:content/metadata/dc:title
            ordered: true
"""

import logging
import posixpath
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml
from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from .models import Node, ServiceUser
from .resolver import RepositoryError, normalize_path, parent_path

logger = logging.getLogger(__name__)


class ContentError(RepositoryError):
    """Raised when content cannot be written."""
    pass


def load_content_file(path: Path | str) -> Dict[str, Any]:
    """Parse a YAML or JSON content file into a mapping."""
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ContentError(f"Failed to parse content file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ContentError(f"Content file {path} must contain a mapping at the top level")
    return dict(data)


def _next_position(session: Session, parent: str) -> int:
    current = session.execute(
        select(func.max(Node.position)).where(Node.parent_path == parent)
    ).scalar()
    return 0 if current is None else current + 1


def _get_node(session: Session, path: str) -> Optional[Node]:
    return session.execute(select(Node).where(Node.path == path)).scalar_one_or_none()


def _ensure_node(session: Session, path: str) -> Node:
    """Return the node at ``path``, creating it and any missing ancestors."""
    node = _get_node(session, path)
    if node is not None:
        return node
    parent = parent_path(path)
    if parent is not None:
        _ensure_node(session, parent)
    node = Node(
        path=path,
        parent_path=parent,
        name=posixpath.basename(path),
        position=_next_position(session, parent) if parent is not None else 0,
        properties={},
    )
    session.add(node)
    session.flush()
    return node


def delete_subtree(session: Session, path: str) -> int:
    """Delete the node at ``path`` and everything below it."""
    path = normalize_path(path)
    if path == "/":
        condition = Node.path.is_not(None)
    else:
        condition = or_(Node.path == path, Node.path.startswith(path + "/", autoescape=True))
    result = session.execute(delete(Node).where(condition))
    session.flush()
    return result.rowcount or 0


def _write_tree(session: Session, node: Node, tree: Mapping[str, Any]) -> int:
    properties = dict(node.properties or {})
    written = 0
    for key, value in tree.items():
        key = str(key)
        if isinstance(value, Mapping):
            if not key or "/" in key or key in (".", ".."):
                raise ContentError(f"Invalid child node name '{key}' under {node.path}")
            child = _ensure_node(session, posixpath.join(node.path, key))
            written += 1 + _write_tree(session, child, value)
        else:
            properties[key] = value
    node.properties = properties
    return written


def import_content(
    session: Session,
    path: str,
    tree: Mapping[str, Any],
    replace: bool = False,
) -> int:
    """
    Write ``tree`` at ``path``.

    Args:
        session: Open session; the caller commits.
        path: Absolute path of the node to create.
        tree: Nested content mapping.
        replace: Delete an existing subtree at ``path`` first.

    Returns:
        Number of nodes written, including the node at ``path``.

    Raises:
        ContentError: If the path is invalid or a node already exists there
            and ``replace`` is False.
    """
    try:
        path = normalize_path(path)
    except ValueError as exc:
        raise ContentError(str(exc)) from exc

    if _get_node(session, path) is not None:
        if not replace:
            raise ContentError(f"Node already exists at {path}")
        removed = delete_subtree(session, path)
        logger.info("Replaced %d node(s) at %s", removed, path)

    node = _ensure_node(session, path)
    written = 1 + _write_tree(session, node, tree)
    session.flush()
    logger.info("Imported %d node(s) at %s", written, path)
    return written


def grant_service_user(
    session: Session,
    service_name: str,
    principal: str,
    read_paths: Sequence[str],
    enabled: bool = True,
) -> ServiceUser:
    """Create or update the mapping for ``service_name``."""
    try:
        paths: List[str] = [normalize_path(p) for p in read_paths]
    except ValueError as exc:
        raise ContentError(str(exc)) from exc

    mapping = session.execute(
        select(ServiceUser).where(ServiceUser.service_name == service_name)
    ).scalar_one_or_none()
    if mapping is None:
        mapping = ServiceUser(service_name=service_name)
        session.add(mapping)
        logger.info("Created service user mapping: %s -> %s", service_name, principal)
    else:
        logger.info("Updated service user mapping: %s -> %s", service_name, principal)
    mapping.principal = principal
    mapping.read_paths = paths
    mapping.enabled = enabled
    session.flush()
    return mapping


def revoke_service_user(session: Session, service_name: str) -> bool:
    """Remove the mapping for ``service_name``. Returns False if there was none."""
    result = session.execute(delete(ServiceUser).where(ServiceUser.service_name == service_name))
    session.flush()
    removed = (result.rowcount or 0) > 0
    if removed:
        logger.info("Revoked service user mapping: %s", service_name)
    return removed
