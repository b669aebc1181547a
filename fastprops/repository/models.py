"""
SQLAlchemy models for the fastprops content store.

The store is a tree of path-addressed nodes, each carrying a JSON bag of
properties, plus the service-user mappings that gate read access to it.
"""

from typing import Any, Dict, List

from sqlalchemy import (
    JSON,
    Boolean,
    Integer,
    String,
    Index,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""

    type_annotation_map = {
        Dict[str, Any]: JSON,
        List[str]: JSON,
    }


class Node(Base):
    """
    A content node.

    Children are found through ``parent_path`` and listed in ``position``
    order, which is the order they were written in.
    """
    __tablename__ = "nodes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    path: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        unique=True,
        comment="Absolute node path, e.g. /oak:index/damAssetLucene",
    )
    parent_path: Mapped[str | None] = mapped_column(
        String(1024),
        nullable=True,
        comment="Absolute path of the parent node; NULL for the root",
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Ordering among siblings",
    )
    properties: Mapped[Dict[str, Any]] = mapped_column(nullable=False, default=dict)

    __table_args__ = (
        Index("idx_nodes_parent_position", "parent_path", "position"),
    )

    def __repr__(self) -> str:
        return f"<Node(path='{self.path}')>"


class ServiceUser(Base):
    """
    Maps a service name to the principal it logs in as.

    ``read_paths`` lists the path prefixes the principal may read. A
    disabled mapping rejects logins.
    """
    __tablename__ = "service_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    service_name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    principal: Mapped[str] = mapped_column(String(255), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    read_paths: Mapped[List[str]] = mapped_column(nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<ServiceUser(service_name='{self.service_name}', principal='{self.principal}')>"
