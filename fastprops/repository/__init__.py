"""
Content store: nodes, service users and read-only resolvers.
"""

from .content import ContentError, import_content, load_content_file
from .resolver import (
    LoginError,
    RepositoryError,
    Resource,
    ResourceResolver,
    ResourceResolverFactory,
    ValueMap,
)

__all__ = [
    "ContentError",
    "import_content",
    "load_content_file",
    "LoginError",
    "RepositoryError",
    "Resource",
    "ResourceResolver",
    "ResourceResolverFactory",
    "ValueMap",
]
