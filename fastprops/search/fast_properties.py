"""
Fast property lookup.

Oak index definitions declare, per indexed property, whether the property
can be used cheaply for sorting or filtering (``ordered``, ``propertyIndex``
and friends). ``FastProperties`` reads those index rules through a service
resolver and tells callers which properties are fast, which of a given
list are not, and how to label either kind in a UI.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from ..config import (
    DEFAULT_INDEX_DEFINITION_RULES_PATH,
    DEFAULT_SERVICE_NAME,
    Settings,
)
from ..repository.resolver import LoginError, ResourceResolver, ResourceResolverFactory

logger = logging.getLogger(__name__)

FAST = "FAST"
SLOW = "SLOW"
LABEL_SEPARATOR = "  "

DEFAULT_FLAG = "ordered"
PN_NAME = "name"

_RELATIVE_PREFIX = "./"


def normalize_property_path(path: str) -> str:
    """Strip a single leading ``./`` from a relative property path."""
    if path.startswith(_RELATIVE_PREFIX):
        return path[len(_RELATIVE_PREFIX):]
    return path


@dataclass
class FastPropertiesReport:
    """Outcome of one index rule scan."""

    properties: List[str] = field(default_factory=list)
    notices: List[str] = field(default_factory=list)
    login_failed: bool = False


class FastProperties:
    """
    Classifies content properties as fast or slow.

    Args:
        resolver_factory: Source of service resource resolvers.
        index_definition_paths: Index rule roots to inspect, in order.
        service_name: Service identity used to log in.
    """

    def __init__(
        self,
        resolver_factory: ResourceResolverFactory,
        index_definition_paths: Optional[Sequence[str]] = None,
        service_name: str = DEFAULT_SERVICE_NAME,
    ):
        self._resolver_factory = resolver_factory
        if index_definition_paths is None:
            index_definition_paths = [DEFAULT_INDEX_DEFINITION_RULES_PATH]
        self._index_definition_paths = tuple(index_definition_paths)
        self.service_name = service_name

    @classmethod
    def from_settings(cls, resolver_factory: ResourceResolverFactory, settings: Settings) -> "FastProperties":
        return cls(
            resolver_factory,
            index_definition_paths=settings.INDEX_DEFINITION_PATHS,
            service_name=settings.SERVICE_NAME,
        )

    @property
    def index_definition_paths(self) -> tuple:
        return self._index_definition_paths

    def get_fast_properties(self, property_name: str, paths: Optional[Sequence[str]] = None) -> List[str]:
        """
        Collect the ``name`` of every index rule flagged with ``property_name``.

        Missing roots are skipped and a failed service login yields an empty
        list; neither raises.

        Args:
            property_name: Boolean index rule property to test, e.g. ``ordered``.
            paths: Index rule roots for this call only; defaults to the
                configured roots.

        Returns:
            Relative property paths in index rule order.
        """
        return self.inspect(property_name, paths).properties

    def inspect(self, property_name: str, paths: Optional[Sequence[str]] = None) -> FastPropertiesReport:
        """Like ``get_fast_properties`` but also reports skipped roots and login failure."""
        report = FastPropertiesReport()
        roots = self._index_definition_paths if paths is None else tuple(paths)

        try:
            with self._resolver_factory.service_resource_resolver(self.service_name) as resolver:
                report.properties = self._collect(resolver, property_name, roots, report.notices)
        except LoginError as e:
            logger.error("Could not obtain the service user [ %s ]: %s", self.service_name, e, exc_info=True)
            report.properties = []
            report.notices.append(f"Could not obtain the service user [ {self.service_name} ]")
            report.login_failed = True

        return report

    def _collect(
        self,
        resolver: ResourceResolver,
        property_name: str,
        roots: Sequence[str],
        notices: List[str],
    ) -> List[str]:
        fast_properties: List[str] = []

        for root in roots:
            index_rules = resolver.get_resource(root)
            if index_rules is None:
                logger.warning("Could not locate Oak index definition index rules at [ %s ]", root)
                notices.append(f"Could not locate Oak index definition index rules at [ {root} ]")
                continue

            for index_rule in index_rules.list_children():
                properties = index_rule.value_map
                if not properties.get(property_name, False):
                    continue
                rel_path = properties.get(PN_NAME, type_=str)
                if rel_path and rel_path.strip():
                    fast_properties.append(rel_path)

        return fast_properties

    def get_delta_properties(self, fast_properties: Iterable[str], other_properties: Iterable[str]) -> List[str]:
        """
        Return the entries of ``fast_properties`` not present in ``other_properties``.

        A leading ``./`` is ignored on both sides. Order and duplicates of
        ``fast_properties`` are kept.
        """
        others = {normalize_property_path(p) for p in other_properties}
        return [p for p in fast_properties if normalize_property_path(p) not in others]

    def is_fast(self, property_path: str, fast_properties: Iterable[str]) -> bool:
        wanted = normalize_property_path(property_path)
        return any(normalize_property_path(p) == wanted for p in fast_properties)

    def get_fast_label(self, label: str) -> str:
        return FAST + LABEL_SEPARATOR + label

    def get_slow_label(self, label: str) -> str:
        return SLOW + LABEL_SEPARATOR + label

    def get_label(self, label: str, property_path: str, fast_properties: Iterable[str]) -> str:
        """Fast or slow label for ``property_path`` depending on ``fast_properties``."""
        if self.is_fast(property_path, fast_properties):
            return self.get_fast_label(label)
        return self.get_slow_label(label)
