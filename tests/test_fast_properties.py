"""
Tests for fast property lookup, delta computation and labels.
"""
import logging
from unittest.mock import MagicMock

import pytest

from fastprops.config import DEFAULT_INDEX_DEFINITION_RULES_PATH, Settings
from fastprops.repository.engine import create_session_factory
from fastprops.repository.resolver import LoginError, ResourceResolver, ResourceResolverFactory
from fastprops.search.fast_properties import (
    FAST,
    SLOW,
    FastProperties,
    normalize_property_path,
)

RULES_PATH = "/oak:index/damAssetLucene/indexRules/dam:Asset/properties"
SERVICE_NAME = "oak-index-definition-reader"


class TestGetFastProperties:
    """ListFastProperties over a real in-memory store."""

    def test_default_root_is_well_known_path(self, resolver_factory):
        """Test the default configuration root."""
        fast_properties = FastProperties(resolver_factory)
        assert fast_properties.index_definition_paths == (DEFAULT_INDEX_DEFINITION_RULES_PATH,)

    def test_blank_and_false_entries_excluded(self, resolver_factory, index_rules):
        """Test that blank names and false flags are skipped."""
        fast_properties = FastProperties(resolver_factory, [index_rules])
        assert fast_properties.get_fast_properties("ordered") == ["jcr:title"]

    def test_absent_flag_is_false(self, resolver_factory, index_rules):
        """Test that a flag missing on every rule yields nothing."""
        fast_properties = FastProperties(resolver_factory, [index_rules])
        assert fast_properties.get_fast_properties("propertyIndex") == []

    def test_non_boolean_flag_is_false(self, resolver_factory, load_content, grant):
        """Test that string and numeric flag values do not count as true."""
        load_content(RULES_PATH, {
            "a": {"name": "a", "ordered": "true"},
            "b": {"name": "b", "ordered": 1},
            "c": {"name": "c", "ordered": True},
        })
        grant()
        fast_properties = FastProperties(resolver_factory, [RULES_PATH])
        assert fast_properties.get_fast_properties("ordered") == ["c"]

    def test_non_string_and_whitespace_names_excluded(self, resolver_factory, load_content, grant):
        """Test that malformed names are treated as not fast."""
        load_content(RULES_PATH, {
            "a": {"name": 42, "ordered": True},
            "b": {"name": "   ", "ordered": True},
            "c": {"ordered": True},
            "d": {"name": " jcr:content/metadata/dc:title ", "ordered": True},
        })
        grant()
        fast_properties = FastProperties(resolver_factory, [RULES_PATH])
        assert fast_properties.get_fast_properties("ordered") == [" jcr:content/metadata/dc:title "]

    def test_order_follows_roots_then_children(self, resolver_factory, load_content, grant):
        """Test that results are not sorted."""
        load_content("/oak:index/second/rules", {
            "z": {"name": "z", "ordered": True},
            "a": {"name": "a", "ordered": True},
        })
        load_content("/oak:index/first/rules", {
            "m": {"name": "m", "ordered": True},
            "b": {"name": "b", "ordered": True},
        })
        grant()
        fast_properties = FastProperties(
            resolver_factory, ["/oak:index/second/rules", "/oak:index/first/rules"]
        )
        assert fast_properties.get_fast_properties("ordered") == ["z", "a", "m", "b"]

    def test_duplicates_across_roots_kept(self, resolver_factory, load_content, grant):
        """Test that the same name from two roots appears twice."""
        load_content("/oak:index/a/rules", {"t": {"name": "jcr:title", "ordered": True}})
        load_content("/oak:index/b/rules", {"t": {"name": "jcr:title", "ordered": True}})
        grant()
        fast_properties = FastProperties(resolver_factory, ["/oak:index/a/rules", "/oak:index/b/rules"])
        assert fast_properties.get_fast_properties("ordered") == ["jcr:title", "jcr:title"]

    def test_missing_root_skipped_with_warning(self, resolver_factory, load_content, grant, caplog):
        """Test that an unresolvable root is skipped and the rest still read."""
        load_content("/oak:index/assets/rules", {
            "scene": {"name": "metadata/dam:Scene", "ordered": True},
        })
        grant()
        fast_properties = FastProperties(resolver_factory, ["/oak:index/missing/rules", "/oak:index/assets/rules"])

        with caplog.at_level(logging.WARNING):
            result = fast_properties.get_fast_properties("ordered")

        assert result == ["metadata/dam:Scene"]
        assert "/oak:index/missing/rules" in caplog.text

    def test_unreadable_root_treated_as_missing(self, resolver_factory, load_content, grant):
        """Test that roots outside the service user's read paths are skipped."""
        load_content("/apps/rules", {"t": {"name": "jcr:title", "ordered": True}})
        grant(read_paths=["/oak:index"])
        fast_properties = FastProperties(resolver_factory, ["/apps/rules"])
        report = fast_properties.inspect("ordered")
        assert report.properties == []
        assert report.notices == ["Could not locate Oak index definition index rules at [ /apps/rules ]"]
        assert not report.login_failed

    def test_paths_argument_overrides_configured_roots(self, resolver_factory, load_content, grant):
        """Test a per-call root override."""
        load_content("/oak:index/other/rules", {"t": {"name": "dc:subject", "ordered": True}})
        grant()
        fast_properties = FastProperties(resolver_factory, ["/oak:index/none"])
        assert fast_properties.get_fast_properties("ordered", ["/oak:index/other/rules"]) == ["dc:subject"]
        assert fast_properties.get_fast_properties("ordered") == []

    def test_nodes_are_not_modified(self, resolver_factory, index_rules, session_factory):
        """Test that reading leaves the index rules untouched."""
        def snapshot():
            session = session_factory()
            try:
                resolver = ResourceResolver(session, "admin", ["/"])
                return [
                    (child.path, child.value_map.as_dict())
                    for child in resolver.get_resource(index_rules).list_children()
                ]
            finally:
                session.close()

        before = snapshot()
        FastProperties(resolver_factory, [index_rules]).get_fast_properties("ordered")
        assert snapshot() == before


class TestLoginFailure:
    """Credential failures never reach the caller."""

    def test_unmapped_service_returns_empty(self, resolver_factory, load_content, caplog):
        """Test that a missing service user mapping yields an empty list."""
        load_content(RULES_PATH, {"t": {"name": "jcr:title", "ordered": True}})
        fast_properties = FastProperties(resolver_factory, [RULES_PATH])

        with caplog.at_level(logging.ERROR):
            assert fast_properties.get_fast_properties("ordered") == []

        assert SERVICE_NAME in caplog.text

    def test_disabled_service_returns_empty(self, resolver_factory, index_rules, grant):
        """Test that a disabled mapping is rejected."""
        grant(enabled=False)
        report = FastProperties(resolver_factory, [index_rules]).inspect("ordered")
        assert report.properties == []
        assert report.login_failed

    def test_store_without_schema_returns_empty(self, caplog):
        """Test that a store that cannot be queried at login yields an empty list."""
        factory = ResourceResolverFactory(create_session_factory("sqlite+pysqlite:///:memory:"))
        fast_properties = FastProperties(factory, ["/a"])

        with caplog.at_level(logging.ERROR):
            report = fast_properties.inspect("ordered")

        assert report.properties == []
        assert report.login_failed
        assert SERVICE_NAME in caplog.text

    def test_login_failure_logged_with_cause(self, resolver_factory, caplog):
        """Test that the login error is logged with its traceback."""
        with caplog.at_level(logging.ERROR):
            FastProperties(resolver_factory, [RULES_PATH]).get_fast_properties("ordered")

        records = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert records
        assert records[0].exc_info is not None
        assert isinstance(records[0].exc_info[1], LoginError)

    def test_login_error_from_factory(self):
        """Test that LoginError raised on acquisition is caught."""
        factory = MagicMock()
        factory.service_resource_resolver.side_effect = LoginError("rejected")
        fast_properties = FastProperties(factory, ["/a", "/b"])
        assert fast_properties.get_fast_properties("ordered") == []
        factory.service_resource_resolver.assert_called_once_with(SERVICE_NAME)


class TestResolverScope:
    """One resolver per call, always released."""

    def _factory(self, resolver):
        factory = MagicMock()
        context = MagicMock()
        context.__enter__.return_value = resolver
        factory.service_resource_resolver.return_value = context
        return factory, context

    def test_resolver_released_on_success(self):
        """Test acquire and release on the normal path."""
        resolver = MagicMock()
        resolver.get_resource.return_value = None
        factory, context = self._factory(resolver)

        FastProperties(factory, ["/a", "/b"]).get_fast_properties("ordered")

        factory.service_resource_resolver.assert_called_once()
        context.__exit__.assert_called_once()

    def test_resolver_released_on_error(self):
        """Test that unexpected errors propagate after release."""
        resolver = MagicMock()
        resolver.get_resource.side_effect = RuntimeError("store went away")
        factory, context = self._factory(resolver)
        context.__exit__.return_value = False

        with pytest.raises(RuntimeError, match="store went away"):
            FastProperties(factory, ["/a"]).get_fast_properties("ordered")

        context.__exit__.assert_called_once()

    def test_real_resolver_closed(self, resolver_factory, index_rules):
        """Test that the resolver handed out by the factory is closed afterwards."""
        opened = []
        original = resolver_factory.get_service_resource_resolver

        def tracking(service_name):
            resolver = original(service_name)
            opened.append(resolver)
            return resolver

        resolver_factory.get_service_resource_resolver = tracking
        FastProperties(resolver_factory, [index_rules]).get_fast_properties("ordered")

        assert len(opened) == 1
        assert not opened[0].is_live


class TestDeltaProperties:
    """Left anti-join with ./ normalization."""

    @pytest.fixture
    def fast_properties(self):
        return FastProperties(MagicMock())

    def test_delta_removes_matches(self, fast_properties):
        result = fast_properties.get_delta_properties(["a", "b", "c"], ["b"])
        assert result == ["a", "c"]

    def test_delta_of_self_is_empty(self, fast_properties):
        values = ["jcr:title", "./dc:format", "metadata/dam:Scene"]
        assert fast_properties.get_delta_properties(values, values) == []

    def test_delta_with_empty_other_is_unchanged(self, fast_properties):
        values = ["./b", "a", "./b"]
        assert fast_properties.get_delta_properties(values, []) == values

    def test_relative_prefix_ignored_on_either_side(self, fast_properties):
        assert fast_properties.get_delta_properties(["./x"], ["x"]) == []
        assert fast_properties.get_delta_properties(["x"], ["./x"]) == []

    def test_original_strings_and_duplicates_kept(self, fast_properties):
        result = fast_properties.get_delta_properties(["./a", "b", "./a"], ["c"])
        assert result == ["./a", "b", "./a"]

    def test_only_one_prefix_stripped(self, fast_properties):
        assert fast_properties.get_delta_properties(["././x"], ["x"]) == ["././x"]
        assert fast_properties.get_delta_properties(["././x"], ["./x"]) == ["././x"]
        assert fast_properties.get_delta_properties(["./x"], ["./x"]) == []

    def test_normalize_property_path(self):
        assert normalize_property_path("./jcr:title") == "jcr:title"
        assert normalize_property_path("jcr:title") == "jcr:title"
        assert normalize_property_path(".jcr:title") == ".jcr:title"


class TestLabels:
    """Fast and slow display labels."""

    @pytest.fixture
    def fast_properties(self):
        return FastProperties(MagicMock())

    def test_fast_label(self, fast_properties):
        assert fast_properties.get_fast_label("Title") == FAST + "  Title"
        assert fast_properties.get_fast_label("Title").startswith("FAST")

    def test_slow_label(self, fast_properties):
        assert fast_properties.get_slow_label("Title") == SLOW + "  Title"

    def test_empty_label(self, fast_properties):
        assert fast_properties.get_fast_label("") == "FAST  "
        assert fast_properties.get_slow_label("") == "SLOW  "

    def test_label_not_modified(self, fast_properties):
        assert fast_properties.get_slow_label("  Mixed Case  ").endswith("  Mixed Case  ")

    def test_get_label_picks_marker(self, fast_properties):
        fast = ["./jcr:title", "dc:format"]
        assert fast_properties.get_label("Title", "jcr:title", fast) == "FAST  Title"
        assert fast_properties.get_label("Format", "./dc:format", fast) == "FAST  Format"
        assert fast_properties.get_label("Subject", "dc:subject", fast) == "SLOW  Subject"


class TestFromSettings:

    def test_from_settings(self, resolver_factory):
        """Test construction from configuration."""
        settings = Settings(INDEX_DEFINITION_PATHS=["/x", "/y"], SERVICE_NAME="reader")
        fast_properties = FastProperties.from_settings(resolver_factory, settings)
        assert fast_properties.index_definition_paths == ("/x", "/y")
        assert fast_properties.service_name == "reader"

    def test_configured_paths_are_copied(self, resolver_factory):
        """Test that later changes to the source list have no effect."""
        paths = ["/x"]
        fast_properties = FastProperties(resolver_factory, paths)
        paths.append("/y")
        assert fast_properties.index_definition_paths == ("/x",)
