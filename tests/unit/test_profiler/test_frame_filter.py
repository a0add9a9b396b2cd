"""
Unit tests for profiled-package frame filtering.
"""

import pytest

from stackmonitor.profiler.frame_filter import (
    DEFAULT_PACKAGE,
    _filter_cache,
    clear_filter_cache,
    get_package_name,
    is_profiled,
)


@pytest.mark.unit
class TestGetPackageName:
    """Test cases for package name extraction."""

    def test_dotted_class_name(self):
        assert get_package_name("com.foo.Bar") == "com.foo"

    def test_class_without_package(self):
        assert get_package_name("Bar") == DEFAULT_PACKAGE

    def test_python_module_as_class(self):
        assert get_package_name("myapp.workers") == "myapp"


@pytest.mark.unit
class TestIsProfiled:
    """Test cases for the is_profiled predicate."""

    def test_empty_spec_set_profiles_nothing(self):
        assert is_profiled("com.foo.Bar", set()) is False
        assert is_profiled("Bar", []) is False

    def test_exact_package_match(self):
        assert is_profiled("com.foo.Bar", {"com.foo"}) is True

    def test_exact_spec_does_not_match_sub_package(self):
        assert is_profiled("com.foo.sub.Bar", {"com.foo"}) is False

    def test_exact_spec_does_not_match_parent_package(self):
        assert is_profiled("com.Bar", {"com.foo"}) is False

    def test_wildcard_matches_package_and_sub_packages(self):
        specs = {"com.foo.*"}
        assert is_profiled("com.foo.Bar", specs) is True
        assert is_profiled("com.foo.sub.deep.Bar", specs) is True

    def test_wildcard_requires_package_boundary(self):
        assert is_profiled("com.foobar.Baz", {"com.foo.*"}) is False

    def test_wildcard_without_dot_is_a_plain_prefix(self):
        assert is_profiled("com.foobar.Baz", {"com.foo*"}) is True

    def test_bare_wildcard_matches_everything(self):
        assert is_profiled("com.foo.Bar", {"*"}) is True
        assert is_profiled("Bar", {"*"}) is True

    def test_default_package(self):
        assert is_profiled("Bar", {DEFAULT_PACKAGE}) is True
        assert is_profiled("com.Bar", {DEFAULT_PACKAGE}) is False

    def test_dollar_classes_are_always_excluded(self):
        assert is_profiled("$Proxy12", {"*"}) is False
        assert is_profiled("$Proxy12", {DEFAULT_PACKAGE}) is False

    def test_any_matching_spec_is_enough(self):
        assert is_profiled("org.lib.Util", {"com.foo", "org.lib"}) is True

    def test_accepts_any_iterable_of_specs(self):
        assert is_profiled("com.foo.Bar", ["com.foo"]) is True
        assert is_profiled("com.foo.Bar", ("com.foo",)) is True


@pytest.mark.unit
class TestFilterCache:
    """Test cases for the verdict cache."""

    def test_verdicts_are_cached_per_spec_set(self):
        clear_filter_cache()
        is_profiled("com.foo.Bar", {"com.foo"})
        is_profiled("com.foo.Bar", {"org"})

        assert _filter_cache[("com.foo.Bar", frozenset({"com.foo"}))] is True
        assert _filter_cache[("com.foo.Bar", frozenset({"org"}))] is False

    def test_clear_filter_cache(self):
        is_profiled("com.foo.Bar", {"com.foo"})
        clear_filter_cache()
        assert len(_filter_cache) == 0

    def test_empty_spec_set_is_not_cached(self):
        clear_filter_cache()
        is_profiled("com.foo.Bar", set())
        assert len(_filter_cache) == 0
