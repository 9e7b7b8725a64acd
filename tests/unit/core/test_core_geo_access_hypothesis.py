"""
GeoAccessMatcher tests using hypothesis

Property-based tests for the allow-list semantics: a client is allowed
when some entry matches all of its fields, ignoring case.
"""

from typing import Dict, List

from hypothesis import given, strategies as st

from dspolicy.core.geo_access import GeoAccessMatcher, constraint_matches
from dspolicy.core.models import Geolocation

ATTRS = ["countryCode", "countryName", "city", "postalCode", "state"]
VALUES = ["US", "us", "CA", "Denver", "denver", "80202", "CO", "co"]

constraints = st.dictionaries(st.sampled_from(ATTRS), st.sampled_from(VALUES), max_size=3)
allow_lists = st.lists(constraints, max_size=4)
properties = st.dictionaries(st.sampled_from(ATTRS), st.sampled_from(VALUES), max_size=5)


def location(props: Dict[str, str]) -> Geolocation:
    return Geolocation(latitude=39.74, longitude=-104.99, properties=props)


def reference_allowed(allow_list: List[Dict[str, str]], props: Dict[str, str]) -> bool:
    if not allow_list:
        return True
    for entry in allow_list:
        if all(k in props and props[k].lower() == v.lower() for k, v in entry.items()):
            return True
    return False


class TestIsAllowed:
    """is_allowed tests"""

    @given(props=properties)
    def test_empty_allow_list_allows_everything(self, props: Dict[str, str]):
        assert GeoAccessMatcher([]).is_allowed(location(props)) is True

    @given(allow_list=allow_lists, props=properties)
    def test_matches_reference_semantics(self, allow_list, props):
        matcher = GeoAccessMatcher(allow_list)
        assert matcher.is_allowed(location(props)) == reference_allowed(allow_list, props)

    @given(allow_list=allow_lists)
    def test_absent_location_is_unconstrained(self, allow_list):
        assert GeoAccessMatcher(allow_list).is_allowed(None) is True

    def test_vacuous_entry_allows_everything(self):
        """An entry with no fields matches every client, even next to strict entries"""
        matcher = GeoAccessMatcher([{"countryCode": "CA"}, {}])

        assert matcher.is_allowed(location({"countryCode": "US"})) is True
        assert matcher.is_allowed(location({})) is True

    def test_all_fields_of_an_entry_must_match(self):
        matcher = GeoAccessMatcher([{"countryCode": "US", "state": "CO"}])

        assert matcher.is_allowed(location({"countryCode": "us", "state": "co"})) is True
        assert matcher.is_allowed(location({"countryCode": "US", "state": "CA"})) is False
        assert matcher.is_allowed(location({"countryCode": "US"})) is False

    def test_any_entry_may_match(self):
        matcher = GeoAccessMatcher([{"countryCode": "CA"}, {"countryCode": "US"}])

        assert matcher.is_allowed(location({"countryCode": "US"})) is True
        assert matcher.is_allowed(location({"countryCode": "MX"})) is False

    def test_constraint_matches_is_case_insensitive(self):
        assert constraint_matches({"city": "DENVER"}, {"city": "denver"}) is True
        assert constraint_matches({"city": "Denver"}, {}) is False

    def test_comparison_lowers_both_sides(self):
        assert constraint_matches({"city": "STRASSE"}, {"city": "straße"}) is False
        assert constraint_matches({"city": "Straße"}, {"city": "STRAßE"}) is True

    def test_unparsable_entry_never_matches(self):
        matcher = GeoAccessMatcher([None])

        assert constraint_matches(None, {"countryCode": "US"}) is False
        assert matcher.is_allowed(location({"countryCode": "US"})) is False
        assert matcher.is_allowed(location({})) is False

    def test_unparsable_entry_next_to_valid_entry(self):
        matcher = GeoAccessMatcher([None, {"countryCode": "US"}])

        assert matcher.is_allowed(location({"countryCode": "us"})) is True
        assert matcher.is_allowed(location({"countryCode": "MX"})) is False


class TestResolveEffectiveLocation:
    """resolve_effective_location tests"""

    def test_absent_location_without_miss_location(self):
        assert GeoAccessMatcher([{"countryCode": "US"}]).resolve_effective_location(None) is None

    def test_absent_location_uses_miss_location(self):
        miss = Geolocation(latitude=39.7, longitude=-104.9)
        matcher = GeoAccessMatcher([{"countryCode": "US"}], miss_location=miss)

        assert matcher.resolve_effective_location(None) == miss

    def test_allowed_location_is_returned(self):
        client = location({"countryCode": "US"})
        matcher = GeoAccessMatcher([{"countryCode": "US"}])

        assert matcher.resolve_effective_location(client) == client

    def test_blocked_location_is_not_supportable(self):
        miss = Geolocation(latitude=39.7, longitude=-104.9)
        matcher = GeoAccessMatcher([{"countryCode": "US"}], miss_location=miss)

        assert matcher.resolve_effective_location(location({"countryCode": "MX"})) is None
