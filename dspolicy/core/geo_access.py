"""
Geographic access control for dspolicy.

The `geoEnabled` list of a delivery service is an allow-list: a client is
allowed when at least one entry matches every attribute that entry names.
"""

from typing import Dict, Mapping, Optional, Sequence

from .models import Geolocation


def constraint_matches(constraint: Optional[Mapping[str, str]], properties: Mapping[str, str]) -> bool:
    """
    Check one allow-list entry against client attributes.

    An entry with no fields matches every client. A None entry (one that
    failed to parse) matches no client.

    Args:
        constraint: attribute -> expected value
        properties: client attribute -> value

    Returns:
        True when every constrained attribute is present and equal, ignoring case
    """
    if constraint is None:
        return False
    for attr, expected in constraint.items():
        actual = properties.get(attr)
        if actual is None or expected.lower() != actual.lower():
            return False
    return True


class GeoAccessMatcher:
    """Evaluates client locations against a delivery-service allow-list"""

    def __init__(self, allow_list: Sequence[Optional[Dict[str, str]]], miss_location: Optional[Geolocation] = None):
        self.allow_list = tuple(allow_list)
        self.miss_location = miss_location

    def is_allowed(self, client_location: Optional[Geolocation]) -> bool:
        if not self.allow_list or client_location is None:
            return True
        props = client_location.properties
        return any(constraint_matches(c, props) for c in self.allow_list)

    def resolve_effective_location(self, client_location: Optional[Geolocation]) -> Optional[Geolocation]:
        """
        Pick the location routing should use for this client.

        Args:
            client_location: geolocation of the client, None if the lookup failed

        Returns:
            The miss-location for unknown clients, the client location when the
            allow-list admits it, otherwise None (no supportable location)
        """
        if client_location is None:
            return self.miss_location
        if not self.is_allowed(client_location):
            return None
        return client_location
