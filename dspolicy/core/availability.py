"""
Runtime availability state for dspolicy.

The health feed pushes a complete snapshot per delivery service. A push
replaces the snapshot reference in one assignment; readers always see
either the old or the new snapshot, never a mix.
"""

from typing import Any, FrozenSet, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .models import CacheLocation


class AvailabilitySnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_available: bool = Field(True, alias="isAvailable")
    disabled_locations: FrozenSet[str] = Field(frozenset(), alias="disabledLocations")


LocationRef = Union[CacheLocation, str]


def _location_id(location: LocationRef) -> str:
    return location.id if isinstance(location, CacheLocation) else location


class AvailabilityState:
    """Holder of the current availability snapshot"""

    def __init__(self, snapshot: Optional[AvailabilitySnapshot] = None):
        self._snapshot = snapshot or AvailabilitySnapshot()

    @property
    def snapshot(self) -> AvailabilitySnapshot:
        return self._snapshot

    def update(self, is_available: bool = True, disabled_locations: Iterable[str] = ()) -> None:
        self._snapshot = AvailabilitySnapshot(
            is_available=is_available,
            disabled_locations=frozenset(disabled_locations),
        )

    def apply_state(self, state: Optional[Mapping[str, Any]]) -> None:
        """
        Apply a pushed state document.

        Args:
            state: {"isAvailable": bool, "disabledLocations": [location id, ...]};
                missing keys take their defaults
        """
        state = state or {}
        disabled = state.get("disabledLocations") or ()
        is_available = state.get("isAvailable")
        self._snapshot = AvailabilitySnapshot(
            is_available=True if is_available is None else is_available,
            disabled_locations=frozenset(str(d) for d in disabled),
        )

    def is_available(self) -> bool:
        return self._snapshot.is_available

    def is_location_available(self, location: Optional[LocationRef]) -> bool:
        if location is None:
            return False
        return _location_id(location) not in self._snapshot.disabled_locations

    def filter_available(self, locations: Iterable[LocationRef]) -> List[LocationRef]:
        disabled = self._snapshot.disabled_locations
        return [loc for loc in locations if loc is not None and _location_id(loc) not in disabled]
