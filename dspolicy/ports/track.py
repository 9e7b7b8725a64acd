"""
Track port interface.

This module defines the protocol for the per-request telemetry record
the router fills in while routing.
"""

from typing import Protocol
from dspolicy.core.enums import ResultDetails, ResultType


class TrackPort(Protocol):
    """Per-request telemetry record"""

    def set_result(self, result: ResultType) -> None:
        """
        Record the routing result.

        Args:
            result: result classification
        """
        ...

    def set_result_details(self, details: ResultDetails) -> None:
        """
        Record the result detail code.

        Args:
            details: result detail code
        """
        ...
