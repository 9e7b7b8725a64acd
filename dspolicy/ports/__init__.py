"""
Port interfaces for dspolicy.

This module defines the port interfaces (Protocols) that define
the contracts between the policy core and the router around it.
"""

from .track import TrackPort

__all__ = ["TrackPort"]
