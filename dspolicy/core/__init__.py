"""
Core delivery-service policy for dspolicy.

This package contains the request-time policy evaluation that is
independent of I/O: configuration, geo access, transaction tokens,
bypass answers, redirect URIs and availability state.
"""

from .config import PolicyConfig
from .enums import DeepCachingType, ResultDetails, ResultType, TransInfoType, parse_with_default
from .models import CacheLocation, CacheTarget, DnsRequest, Geolocation, HttpRequest, InetRecord, TrackResult
from .policy import DeliveryServicePolicy
from .token import TokenContext

__all__ = [
    "PolicyConfig", "DeepCachingType", "ResultDetails", "ResultType", "TransInfoType",
    "parse_with_default", "CacheLocation", "CacheTarget", "DnsRequest", "Geolocation",
    "HttpRequest", "InetRecord", "TrackResult", "DeliveryServicePolicy", "TokenContext",
]
