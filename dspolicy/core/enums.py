"""
Typed enumerations for delivery-service policy.

Every enum-valued configuration field is parsed through
`parse_with_default` so unrecognized text never raises.
"""

from enum import Enum
from typing import Optional, Tuple, Type, TypeVar

E = TypeVar("E", bound=Enum)


class DeepCachingType(str, Enum):
    NEVER = "NEVER"
    ALWAYS = "ALWAYS"


class TransInfoType(str, Enum):
    NONE = "NONE"
    IP = "IP"
    IP_TID = "IP_TID"


class GeoRedirectUrlType(str, Enum):
    """Classification of the geo-limit redirect URL against this service"""
    UNKNOWN = "INVALID_URL"
    DS_URL = "DS_URL"
    NOT_DS_URL = "NOT_DS_URL"


class ResultType(str, Enum):
    """Track result classification, as defined by the telemetry collaborator"""
    ERROR = "ERROR"
    CZ = "CZ"
    GEO = "GEO"
    MISS = "MISS"
    STATIC_ROUTE = "STATIC_ROUTE"
    DS_REDIRECT = "DS_REDIRECT"
    DS_MISS = "DS_MISS"
    INIT = "INIT"
    FED = "FED"
    RGDENY = "RGDENY"
    RGALT = "RGALT"
    GEO_REDIRECT = "GEO_REDIRECT"
    DEEP_CZ = "DEEP_CZ"
    ANON_BLOCK = "ANON_BLOCK"


class ResultDetails(str, Enum):
    """Track result detail codes, as defined by the telemetry collaborator"""
    NO_DETAILS = "NO_DETAILS"
    DS_NOT_FOUND = "DS_NOT_FOUND"
    DS_TLS_MISMATCH = "DS_TLS_MISMATCH"
    DS_NO_BYPASS = "DS_NO_BYPASS"
    DS_BYPASS = "DS_BYPASS"
    DS_CZ_ONLY = "DS_CZ_ONLY"
    DS_CLIENT_GEO_UNSUPPORTED = "DS_CLIENT_GEO_UNSUPPORTED"
    GEO_NO_CACHE_FOUND = "GEO_NO_CACHE_FOUND"
    REGIONAL_GEO_NO_RULE = "REGIONAL_GEO_NO_RULE"
    REGIONAL_GEO_ALTERNATE_WITHOUT_CACHE = "REGIONAL_GEO_ALTERNATE_WITHOUT_CACHE"
    DS_CZ_BACKUP_CG = "DS_CZ_BACKUP_CG"


def parse_with_default(enum_cls: Type[E], text: Optional[str], default: E) -> Tuple[E, bool]:
    """
    Parse enum text case-insensitively, falling back to a default.

    Args:
        enum_cls: target enumeration
        text: raw configuration text (None means "not configured")
        default: value used when text is absent or unrecognized

    Returns:
        (value, warned) where warned is True only when text was present
        but did not name a member
    """
    if text is None:
        return default, False
    if isinstance(text, enum_cls):
        return text, False
    try:
        return enum_cls[str(text).strip().upper()], False
    except KeyError:
        return default, True
