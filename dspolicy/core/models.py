"""
Core domain models for dspolicy.

This module defines the request, topology and answer types exchanged
between the router and the delivery-service policy, using Pydantic v2
for type safety and validation.
"""

from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, IPvAnyAddress, model_validator

from .enums import ResultDetails, ResultType


class Geolocation(BaseModel):
    """Client or fallback geolocation"""
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    properties: Dict[str, str] = Field(default_factory=dict)


class CacheLocation(BaseModel):
    """A physical or logical cache site"""
    model_config = ConfigDict(frozen=True)

    id: str


class CacheTarget(BaseModel):
    """An edge cache able to serve a delivery service"""
    model_config = ConfigDict(frozen=True)

    fqdn: str
    port: int = 80
    https_port: int = 443
    # delivery-service id -> per-service FQDN on this cache
    delivery_service_fqdns: Dict[str, str] = Field(default_factory=dict)

    def fqdn_for(self, ds_id: str) -> Optional[str]:
        return self.delivery_service_fqdns.get(ds_id)


class HttpRequest(BaseModel):
    """Resolved HTTP request, consumed read-only"""
    model_config = ConfigDict(frozen=True)

    hostname: str
    path: str = "/"
    query_string: Optional[str] = None
    client_ip: str
    secure: bool = False

    @property
    def domain_suffix(self) -> str:
        """Hostname with its first label removed ("" when there is none)"""
        return self.hostname.partition(".")[2]


class DnsRequest(BaseModel):
    """Resolved DNS request, consumed read-only"""
    model_config = ConfigDict(frozen=True)

    hostname: str
    client_ip: str
    qtype: str = "A"


class InetRecord(BaseModel):
    """One DNS answer: an address record or a CNAME, never both"""
    model_config = ConfigDict(frozen=True)

    ttl: int
    address: Optional[IPvAnyAddress] = None
    cname: Optional[str] = None

    @model_validator(mode="after")
    def _one_target(self) -> "InetRecord":
        if (self.address is None) == (self.cname is None):
            raise ValueError("InetRecord needs exactly one of address or cname")
        return self

    @property
    def is_alias(self) -> bool:
        return self.cname is not None


class TrackResult(BaseModel):
    """Result classification handed to the telemetry collaborator"""
    model_config = ConfigDict(frozen=True)

    result: ResultType
    details: ResultDetails = ResultDetails.NO_DETAILS


NO_BYPASS = TrackResult(result=ResultType.MISS, details=ResultDetails.DS_NO_BYPASS)
BYPASS = TrackResult(result=ResultType.DS_REDIRECT, details=ResultDetails.DS_BYPASS)
