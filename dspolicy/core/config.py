"""
Delivery-service configuration for dspolicy.

A `PolicyConfig` is parsed once from the router configuration document
and is immutable afterwards. The only mutable part is `annotations`, a
side channel written by collaborators (certificate provisioning, geo
redirect classification) once per config generation.
"""

from typing import Any, Dict, FrozenSet, Optional, Tuple, Union
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .enums import DeepCachingType, GeoRedirectUrlType, TransInfoType, parse_with_default
from .models import Geolocation
from dspolicy.observability import metrics
from dspolicy.observability.logging_setup import get_logger

log = get_logger("dspolicy.config")


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class ProtocolConfig(_Section):
    accept_http: bool = Field(True, alias="acceptHttp")
    accept_https: bool = Field(False, alias="acceptHttps")
    redirect_to_https: bool = Field(False, alias="redirectToHttps")


class HttpBypass(_Section):
    fqdn: Optional[str] = None
    port: Optional[int] = None


class DnsBypass(_Section):
    # ttl stays optional here: a missing ttl is a per-call failure, not a parse failure
    ttl: Optional[int] = None
    ip: Optional[str] = None
    ip6: Optional[str] = None
    cname: Optional[str] = None


class BypassDestination(_Section):
    http: Optional[HttpBypass] = Field(None, alias="HTTP")
    dns: Optional[DnsBypass] = Field(None, alias="DNS")


class Dispersion(_Section):
    limit: int = 1
    shuffled: bool = True


class StaticDnsEntry(_Section):
    name: str
    type: str
    value: str
    ttl: int


class PolicyAnnotations(BaseModel):
    """Write-once-per-generation side channel carried next to the config"""
    model_config = ConfigDict(validate_assignment=True)

    geo_redirect_url_type: GeoRedirectUrlType = GeoRedirectUrlType.UNKNOWN
    geo_redirect_file: Optional[str] = None
    has_x509_cert: bool = False
    is_dns: bool = False


def _warn_default(ds_id: Optional[str], field: str, text: Any, default: Any) -> None:
    metrics.config_warnings.labels(field=field).inc()
    log.warning(
        f"DeliveryService '{ds_id}' has an unrecognized {field}: '{text}'. "
        f"Defaulting to '{default.value}' instead"
    )


class PolicyConfig(BaseModel):
    """Immutable configuration of one delivery service"""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    ttls: Optional[Dict[str, int]] = None
    coverage_zone_only: bool = Field(alias="coverageZoneOnly")
    # None marks an entry that failed to parse; it keeps the list restrictive but never matches
    geo_enabled: Tuple[Optional[Dict[str, str]], ...] = Field((), alias="geoEnabled")
    geo_redirect_url: Optional[str] = Field(None, alias="geoLimitRedirectURL")
    static_dns_entries: Tuple[StaticDnsEntry, ...] = Field((), alias="staticDnsEntries")
    domains: Tuple[str, ...] = ()
    soa: Optional[Dict[str, Union[int, str]]] = None
    routing_name: str = Field(alias="routingName")
    append_query_string: bool = Field(True, alias="appendQueryString")
    miss_location: Optional[Geolocation] = Field(None, alias="missLocation")
    dispersion: Dispersion = Field(default_factory=Dispersion)
    ip6_routing_enabled: bool = Field(False, alias="ip6RoutingEnabled")
    response_headers: Dict[str, str] = Field(default_factory=dict, alias="responseHeaders")
    request_headers: FrozenSet[str] = Field(frozenset(), alias="requestHeaders")
    regional_geo_blocking: bool = Field(False, alias="regionalGeoBlocking")
    geolocation_provider: Optional[str] = Field(None, alias="geolocationProvider")
    anonymous_blocking_enabled: bool = Field(False, alias="anonymousBlockingEnabled")
    ssl_enabled: bool = Field(False, alias="sslEnabled")
    protocol: ProtocolConfig = Field(default_factory=ProtocolConfig)
    deep_caching_type: DeepCachingType = Field(DeepCachingType.NEVER, alias="deepCachingType")
    bypass_destination: Optional[BypassDestination] = Field(None, alias="bypassDestination")
    trans_info_type: TransInfoType = Field(TransInfoType.NONE, alias="transInfoType")
    location_failover_limit: int = Field(0, alias="locationFailoverLimit")
    max_dns_ips_for_location: int = Field(0, alias="maxDnsIpsForLocation")

    annotations: PolicyAnnotations = Field(default_factory=PolicyAnnotations, exclude=True)

    @classmethod
    def from_document(cls, ds_id: str, doc: Dict[str, Any]) -> "PolicyConfig":
        """
        Parse one delivery-service document.

        Args:
            ds_id: delivery-service id (the key in `deliveryServices`)
            doc: the delivery-service document

        Returns:
            The parsed configuration

        Raises:
            pydantic.ValidationError: required fields missing or malformed
        """
        return cls.model_validate(doc, context={"id": ds_id})

    @model_validator(mode="before")
    @classmethod
    def _inject_id(cls, data, info: ValidationInfo):
        ds_id = (info.context or {}).get("id")
        if ds_id is None or not isinstance(data, dict):
            return data
        return {**data, "id": ds_id}

    # ---- field normalization ----

    @field_validator("geo_redirect_url", mode="before")
    @classmethod
    def _empty_url_is_absent(cls, v):
        return v or None

    @field_validator("routing_name")
    @classmethod
    def _lower_routing_name(cls, v: str) -> str:
        return v.lower()

    @field_validator("geo_enabled", mode="before")
    @classmethod
    def _malformed_constraints_never_match(cls, v, info: ValidationInfo):
        if v is None:
            return ()
        if not isinstance(v, (list, tuple)):
            return v
        kept = []
        for constraint in v:
            if isinstance(constraint, dict) and all(isinstance(x, str) for x in constraint.values()):
                kept.append(constraint)
            else:
                metrics.config_warnings.labels(field="geoEnabled").inc()
                log.warning(f"DeliveryService '{info.data.get('id')}' geoEnabled entry {constraint!r} is malformed and will never match")
                kept.append(None)
        return kept

    @field_validator("miss_location", mode="before")
    @classmethod
    def _miss_location(cls, v):
        if isinstance(v, dict) and "latitude" not in v:
            return {"latitude": v.get("lat", 0.0), "longitude": v.get("long", 0.0)}
        return v

    @field_validator("protocol", "dispersion", mode="before")
    @classmethod
    def _null_section(cls, v):
        return {} if v is None else v

    @field_validator(
        "static_dns_entries", "domains", "request_headers", mode="before"
    )
    @classmethod
    def _null_sequence(cls, v):
        return () if v is None else v

    @field_validator("response_headers", mode="before")
    @classmethod
    def _null_mapping(cls, v):
        return {} if v is None else v

    @field_validator("deep_caching_type", mode="before")
    @classmethod
    def _deep_caching(cls, v, info: ValidationInfo):
        value, warned = parse_with_default(DeepCachingType, v, DeepCachingType.NEVER)
        if warned:
            _warn_default(info.data.get("id"), "deepCachingType", v, value)
        return value

    @field_validator("trans_info_type", mode="before")
    @classmethod
    def _trans_info(cls, v, info: ValidationInfo):
        value, warned = parse_with_default(TransInfoType, v, TransInfoType.NONE)
        if warned:
            _warn_default(info.data.get("id"), "transInfoType", v, value)
        return value

    @model_validator(mode="after")
    def _announce(self) -> "PolicyConfig":
        if self.ttls is None:
            log.warning(f"ttls is null for:{self.id}")
        if self.geolocation_provider:
            log.info(f"DeliveryService '{self.id}' has configured geolocation provider '{self.geolocation_provider}'")
        else:
            log.info(f"DeliveryService '{self.id}' will use default geolocation provider")
        self.annotations.geo_redirect_file = self.geo_redirect_url
        return self

    # ---- derived views ----

    @property
    def http_bypass(self) -> Optional[HttpBypass]:
        return self.bypass_destination.http if self.bypass_destination else None

    @property
    def dns_bypass(self) -> Optional[DnsBypass]:
        return self.bypass_destination.dns if self.bypass_destination else None

    @property
    def ssl_ready(self) -> bool:
        return self.ssl_enabled and self.annotations.has_x509_cert

    def __str__(self) -> str:
        return f"DeliveryService [id={self.id}]"
