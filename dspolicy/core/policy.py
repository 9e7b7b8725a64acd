"""
Delivery-service policy facade for dspolicy.

`DeliveryServicePolicy` is what the router holds per delivery service.
It owns one immutable `PolicyConfig` and the live `AvailabilityState`,
and delegates to the geo, token, URI and bypass components.
"""

from typing import TYPE_CHECKING, Any, Iterable, List, Mapping, Optional, Tuple

from .availability import AvailabilityState, LocationRef
from .bypass import BypassResolver
from .config import PolicyConfig
from .enums import GeoRedirectUrlType
from .geo_access import GeoAccessMatcher
from .models import CacheTarget, DnsRequest, Geolocation, HttpRequest, InetRecord, TrackResult
from .token import TokenContext, TransactionTokenEncoder
from .uri import UriBuilder
from dspolicy.observability import metrics
from dspolicy.observability.logging_setup import get_logger

if TYPE_CHECKING:
    from dspolicy.ports.track import TrackPort

log = get_logger("dspolicy.policy")


class DeliveryServicePolicy:
    """
    Request-time policy of one delivery service.

    Args:
        config: parsed configuration of this generation
        token_context: process-wide token resources
        availability: state holder to keep across config generations
    """

    def __init__(
        self,
        config: PolicyConfig,
        token_context: TokenContext,
        availability: Optional[AvailabilityState] = None,
    ):
        self.config = config
        self.availability = availability or AvailabilityState()
        self.geo = GeoAccessMatcher(config.geo_enabled, config.miss_location)
        self.tokens = TransactionTokenEncoder(config.trans_info_type, token_context)
        self.uris = UriBuilder(config, self.tokens.encode)
        self.bypass = BypassResolver(config, self.uris)

    @property
    def id(self) -> str:
        return self.config.id

    def __repr__(self) -> str:
        return str(self.config)

    # ---- geo ----

    def support_location(self, client_location: Optional[Geolocation]) -> Optional[Geolocation]:
        location = self.geo.resolve_effective_location(client_location)
        if location is None and client_location is not None:
            metrics.geo_blocked.labels(deliveryservice=self.id).inc()
        return location

    def is_location_allowed(self, client_location: Optional[Geolocation]) -> bool:
        return self.geo.is_allowed(client_location)

    # ---- URIs ----

    def use_secure(self, request: HttpRequest) -> bool:
        return self.uris.use_secure(request)

    def create_uri(self, request: HttpRequest, cache: CacheTarget) -> str:
        with metrics.uri_build_seconds.time():
            return self.uris.build(request, cache)

    def create_uri_with_path(self, request: HttpRequest, alternate_path: str, cache: CacheTarget) -> str:
        with metrics.uri_build_seconds.time():
            return self.uris.build(request, cache, alternate_path)

    def transaction_token(self, request: HttpRequest) -> Optional[str]:
        return self.tokens.encode(request)

    # ---- bypass ----

    def failure_http_response(
        self, request: HttpRequest, track: Optional["TrackPort"] = None
    ) -> Tuple[Optional[str], TrackResult]:
        uri, outcome = self.bypass.resolve_http_bypass(request)
        self._report("http", outcome, track)
        return uri, outcome

    def failure_dns_response(
        self, request: DnsRequest, track: Optional["TrackPort"] = None
    ) -> Tuple[Optional[List[InetRecord]], TrackResult]:
        records, outcome = self.bypass.resolve_dns_bypass(request)
        self._report("dns", outcome, track)
        return records, outcome

    def _report(self, kind: str, outcome: TrackResult, track: Optional["TrackPort"]) -> None:
        metrics.bypass_decisions.labels(
            deliveryservice=self.id,
            kind=kind,
            result=outcome.result.value,
            details=outcome.details.value,
        ).inc()
        if track is not None:
            track.set_result(outcome.result)
            track.set_result_details(outcome.details)

    # ---- availability ----

    def set_state(self, state: Optional[Mapping[str, Any]]) -> None:
        self.availability.apply_state(state)
        metrics.availability_updates.labels(deliveryservice=self.id).inc()
        snapshot = self.availability.snapshot
        log.debug(
            f"DeliveryService '{self.id}' state isAvailable:{snapshot.is_available} "
            f"disabledLocations:{sorted(snapshot.disabled_locations)}"
        )

    def is_available(self) -> bool:
        return self.availability.is_available()

    def is_location_available(self, location: Optional[LocationRef]) -> bool:
        return self.availability.is_location_available(location)

    def filter_available_locations(self, locations: Iterable[LocationRef]) -> List[LocationRef]:
        return self.availability.filter_available(locations)

    # ---- side channels ----

    def set_has_x509_cert(self, has_cert: bool) -> None:
        self.config.annotations.has_x509_cert = has_cert

    def is_ssl_ready(self) -> bool:
        return self.config.ssl_ready

    @property
    def geo_redirect_url_type(self) -> GeoRedirectUrlType:
        return self.config.annotations.geo_redirect_url_type

    @geo_redirect_url_type.setter
    def geo_redirect_url_type(self, value: GeoRedirectUrlType) -> None:
        self.config.annotations.geo_redirect_url_type = value

    @property
    def geo_redirect_file(self) -> Optional[str]:
        return self.config.annotations.geo_redirect_file

    @geo_redirect_file.setter
    def geo_redirect_file(self, path: Optional[str]) -> None:
        self.config.annotations.geo_redirect_file = path

    def is_dns(self) -> bool:
        return self.config.annotations.is_dns

    def set_dns(self, is_dns: bool) -> None:
        self.config.annotations.is_dns = is_dns

    # ---- plain config views ----

    @property
    def location_limit(self) -> int:
        return self.config.location_failover_limit

    @property
    def max_dns_ips(self) -> int:
        return self.config.max_dns_ips_for_location

    def to_summary(self) -> dict:
        """JSON-friendly view used by the admin endpoints"""
        snapshot = self.availability.snapshot
        return {
            "id": self.id,
            "routingName": self.config.routing_name,
            "coverageZoneOnly": self.config.coverage_zone_only,
            "deepCachingType": self.config.deep_caching_type.value,
            "transInfoType": self.config.trans_info_type.value,
            "sslReady": self.is_ssl_ready(),
            "isDns": self.is_dns(),
            "isAvailable": snapshot.is_available,
            "disabledLocations": sorted(snapshot.disabled_locations),
        }
