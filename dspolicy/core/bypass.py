"""
Failure-bypass answers for dspolicy.

When a delivery service cannot be served from its caches, the router may
answer with a configured bypass destination instead of a miss: an HTTP
redirect for HTTP routing, or a fixed record set for DNS routing.
"""

import ipaddress
import re
from typing import List, Optional, Tuple

from .config import DnsBypass, PolicyConfig
from .models import BYPASS, NO_BYPASS, DnsRequest, HttpRequest, InetRecord, TrackResult
from .once import OnceCell
from .uri import UriBuilder
from dspolicy.observability.logging_setup import get_logger

log = get_logger("dspolicy.bypass")

_PREFIX_LEN = re.compile(r"/.*")


class MissingBypassTtl(ValueError):
    """The DNS bypass destination has no ttl"""


def build_inet_records(dns: DnsBypass) -> List[InetRecord]:
    """
    Build the DNS bypass answer set.

    Address records take priority over the CNAME: a CNAME may not coexist
    with other records for the same name (RFC 1912 section 2.4).

    Args:
        dns: DNS bypass destination

    Returns:
        One or two address records, or exactly one CNAME record

    Raises:
        MissingBypassTtl: ttl is not configured
        ValueError: ip or ip6 is not an address literal
    """
    if dns.ttl is None:
        raise MissingBypassTtl("bypass DNS destination requires a ttl")

    ttl = dns.ttl
    records: List[InetRecord] = []
    if dns.ip is not None or dns.ip6 is not None:
        if dns.ip is not None:
            records.append(InetRecord(address=ipaddress.ip_address(dns.ip), ttl=ttl))
        if dns.ip6:
            ip6 = _PREFIX_LEN.sub("", dns.ip6)
            records.append(InetRecord(address=ipaddress.ip_address(ip6), ttl=ttl))
    elif dns.cname is not None:
        records.append(InetRecord(cname=dns.cname, ttl=ttl))
    return records


class BypassResolver:
    """Resolves bypass answers for one delivery-service configuration"""

    def __init__(self, config: PolicyConfig, uri_builder: UriBuilder):
        self.config = config
        self.uri_builder = uri_builder
        self._records: OnceCell[List[InetRecord]] = OnceCell()

    def resolve_http_bypass(self, request: HttpRequest) -> Tuple[Optional[str], TrackResult]:
        """
        Build the HTTP bypass redirect.

        Args:
            request: the client request

        Returns:
            (uri, track result); uri is None when no HTTP bypass is configured
        """
        http = self.config.http_bypass
        if http is None or http.fqdn is None:
            return None, NO_BYPASS

        port = 443 if request.secure else 80
        if http.port is not None:
            port = http.port
        return self.uri_builder.build_for_host(request, http.fqdn, port, None), BYPASS

    def resolve_dns_bypass(self, request: DnsRequest) -> Tuple[Optional[List[InetRecord]], TrackResult]:
        """
        Build the DNS bypass answer set.

        Args:
            request: the client request

        Returns:
            (records, track result); records is None when no DNS bypass is
            configured or the answer could not be built on this call
        """
        dns = self.config.dns_bypass
        if dns is None:
            return None, NO_BYPASS
        return self.inet_records(dns), BYPASS

    def inet_records(self, dns: Optional[DnsBypass]) -> Optional[List[InetRecord]]:
        """
        Memoized answer set for a DNS bypass destination.

        Only a successfully built answer is kept. Failures are logged and
        retried on the next call.
        """
        if dns is None:
            return None
        try:
            return self._records.get_or_init(lambda: build_inet_records(dns))
        except Exception as e:
            log.warning(f"DeliveryService '{self.config.id}' bypass DNS answer unavailable: {e}")
            return None
