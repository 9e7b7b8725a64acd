"""
Redirect URI composition for dspolicy.
"""

from typing import Callable, Optional

from .config import PolicyConfig
from .models import CacheTarget, HttpRequest

STANDARD_HTTP_PORT = 80
STANDARD_HTTPS_PORT = 443


class UriBuilder:
    """
    Composes `scheme://host[:port]path[?query][&|?t0=token]` for one
    delivery service.

    Args:
        config: delivery-service configuration
        token_for: callable producing the transaction token for a request
            (None when the service issues no token)
    """

    def __init__(self, config: PolicyConfig, token_for: Optional[Callable[[HttpRequest], Optional[str]]] = None):
        self.config = config
        self.token_for = token_for

    def use_secure(self, request: HttpRequest) -> bool:
        protocol = self.config.protocol
        ready = self.config.ssl_ready
        if request.secure:
            return protocol.accept_https and ready
        return protocol.redirect_to_https and protocol.accept_https and ready

    def port_suffix(self, request: HttpRequest, port: int) -> str:
        standard = STANDARD_HTTPS_PORT if self.use_secure(request) else STANDARD_HTTP_PORT
        return "" if port == standard else f":{port}"

    def cache_host(self, request: HttpRequest, cache: CacheTarget) -> str:
        fqdn = cache.fqdn_for(self.config.id)
        if fqdn is not None:
            return fqdn
        suffix = request.domain_suffix
        if not suffix:
            return cache.fqdn
        return cache.fqdn.split(".", 1)[0] + "." + suffix

    def cache_port(self, request: HttpRequest, cache: CacheTarget) -> int:
        return cache.https_port if self.use_secure(request) else cache.port

    def build(self, request: HttpRequest, cache: CacheTarget, alternate_path: Optional[str] = None) -> str:
        """
        Build the redirect URI that sends a client to a cache.

        Args:
            request: the client request
            cache: chosen edge cache
            alternate_path: replaces the request path; when given, neither
                the query string nor the token is appended

        Returns:
            The redirect URI
        """
        host = self.cache_host(request, cache)
        port = self.cache_port(request, cache)
        if alternate_path is not None:
            return self._scheme(request) + host + self.port_suffix(request, port) + alternate_path
        token = self.token_for(request) if self.token_for else None
        return self.build_for_host(request, host, port, token)

    def build_for_host(self, request: HttpRequest, fqdn: str, port: int, token: Optional[str] = None) -> str:
        parts = [self._scheme(request), fqdn, self.port_suffix(request, port), request.path]

        query_appended = False
        if request.query_string is not None and self.config.append_query_string:
            parts.append("?" + request.query_string)
            query_appended = True
        if token is not None:
            parts.append("&" if query_appended else "?")
            parts.append(token)
        return "".join(parts)

    def _scheme(self, request: HttpRequest) -> str:
        return "https://" if self.use_secure(request) else "http://"
