"""
Test configuration and fixtures

This module provides pytest settings and shared fixtures.
"""

import copy
import pytest
from dspolicy.settings import Settings
from dspolicy.core.config import PolicyConfig
from dspolicy.core.models import CacheTarget, HttpRequest, DnsRequest
from dspolicy.core.policy import DeliveryServicePolicy
from dspolicy.core.token import TokenContext
from dspolicy.registry import PolicyRegistry


BASE_DOC = {
    "coverageZoneOnly": False,
    "routingName": "CDN",
    "ttls": {"A": 3600, "AAAA": 3600},
    "domains": ["video.cdn.example.com"],
}


def make_config(ds_id: str = "video", **overrides) -> PolicyConfig:
    """Build a PolicyConfig from the base document plus overrides"""
    doc = copy.deepcopy(BASE_DOC)
    doc.update(overrides)
    return PolicyConfig.from_document(ds_id, doc)


@pytest.fixture(scope="session")
def token_context():
    """Token resources shared by the whole session, like in the router"""
    return TokenContext()


@pytest.fixture
def base_doc():
    """Minimal valid delivery-service document"""
    return copy.deepcopy(BASE_DOC)


@pytest.fixture
def make_policy(token_context):
    """Factory for DeliveryServicePolicy instances"""
    def _make(ds_id: str = "video", **overrides) -> DeliveryServicePolicy:
        return DeliveryServicePolicy(make_config(ds_id, **overrides), token_context)
    return _make


@pytest.fixture
def cache():
    """Edge cache with standard ports and no per-service FQDN"""
    return CacheTarget(fqdn="edge-01.lax.cdn.example.net", port=80, https_port=443)


@pytest.fixture
def http_request():
    """Plain HTTP request from an IPv4 client"""
    return HttpRequest(
        hostname="cdn.video.cdn.example.com",
        path="/movies/clip.m3u8",
        query_string=None,
        client_ip="192.0.2.10",
        secure=False,
    )


@pytest.fixture
def dns_request():
    """DNS request from an IPv4 client"""
    return DnsRequest(hostname="cdn.video.cdn.example.com.", client_ip="192.0.2.10")


@pytest.fixture
def sample_settings():
    """Settings for tests"""
    settings = Settings()
    settings.observability.service_name = "test-service"
    settings.observability.build_version = "1.0.0"
    settings.observability.log_level = "INFO"
    settings.observability.http_port = 8080
    return settings


@pytest.fixture
def registry(token_context):
    """Registry with one published generation"""
    r = PolicyRegistry(token_context)
    r.publish({"deliveryServices": {
        "video": copy.deepcopy(BASE_DOC),
        "live": {**copy.deepcopy(BASE_DOC), "routingName": "edge"},
    }})
    return r


def pytest_configure(config):
    """pytest settings"""
    config.addinivalue_line(
        "markers", "slow: slow tests"
    )
    config.addinivalue_line(
        "markers", "integration: integration tests"
    )


def pytest_collection_modifyitems(config, items):
    """Tag tests by name"""
    for item in items:
        if "concurrent" in item.name or "stress" in item.name:
            item.add_marker(pytest.mark.slow)

        if "integration" in item.name:
            item.add_marker(pytest.mark.integration)
