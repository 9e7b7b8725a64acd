"""
HTTP server runner for dspolicy.

This module runs the FastAPI admin/health app under uvicorn.
"""

import uvicorn
from dspolicy.observability.health import create_app
from dspolicy.registry import PolicyRegistry
from dspolicy.settings import Settings
from dspolicy.observability.logging_setup import get_logger

def run_http_server(settings: Settings, registry: PolicyRegistry, host: str = None, port: int = None):
    """
    Run the HTTP server (blocking).

    Args:
        settings: application settings
        registry: policy registry served by the app
        host: bind address (None: from settings)
        port: bind port (None: from settings)
    """
    log = get_logger("dspolicy.http")

    if host is None:
        host = settings.observability.http_host
    if port is None:
        port = settings.observability.http_port

    app = create_app(settings, registry)

    log.info(f"HTTP server starting host:{host} port:{port}")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=settings.observability.log_level.lower(),
        access_log=False
    )
