# dspolicy/main.py
import os
from dspolicy.settings import Settings
from dspolicy.registry import PolicyRegistry
from dspolicy.core.token import TokenContext
from dspolicy.observability.logging_setup import setup_logging, get_logger
from dspolicy.observability.server import run_http_server

def _b(name, default=False): return os.getenv(name, str(default)).lower() in ("1","true","yes","on")

def build_settings() -> Settings:
    s = Settings()

    # observability
    s.observability.log_level = os.getenv("LOG_LEVEL", s.observability.log_level)
    s.observability.log_format = os.getenv("LOG_FORMAT", s.observability.log_format)
    s.observability.metrics_enabled = _b("METRICS_ENABLED", s.observability.metrics_enabled)
    s.observability.http_host = os.getenv("HTTP_HOST", s.observability.http_host)
    s.observability.http_port = int(os.getenv("HTTP_PORT", s.observability.http_port))

    # router config
    s.router.config_path = os.getenv("CR_CONFIG_PATH", s.router.config_path)
    s.router.allow_config_push = _b("ALLOW_CONFIG_PUSH", s.router.allow_config_push)

    return s

def build_registry(settings: Settings) -> PolicyRegistry:
    log = get_logger("dspolicy.main")
    registry = PolicyRegistry(TokenContext())
    path = settings.router.config_path
    if path:
        if os.path.exists(path):
            rejected = registry.load_file(path)
            if rejected:
                log.warning(f"deliveryservices rejected at startup: {rejected}")
        else:
            log.warning(f"router config not found path:{path}; waiting for POST /config")
    return registry

def main():
    settings = build_settings()
    setup_logging(settings.observability.log_level, settings.observability.log_format)
    log = get_logger("dspolicy.main")
    log.info(f"{settings.observability.service_name} {settings.observability.build_version} starting")

    registry = build_registry(settings)
    run_http_server(settings, registry)

if __name__ == "__main__":
    main()
