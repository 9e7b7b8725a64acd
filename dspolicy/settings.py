# dspolicy/settings.py
from __future__ import annotations
from pydantic import BaseModel, Field

class Observability(BaseModel):
    http_host: str = "0.0.0.0"
    http_port: int = 8099
    metrics_enabled: bool = True
    service_name: str = "dspolicy"
    build_version: str = "0.1.0"
    build_date: str = "2026-10-01"
    log_level: str = "INFO"
    log_format: str = "dev"                   # dev | json

class RouterConfig(BaseModel):
    config_path: str | None = None            # router config JSON ({"deliveryServices": {...}})
    allow_config_push: bool = True            # accept POST /config

class Settings(BaseModel):
    observability: Observability = Field(default_factory=Observability)
    router: RouterConfig = Field(default_factory=RouterConfig)
