"""
HTTP endpoints for dspolicy.

This module implements health, readiness, metrics and info endpoints,
plus the admin endpoints the health feed and config publisher push to.
"""

from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Body
from pydantic import ValidationError
from fastapi.responses import Response, JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import time
from dspolicy.settings import Settings
from dspolicy.registry import PolicyRegistry
from dspolicy.observability import metrics as ds_metrics
from dspolicy.observability.logging_setup import get_logger

log = get_logger("dspolicy.http")

def create_app(settings: Settings, registry: PolicyRegistry) -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title=settings.observability.service_name,
        version=settings.observability.build_version,
        description="Delivery-service routing policy"
    )

    start_time = time.time()

    @app.get("/health")
    async def health():
        """Liveness check"""
        return JSONResponse({
            "status": "ok",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        })

    @app.get("/ready")
    async def ready():
        """Readiness check: at least one config generation published"""
        if registry.generation == 0:
            return JSONResponse(status_code=503, content={
                "status": "not_ready",
                "service": settings.observability.service_name,
                "timestamp": time.time()
            })
        return JSONResponse({
            "status": "ready",
            "service": settings.observability.service_name,
            "generation": registry.generation,
            "deliveryservices": len(registry),
            "timestamp": time.time()
        })

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics"""
        if not settings.observability.metrics_enabled:
            raise HTTPException(status_code=503, detail="Metrics disabled")

        ds_metrics.uptime_seconds.set(time.time() - start_time)
        try:
            return Response(
                generate_latest(),
                media_type=CONTENT_TYPE_LATEST
            )
        except Exception as e:
            log.error(f"metrics generation error: {e}")
            raise HTTPException(status_code=500, detail="Metrics generation failed")

    @app.get("/info")
    async def info():
        """Service information"""
        uptime = time.time() - start_time
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "build_date": settings.observability.build_date,
            "uptime_seconds": int(uptime),
            "metrics_enabled": settings.observability.metrics_enabled,
            "log_level": settings.observability.log_level,
            "generation": registry.generation
        })

    @app.get("/deliveryservices")
    async def list_deliveryservices():
        """Delivery services of the current generation"""
        return {"generation": registry.generation, "deliveryservices": registry.ids()}

    @app.get("/deliveryservices/{ds_id}")
    async def get_deliveryservice(ds_id: str):
        """Policy summary of one delivery service"""
        policy = registry.get(ds_id)
        if policy is None:
            raise HTTPException(status_code=404, detail=f"unknown deliveryservice {ds_id}")
        return policy.to_summary()

    @app.post("/deliveryservices/{ds_id}/state")
    async def push_state(ds_id: str, payload: Dict[str, Any] = Body(default={})):
        """Replace the availability state of one delivery service"""
        disabled = payload.get("disabledLocations")
        if disabled is not None and not isinstance(disabled, list):
            raise HTTPException(status_code=400, detail="disabledLocations must be a list")
        try:
            known = registry.set_state(ds_id, payload)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=f"invalid state: {e.error_count()} error(s)")
        if not known:
            raise HTTPException(status_code=404, detail=f"unknown deliveryservice {ds_id}")
        return registry.get(ds_id).to_summary()

    @app.post("/config")
    async def push_config(payload: Dict[str, Any] = Body(...)):
        """Publish a new config generation"""
        if not settings.router.allow_config_push:
            raise HTTPException(status_code=403, detail="config push disabled")
        if not isinstance(payload.get("deliveryServices"), dict):
            raise HTTPException(status_code=400, detail="deliveryServices object required")
        rejected = registry.publish(payload)
        log.info(f"config pushed generation:{registry.generation} rejected:{rejected}")
        return {"generation": registry.generation, "deliveryservices": registry.ids(), "rejected": rejected}

    @app.get("/")
    async def root():
        """Root endpoint"""
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "endpoints": {
                "health": "/health",
                "ready": "/ready",
                "metrics": "/metrics",
                "info": "/info",
                "deliveryservices": "/deliveryservices",
                "state": "/deliveryservices/{id}/state",
                "config": "/config"
            }
        })

    return app
